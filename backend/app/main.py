from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from app.core.config import settings
from app.core.logging import configure_logging, get_logger_levels
from app.db.session import init_db

configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        init_db()
    logger.info(
        "Khelna API started: env=%s free_delivery=%s log_levels=%s",
        settings.ENV, settings.FREE_DELIVERY_CAMPAIGN, get_logger_levels(),
    )
    yield


app = FastAPI(
    title="Khelna API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    # Unique constraints lost to a concurrent write (promo code, order number)
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=409, content={"detail": "Conflicting write, please retry"})


from app.api import auth, promo_codes, shipping, orders

app.add_exception_handler(RequestValidationError, promo_codes.validation_error_handler)

app.include_router(auth.router)
app.include_router(promo_codes.router)
app.include_router(shipping.router)
app.include_router(orders.router)


@app.get("/")
def root():
    return {"status": "ok", "service": "khelna-api"}


@app.get("/api/health")
def health_check():
    return {
        "status": "healthy",
        "env": settings.ENV,
        "free_delivery": settings.FREE_DELIVERY_CAMPAIGN,
    }
