from sqlmodel import SQLModel, create_engine
from app.core.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite connections are shared across FastAPI worker threads
    connect_args["check_same_thread"] = False

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)


def init_db():
    """Create all tables"""
    # Register table metadata before create_all
    import app.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
