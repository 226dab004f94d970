from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.responses import JSONResponse
from sqlmodel import Session, select, col, func
from typing import Literal, Optional
from math import ceil
import logging
from app.api.deps import get_db, admin_required
from app.core.timeutils import utcnow
from app.models.user import AdminUser
from app.models.promo_code import PromoCode, DiscountType
from app.schemas.promo_code import (
    PromoValidateRequest, PromoValidateResponse, PromoCodeSummary, PromoErrorKind,
    PromoCodeCreate, PromoCodeUpdate, PromoCodeResponse, PromoCodeListResponse,
    BulkDeleteRequest, CodeAvailabilityResponse,
)
from app.services.promo_codes import ERROR_MESSAGES, find_promo_code, evaluate_promo_code

router = APIRouter(tags=["promo-codes"])

logger = logging.getLogger(__name__)

VALIDATE_PATH = "/api/promo-codes/validate"

SORTABLE_COLUMNS = {
    "created_at": PromoCode.created_at,
    "updated_at": PromoCode.updated_at,
    "name": PromoCode.name,
    "code": PromoCode.code,
    "discount_value": PromoCode.discount_value,
    "used_count": PromoCode.used_count,
    "is_active": PromoCode.is_active,
    "expires_at": PromoCode.expires_at,
}

NOT_NULLABLE = {"name", "code", "discount_type", "discount_value", "is_one_time_use",
                "is_store_wide", "applicable_products", "is_active"}


# === Public: checkout ===

async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Malformed checkout input on the validate route (bad JSON included) is
    answered in the promo result shape with HTTP 400; other routes keep 422.
    """
    if request.url.path != VALIDATE_PATH:
        return await request_validation_exception_handler(request, exc)

    result = PromoValidateResponse(
        valid=False,
        error_kind=PromoErrorKind.VALIDATION_ERROR,
        error=ERROR_MESSAGES[PromoErrorKind.VALIDATION_ERROR],
        details=jsonable_encoder(exc.errors()),
    )
    return JSONResponse(status_code=400, content=result.model_dump(mode="json", exclude_none=True))


@router.post(VALIDATE_PATH, response_model=PromoValidateResponse)
def validate_promo(data: PromoValidateRequest, db: Session = Depends(get_db)):
    """Check a promo code against the cart and compute the discount"""
    result = evaluate_promo_code(db, data.code, data.items, data.items_total)

    if not result.valid:
        response = PromoValidateResponse(**result.model_dump())
        return JSONResponse(status_code=400, content=response.model_dump(mode="json", exclude_none=True))

    promo = db.get(PromoCode, result.promo_code_id)
    return PromoValidateResponse(
        **result.model_dump(),
        promo_code=PromoCodeSummary.model_validate(promo),
    )


# === Admin CRUD ===

@router.get("/api/admin/promo-codes", response_model=PromoCodeListResponse)
def list_promo_codes(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    sort_by: Literal[
        "created_at", "updated_at", "name", "code",
        "discount_value", "used_count", "is_active", "expires_at",
    ] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    db: Session = Depends(get_db),
    _: AdminUser = Depends(admin_required)
):
    """Promo codes with search, sorting and pagination (admin)"""
    stmt = select(PromoCode)
    count_stmt = select(func.count()).select_from(PromoCode)

    if search:
        pattern = f"%{search}%"
        condition = (col(PromoCode.name).ilike(pattern)) | (col(PromoCode.code).ilike(pattern))
        stmt = stmt.where(condition)
        count_stmt = count_stmt.where(condition)

    sort_column = col(SORTABLE_COLUMNS[sort_by])
    stmt = stmt.order_by(sort_column.asc() if sort_order == "asc" else sort_column.desc())
    stmt = stmt.offset((page - 1) * page_size).limit(page_size)

    total = db.exec(count_stmt).one()

    return PromoCodeListResponse(
        items=db.exec(stmt).all(),
        total=total,
        page=page,
        page_size=page_size,
        pages=ceil(total / page_size) if total else 0,
    )


@router.get("/api/admin/promo-codes/check-code", response_model=CodeAvailabilityResponse)
def check_code_availability(
    code: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    _: AdminUser = Depends(admin_required)
):
    """Is the code still free (case-insensitive)"""
    normalized = code.strip().upper()
    return CodeAvailabilityResponse(
        available=find_promo_code(db, normalized) is None,
        code=normalized,
    )


@router.delete("/api/admin/promo-codes/bulk")
def bulk_delete_promo_codes(
    data: BulkDeleteRequest,
    db: Session = Depends(get_db),
    _: AdminUser = Depends(admin_required)
):
    """Delete several promo codes (admin)"""
    promos = db.exec(select(PromoCode).where(col(PromoCode.id).in_(data.ids))).all()
    if not promos:
        raise HTTPException(status_code=404, detail="No promo codes found to delete")

    for promo in promos:
        db.delete(promo)
    db.commit()

    deleted_count = len(promos)
    requested_count = len(set(data.ids))
    logger.info("Deleted %s of %s requested promo codes", deleted_count, requested_count)

    if deleted_count < requested_count:
        return {
            "message": f"Deleted {deleted_count} out of {requested_count} promo codes, some did not exist",
            "deleted_count": deleted_count,
            "requested_count": requested_count,
        }

    return {
        "message": f"Deleted {deleted_count} promo code{'s' if deleted_count != 1 else ''}",
        "deleted_count": deleted_count,
    }


@router.get("/api/admin/promo-codes/{promo_id}", response_model=PromoCodeResponse)
def get_promo_code(
    promo_id: int,
    db: Session = Depends(get_db),
    _: AdminUser = Depends(admin_required)
):
    """Promo code by ID (admin)"""
    promo = db.get(PromoCode, promo_id)
    if not promo:
        raise HTTPException(status_code=404, detail="Promo code not found")
    return promo


@router.post("/api/admin/promo-codes", response_model=PromoCodeResponse, status_code=201)
def create_promo_code(
    data: PromoCodeCreate,
    db: Session = Depends(get_db),
    _: AdminUser = Depends(admin_required)
):
    """Create a promo code (admin)"""
    if find_promo_code(db, data.code):
        raise HTTPException(status_code=400, detail="Promo code already exists")

    promo = PromoCode(**data.model_dump(), used_count=0)
    db.add(promo)
    db.commit()
    db.refresh(promo)

    logger.info("Promo code %s created", promo.code)
    return promo


@router.patch("/api/admin/promo-codes/{promo_id}", response_model=PromoCodeResponse)
def update_promo_code(
    promo_id: int,
    data: PromoCodeUpdate,
    db: Session = Depends(get_db),
    _: AdminUser = Depends(admin_required)
):
    """Update a promo code (admin)"""
    promo = db.get(PromoCode, promo_id)
    if not promo:
        raise HTTPException(status_code=404, detail="Promo code not found")

    update_data = data.model_dump(exclude_unset=True)

    for key, value in update_data.items():
        if value is None and key in NOT_NULLABLE:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")

    # Code uniqueness
    if update_data.get("code"):
        existing = find_promo_code(db, update_data["code"])
        if existing and existing.id != promo_id:
            raise HTTPException(status_code=400, detail="Promo code already exists")

    # Rules that span several fields are checked against the merged state
    discount_type = update_data.get("discount_type", promo.discount_type)
    discount_value = update_data.get("discount_value", promo.discount_value)
    if discount_type == DiscountType.PERCENTAGE and discount_value > 100:
        raise HTTPException(status_code=400, detail="Percentage discount must be between 1 and 100")

    is_store_wide = update_data.get("is_store_wide", promo.is_store_wide)
    applicable_products = update_data.get("applicable_products", promo.applicable_products)
    if not is_store_wide and not applicable_products:
        raise HTTPException(
            status_code=400,
            detail="Product-specific promo codes must have at least one applicable product"
        )

    for key, value in update_data.items():
        setattr(promo, key, value)
    promo.updated_at = utcnow()

    db.add(promo)
    db.commit()
    db.refresh(promo)
    return promo


@router.delete("/api/admin/promo-codes/{promo_id}")
def delete_promo_code(
    promo_id: int,
    db: Session = Depends(get_db),
    _: AdminUser = Depends(admin_required)
):
    """Delete a promo code (admin)"""
    promo = db.get(PromoCode, promo_id)
    if not promo:
        raise HTTPException(status_code=404, detail="Promo code not found")

    db.delete(promo)
    db.commit()
    return {"message": "Promo code deleted"}
