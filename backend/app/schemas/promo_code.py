from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum
import re
from app.core.timeutils import as_utc, utcnow
from app.models.promo_code import DiscountType

CODE_PATTERN = re.compile(r"^[A-Z0-9_-]+$")


class PromoErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"
    USAGE_LIMIT_REACHED = "USAGE_LIMIT_REACHED"
    ALREADY_USED = "ALREADY_USED"
    NOT_APPLICABLE = "NOT_APPLICABLE"
    VALIDATION_ERROR = "VALIDATION_ERROR"


def _normalize_code(value):
    if isinstance(value, str):
        return value.strip().upper()
    return value


# === Checkout input ===

class CartLine(BaseModel):
    """Cart line as sent by the storefront; unit_price arrives as a string"""
    product_id: int
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1)
    weight_kg: Optional[Decimal] = Field(default=None, ge=0)


class PromoValidateRequest(BaseModel):
    code: str = Field(min_length=1)
    items: List[CartLine] = Field(min_length=1)
    items_total: Decimal = Field(ge=0)

    @field_validator("code")
    @classmethod
    def code_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Promo code is required")
        return v


# === Evaluation output ===

class DiscountResult(BaseModel):
    valid: bool
    discount_amount: Optional[Decimal] = None
    applicable_items_total: Optional[Decimal] = None
    is_store_wide: Optional[bool] = None
    promo_code_id: Optional[int] = None
    error_kind: Optional[PromoErrorKind] = None
    error: Optional[str] = None


class PromoCodeSummary(BaseModel):
    id: int
    code: str
    name: str
    discount_type: DiscountType
    discount_value: Decimal
    max_discount_amount: Optional[Decimal] = None

    class Config:
        from_attributes = True


class PromoValidateResponse(DiscountResult):
    promo_code: Optional[PromoCodeSummary] = None
    details: Optional[list] = None


# === Admin CRUD ===

class PromoCodeResponse(BaseModel):
    id: int
    name: str
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    max_discount_amount: Optional[Decimal] = None
    is_one_time_use: bool
    usage_limit: Optional[int] = None
    used_count: int
    is_store_wide: bool
    applicable_products: List[int] = []
    is_active: bool
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PromoCodeListResponse(BaseModel):
    items: List[PromoCodeResponse]
    total: int
    page: int
    page_size: int
    pages: int


class PromoCodeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=50)
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0)
    max_discount_amount: Optional[Decimal] = Field(default=None, gt=0)
    is_one_time_use: bool = False
    usage_limit: Optional[int] = Field(default=None, gt=0)
    is_store_wide: bool = True
    applicable_products: List[int] = []
    is_active: bool = True
    expires_at: Optional[datetime] = None

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, v):
        return _normalize_code(v)

    @field_validator("code")
    @classmethod
    def code_charset(cls, v: str) -> str:
        if not CODE_PATTERN.match(v):
            raise ValueError("Code must contain only letters, numbers, hyphens, and underscores")
        return v

    @field_validator("expires_at")
    @classmethod
    def expiry_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        v = as_utc(v)
        if v <= utcnow():
            raise ValueError("Expiry date must be in the future")
        return v

    @model_validator(mode="after")
    def check_discount_policy(self):
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount must be between 1 and 100")
        if not self.is_store_wide and not self.applicable_products:
            raise ValueError("Product-specific promo codes must have at least one applicable product")
        return self


class PromoCodeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(default=None, gt=0)
    max_discount_amount: Optional[Decimal] = Field(default=None, gt=0)
    is_one_time_use: Optional[bool] = None
    usage_limit: Optional[int] = Field(default=None, gt=0)
    is_store_wide: Optional[bool] = None
    applicable_products: Optional[List[int]] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, v):
        return _normalize_code(v)

    @field_validator("code")
    @classmethod
    def code_charset(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not CODE_PATTERN.match(v):
            raise ValueError("Code must contain only letters, numbers, hyphens, and underscores")
        return v

    @field_validator("expires_at")
    @classmethod
    def expiry_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        v = as_utc(v)
        if v <= utcnow():
            raise ValueError("Expiry date must be in the future")
        return v


class BulkDeleteRequest(BaseModel):
    ids: List[int] = Field(min_length=1)


class CodeAvailabilityResponse(BaseModel):
    available: bool
    code: str
