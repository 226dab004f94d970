from sqlalchemy import Column, DateTime, JSON
from sqlmodel import SQLModel, Field
from typing import Optional, List
from datetime import datetime
from app.core.timeutils import utcnow
from decimal import Decimal
from enum import Enum


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PromoCode(SQLModel, table=True):
    __tablename__ = "promo_codes"
    
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    code: str = Field(max_length=50, unique=True, index=True)  # Always uppercase
    
    discount_type: DiscountType
    # Percent (0, 100] or a fixed amount in Taka
    discount_value: Decimal = Field(max_digits=10, decimal_places=2)
    max_discount_amount: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    
    is_one_time_use: bool = Field(default=False)
    usage_limit: Optional[int] = None
    used_count: int = Field(default=0)
    
    is_store_wide: bool = Field(default=True)
    applicable_products: List[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    
    is_active: bool = Field(default=True)
    expires_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
