from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from app.models.order import OrderStatus, ShippingZone
from app.schemas.promo_code import DiscountResult

BANGLA_DIGITS = str.maketrans("০১২৩৪৫৬৭৮৯", "0123456789")


def convert_bangla_numerals(text: str) -> str:
    """০১৭... -> 017..."""
    return text.translate(BANGLA_DIGITS)


class OrderItemCreate(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    quantity: int = Field(ge=1)


class CheckoutRequest(BaseModel):
    items: List[OrderItemCreate] = Field(min_length=1)
    delivery_zone: ShippingZone
    promo_code: Optional[str] = None


class OrderCreate(CheckoutRequest):
    customer_name: str = Field(min_length=2)
    customer_phone: str = Field(min_length=10)
    customer_email: Optional[EmailStr] = None
    customer_address: str = Field(min_length=10)
    special_note: Optional[str] = None

    @field_validator("customer_phone", mode="before")
    @classmethod
    def normalize_phone(cls, v):
        if isinstance(v, str):
            return convert_bangla_numerals(v).strip()
        return v

    @field_validator("customer_email", mode="before")
    @classmethod
    def empty_email_as_none(cls, v):
        if v == "":
            return None
        return v


class CheckoutQuoteResponse(BaseModel):
    items_total: Decimal
    shipping_cost: Decimal
    actual_shipping_cost: Decimal
    free_delivery: bool
    total_weight_grams: Decimal
    discount: Optional[DiscountResult] = None
    discount_amount: Decimal
    total_amount: Decimal


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    variant_id: Optional[int] = None
    product_name: str
    variant_title: Optional[str] = None
    variant_sku: Optional[str] = None
    quantity: int
    product_price: Decimal
    item_total: Decimal

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    order_number: str
    
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    customer_address: str
    special_note: Optional[str] = None
    
    delivery_zone: ShippingZone
    total_weight_grams: Decimal
    
    items_total: Decimal
    shipping_cost: Decimal
    actual_shipping_cost: Decimal
    promo_code: Optional[str] = None
    promo_code_discount: Optional[Decimal] = None
    total_amount: Decimal
    
    status: OrderStatus
    is_paid: bool
    
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True


class OrderTrackResponse(BaseModel):
    order_number: str
    status: OrderStatus
    customer_name: str
    delivery_zone: ShippingZone
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int
    pages: int


class OrderStatusUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    is_paid: Optional[bool] = None
