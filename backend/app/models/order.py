from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List
from datetime import datetime
from app.core.timeutils import utcnow
from decimal import Decimal
from enum import Enum


class OrderStatus(str, Enum):
    ORDER_PLACED = "order_placed"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    RETURNED = "returned"
    CANCELED = "canceled"


class ShippingZone(str, Enum):
    INSIDE = "inside"  # Inside Dhaka
    OUTSIDE = "outside"


class Order(SQLModel, table=True):
    __tablename__ = "orders"
    
    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: str = Field(unique=True, index=True)
    
    # Contacts
    customer_name: str
    customer_phone: str = Field(index=True)
    customer_email: Optional[str] = None
    customer_address: str
    special_note: Optional[str] = None
    
    # Delivery
    delivery_zone: ShippingZone
    total_weight_grams: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=3)
    
    # Amounts
    items_total: Decimal = Field(max_digits=10, decimal_places=2)
    shipping_cost: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)  # Charged to customer
    actual_shipping_cost: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)  # By weight
    total_amount: Decimal = Field(max_digits=10, decimal_places=2)
    
    # Promo code
    promo_code_id: Optional[int] = Field(default=None, foreign_key="promo_codes.id")
    promo_code: Optional[str] = None
    promo_code_discount: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    
    status: OrderStatus = Field(default=OrderStatus.ORDER_PLACED)
    is_paid: bool = Field(default=False)
    
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    
    # Relationships
    items: List["OrderItem"] = Relationship(back_populates="order")


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_items"
    
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)
    product_id: int = Field(foreign_key="products.id")
    variant_id: Optional[int] = Field(default=None, foreign_key="product_variants.id")
    
    # Snapshot at order time
    product_name: str
    variant_title: Optional[str] = None
    variant_sku: Optional[str] = None
    
    quantity: int
    product_price: Decimal = Field(max_digits=10, decimal_places=2)
    item_total: Decimal = Field(max_digits=10, decimal_places=2)
    
    # Relationships
    order: Optional[Order] = Relationship(back_populates="items")
