from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List
from datetime import datetime
from app.core.timeutils import utcnow
from decimal import Decimal


class Product(SQLModel, table=True):
    __tablename__ = "products"
    
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    handle: str = Field(unique=True, index=True)
    
    price: Decimal = Field(max_digits=10, decimal_places=2)
    
    is_active: bool = Field(default=True)
    
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    
    # Relationships
    variants: List["ProductVariant"] = Relationship(back_populates="product")


class ProductVariant(SQLModel, table=True):
    __tablename__ = "product_variants"
    
    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    title: str
    sku: Optional[str] = Field(default=None, unique=True)
    
    # Overrides Product.price when set
    price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    # Kilograms, drives the shipping tier
    weight: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=3)
    
    inventory_quantity: int = Field(default=0)
    
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    
    # Relationships
    product: Optional[Product] = Relationship(back_populates="variants")
