from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal
from app.models.order import ShippingZone


class ShippingCalculation(BaseModel):
    cost: Decimal
    total_weight_grams: Decimal
    total_weight_kg: Decimal


class ShippingQuoteItem(BaseModel):
    variant_id: Optional[int] = None
    quantity: int = Field(ge=1)
    weight_kg: Optional[Decimal] = Field(default=None, ge=0)  # Overrides the variant weight


class ShippingQuoteRequest(BaseModel):
    delivery_zone: ShippingZone
    items: List[ShippingQuoteItem] = Field(min_length=1)


class ShippingQuoteResponse(BaseModel):
    delivery_zone: ShippingZone
    cost: Decimal
    charged_cost: Decimal
    free_delivery: bool
    total_weight_grams: Decimal
    total_weight_kg: Decimal
