from fastapi import APIRouter, Depends
from sqlmodel import Session
from app.api.deps import get_db
from app.core.config import settings
from app.schemas.shipping import ShippingQuoteRequest, ShippingQuoteResponse
from app.services.shipping import calculate_actual_shipping_cost, charged_shipping_cost

router = APIRouter(prefix="/api/shipping", tags=["shipping"])


@router.post("/quote", response_model=ShippingQuoteResponse)
def shipping_quote(data: ShippingQuoteRequest, db: Session = Depends(get_db)):
    """Delivery fee for a cart by weight and zone"""
    shipping = calculate_actual_shipping_cost(db, data.items, data.delivery_zone)
    
    return ShippingQuoteResponse(
        delivery_zone=data.delivery_zone,
        cost=shipping.cost,
        charged_cost=charged_shipping_cost(shipping.cost),
        free_delivery=settings.FREE_DELIVERY_CAMPAIGN,
        total_weight_grams=shipping.total_weight_grams,
        total_weight_kg=shipping.total_weight_kg,
    )
