"""
Shipping cost by total order weight and delivery zone.

Inside Dhaka:
- <= 150g: 50৳
- > 150g and <= 500g: 60৳
- > 500g and <= 1kg: 70৳
- each started kilogram above 1kg: +20৳

Outside Dhaka:
- <= 500g: 110৳
- > 500g and <= 1kg: 130৳
- each started kilogram above 1kg: +20৳
"""
from decimal import Decimal
from math import ceil
from typing import Iterable, Dict, List, Tuple, NamedTuple, Optional
import logging
from sqlmodel import Session, select, col
from app.core.config import settings
from app.models.order import ShippingZone
from app.models.product import ProductVariant
from app.schemas.shipping import ShippingCalculation

logger = logging.getLogger(__name__)


class WeightedLine(NamedTuple):
    quantity: int
    weight_kg: Optional[Decimal]


# (upper bound in grams, fee) in ascending order
SHIPPING_TIERS: Dict[ShippingZone, List[Tuple[Decimal, Decimal]]] = {
    ShippingZone.INSIDE: [
        (Decimal("150"), Decimal("50")),
        (Decimal("500"), Decimal("60")),
        (Decimal("1000"), Decimal("70")),
    ],
    ShippingZone.OUTSIDE: [
        (Decimal("500"), Decimal("110")),
        (Decimal("1000"), Decimal("130")),
    ],
}

FEE_PER_EXTRA_KG = Decimal("20")
GRAMS_PER_KG = Decimal("1000")


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def calculate_shipping_cost(total_weight_grams, zone: ShippingZone) -> Decimal:
    """Fee in Taka for a parcel of the given weight"""
    grams = _to_decimal(total_weight_grams)
    if grams <= 0:
        return Decimal("0")

    tiers = SHIPPING_TIERS[ShippingZone(zone)]
    for max_grams, fee in tiers:
        if grams <= max_grams:
            return fee

    # Partial kilograms are charged as whole ones: 1.001kg costs the same as 2kg
    top_grams, top_fee = tiers[-1]
    extra_kg = ceil(grams / GRAMS_PER_KG - top_grams / GRAMS_PER_KG)
    return top_fee + FEE_PER_EXTRA_KG * extra_kg


def calculate_order_shipping(items: Iterable, zone: ShippingZone) -> ShippingCalculation:
    """
    Total weight and fee for cart lines.
    Each item needs `quantity` and `weight_kg`; a missing weight counts as zero.
    """
    total_weight_grams = Decimal("0")

    for item in items:
        weight_kg = _to_decimal(item.weight_kg or 0)
        total_weight_grams += weight_kg * GRAMS_PER_KG * item.quantity

    return ShippingCalculation(
        cost=calculate_shipping_cost(total_weight_grams, zone),
        total_weight_grams=total_weight_grams,
        total_weight_kg=total_weight_grams / GRAMS_PER_KG,
    )


def get_variant_weights(db: Session, variant_ids: Iterable[int]) -> Dict[int, Decimal]:
    """variant_id -> weight (kg) for variants that have one"""
    ids = {vid for vid in variant_ids if vid}
    if not ids:
        return {}

    stmt = select(ProductVariant.id, ProductVariant.weight).where(col(ProductVariant.id).in_(ids))
    return {vid: weight for vid, weight in db.exec(stmt).all() if weight is not None}


def calculate_actual_shipping_cost(db: Session, items: Iterable, zone: ShippingZone) -> ShippingCalculation:
    """
    Shipping for items identified by `variant_id`, with weights taken from the
    variant records. An explicit `weight_kg` on the item wins over the lookup.
    """
    items = list(items)
    weights = get_variant_weights(db, (item.variant_id for item in items))

    weighted = [
        WeightedLine(
            quantity=item.quantity,
            weight_kg=item.weight_kg if item.weight_kg is not None else weights.get(item.variant_id),
        )
        for item in items
    ]
    return calculate_order_shipping(weighted, zone)


def charged_shipping_cost(actual_cost: Decimal) -> Decimal:
    """What the customer pays; zero while the free delivery campaign runs"""
    if settings.FREE_DELIVERY_CAMPAIGN:
        logger.debug("Free delivery campaign active, waiving shipping fee %s", actual_cost)
        return Decimal("0")
    return actual_cost
