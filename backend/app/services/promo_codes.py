"""
Promo code eligibility and discount calculation.

validate_promo_code() runs the eligibility gates in a fixed order; the first
failing gate decides the error kind and no discount is computed. Ineligibility
is a normal result, never an exception.
"""
from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime
from typing import Optional, Iterable, Callable, List, Tuple
import logging
from sqlalchemy import update, or_
from sqlmodel import Session, select
from app.models.promo_code import PromoCode, DiscountType
from app.core.timeutils import as_utc, utcnow
from app.schemas.promo_code import DiscountResult, PromoErrorKind

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

ERROR_MESSAGES = {
    PromoErrorKind.NOT_FOUND: "Promo code not found",
    PromoErrorKind.INACTIVE: "This promo code is no longer active",
    PromoErrorKind.EXPIRED: "This promo code has expired",
    PromoErrorKind.USAGE_LIMIT_REACHED: "This promo code has reached its usage limit",
    PromoErrorKind.ALREADY_USED: "This one-time promo code has already been used",
    PromoErrorKind.NOT_APPLICABLE: "This promo code is not applicable to any items in your cart",
    PromoErrorKind.VALIDATION_ERROR: "Invalid request data",
}


def round_money(amount: Decimal) -> Decimal:
    """Half-up to 2 decimal places"""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _is_expired(promo: PromoCode, now: datetime) -> bool:
    return promo.expires_at is not None and as_utc(promo.expires_at) < now


def _usage_limit_reached(promo: PromoCode, now: datetime) -> bool:
    return promo.usage_limit is not None and promo.used_count >= promo.usage_limit


def _already_used(promo: PromoCode, now: datetime) -> bool:
    return promo.is_one_time_use and promo.used_count > 0


# Order matters: usage limit is reported before one-time use
GATES: List[Tuple[Callable[[PromoCode, datetime], bool], PromoErrorKind]] = [
    (lambda promo, now: not promo.is_active, PromoErrorKind.INACTIVE),
    (_is_expired, PromoErrorKind.EXPIRED),
    (_usage_limit_reached, PromoErrorKind.USAGE_LIMIT_REACHED),
    (_already_used, PromoErrorKind.ALREADY_USED),
]


def rejection(kind: PromoErrorKind, promo: Optional[PromoCode] = None) -> DiscountResult:
    return DiscountResult(
        valid=False,
        error_kind=kind,
        error=ERROR_MESSAGES[kind],
        promo_code_id=promo.id if promo else None,
    )


def applicable_items_total(promo: PromoCode, cart_items: Iterable) -> Decimal:
    """Sum of unit_price * quantity over the lines the code is scoped to"""
    applicable_ids = set(promo.applicable_products or [])
    total = Decimal("0")
    for item in cart_items:
        if item.product_id in applicable_ids:
            total += Decimal(str(item.unit_price)) * item.quantity
    return total


def calculate_discount(promo: PromoCode, base: Decimal) -> Decimal:
    """Unrounded discount for a base amount"""
    value = Decimal(str(promo.discount_value))

    if promo.discount_type == DiscountType.PERCENTAGE:
        amount = base * value / 100
        if promo.max_discount_amount is not None:
            amount = min(amount, Decimal(str(promo.max_discount_amount)))
        return amount

    # Fixed: never more than the base it applies to
    return min(value, base)


def validate_promo_code(
    promo: Optional[PromoCode],
    cart_items: Iterable,
    items_total: Decimal,
    now: Optional[datetime] = None,
) -> DiscountResult:
    """
    Evaluate a promo code against a cart.

    `promo` is the looked-up record (None when the lookup missed), `cart_items`
    are lines with product_id, unit_price and quantity, `items_total` is the
    cart subtotal used as the base for store-wide codes.
    """
    if promo is None:
        return rejection(PromoErrorKind.NOT_FOUND)

    now = as_utc(now) if now else utcnow()
    cart_items = list(cart_items)

    for failed, kind in GATES:
        if failed(promo, now):
            return rejection(kind, promo)

    if promo.is_store_wide:
        base = Decimal(str(items_total))
    else:
        applicable_ids = set(promo.applicable_products or [])
        if not any(item.product_id in applicable_ids for item in cart_items):
            return rejection(PromoErrorKind.NOT_APPLICABLE, promo)
        base = applicable_items_total(promo, cart_items)

    discount = calculate_discount(promo, base)

    return DiscountResult(
        valid=True,
        discount_amount=round_money(discount),
        applicable_items_total=round_money(base),
        is_store_wide=promo.is_store_wide,
        promo_code_id=promo.id,
    )


def find_promo_code(db: Session, code: str) -> Optional[PromoCode]:
    """Codes are stored uppercase, so the lookup is case-insensitive"""
    normalized = code.strip().upper()
    if not normalized:
        return None
    return db.exec(select(PromoCode).where(PromoCode.code == normalized)).first()


def evaluate_promo_code(db: Session, code: str, cart_items: Iterable, items_total: Decimal) -> DiscountResult:
    """Look up a code and run it through validate_promo_code"""
    promo = find_promo_code(db, code)
    result = validate_promo_code(promo, cart_items, items_total)

    if result.valid:
        logger.info(
            "Promo code %s accepted: discount=%s base=%s",
            promo.code, result.discount_amount, result.applicable_items_total,
        )
    else:
        logger.info("Promo code %r rejected: %s", code, result.error_kind.value)

    return result


def redeem_promo_code(db: Session, promo_id: int) -> bool:
    """
    Count one use of a promo code inside the caller's transaction.

    The limits are re-checked in the UPDATE itself, so of two concurrent
    redemptions racing for the last use only one matches a row.
    Returns False when the code can no longer be redeemed.
    """
    stmt = (
        update(PromoCode)
        .where(
            PromoCode.id == promo_id,
            or_(PromoCode.usage_limit == None, PromoCode.used_count < PromoCode.usage_limit),
            or_(PromoCode.is_one_time_use == False, PromoCode.used_count == 0),
        )
        .values(used_count=PromoCode.used_count + 1, updated_at=utcnow())
    )
    result = db.connection().execute(stmt)

    if result.rowcount != 1:
        logger.warning("Promo code %s could not be redeemed, limit reached concurrently", promo_id)
        return False
    return True
