from decimal import Decimal
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional
import logging
import secrets
from sqlalchemy import update
from sqlmodel import Session
from fastapi import HTTPException, status
from app.core.timeutils import utcnow
from app.models.order import Order, OrderItem
from app.models.product import Product, ProductVariant
from app.schemas.order import CheckoutRequest, OrderCreate
from app.schemas.promo_code import DiscountResult, PromoErrorKind
from app.schemas.shipping import ShippingCalculation
from app.services.promo_codes import (
    ERROR_MESSAGES, evaluate_promo_code, redeem_promo_code, round_money,
)
from app.services.shipping import calculate_order_shipping, charged_shipping_cost

logger = logging.getLogger(__name__)


@dataclass
class CheckoutLine:
    product: Product
    variant: Optional[ProductVariant]
    quantity: int

    @property
    def product_id(self) -> int:
        return self.product.id

    @property
    def unit_price(self) -> Decimal:
        if self.variant is not None and self.variant.price is not None:
            return self.variant.price
        return self.product.price

    @property
    def weight_kg(self) -> Optional[Decimal]:
        return self.variant.weight if self.variant is not None else None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class Checkout:
    lines: List[CheckoutLine]
    items_total: Decimal
    shipping: ShippingCalculation
    shipping_cost: Decimal  # Charged to customer
    discount: Optional[DiscountResult]
    total_amount: Decimal

    @property
    def discount_amount(self) -> Decimal:
        if self.discount is None:
            return Decimal("0")
        return self.discount.discount_amount


def generate_order_number() -> str:
    """Unique order number, e.g. KH-241019-A1B2C3"""
    timestamp = utcnow().strftime("%y%m%d")
    random_part = secrets.token_hex(3).upper()
    return f"KH-{timestamp}-{random_part}"


def calculate_order_total(items_total: Decimal, discount_amount: Decimal, shipping_cost: Decimal) -> Decimal:
    return round_money(items_total - discount_amount + shipping_cost)


def resolve_cart_lines(db: Session, data: CheckoutRequest) -> List[CheckoutLine]:
    """Load products/variants for the requested items and check stock"""
    lines = []
    requested = Counter()

    for item_data in data.items:
        product = db.get(Product, item_data.product_id)

        if not product or not product.is_active:
            raise HTTPException(status_code=400, detail=f"Product {item_data.product_id} not found")

        variant = None
        if item_data.variant_id is not None:
            variant = db.get(ProductVariant, item_data.variant_id)
            if not variant or variant.product_id != product.id:
                raise HTTPException(
                    status_code=400,
                    detail=f"Variant {item_data.variant_id} not found for product {product.id}"
                )
            requested[variant.id] += item_data.quantity
            if variant.inventory_quantity < requested[variant.id]:
                raise HTTPException(
                    status_code=400,
                    detail=f"{product.name} ({variant.title}) is out of stock"
                )

        lines.append(CheckoutLine(product=product, variant=variant, quantity=item_data.quantity))

    return lines


def prepare_checkout(db: Session, data: CheckoutRequest) -> Checkout:
    """Items total, shipping, promo discount and grand total for a cart"""
    lines = resolve_cart_lines(db, data)
    items_total = sum((line.line_total for line in lines), Decimal("0"))

    shipping = calculate_order_shipping(lines, data.delivery_zone)
    shipping_cost = charged_shipping_cost(shipping.cost)

    discount = None
    if data.promo_code:
        discount = evaluate_promo_code(db, data.promo_code, lines, items_total)
        if not discount.valid:
            raise HTTPException(
                status_code=400,
                detail={"error_kind": discount.error_kind.value, "error": discount.error}
            )

    discount_amount = discount.discount_amount if discount else Decimal("0")

    return Checkout(
        lines=lines,
        items_total=items_total,
        shipping=shipping,
        shipping_cost=shipping_cost,
        discount=discount,
        total_amount=calculate_order_total(items_total, discount_amount, shipping_cost),
    )


def reserve_stock(db: Session, variant_id: int, quantity: int) -> bool:
    """
    Take `quantity` units of a variant inside the caller's transaction.

    The stock check lives in the UPDATE itself, so concurrent orders cannot
    drive inventory below zero. Returns False when not enough is left.
    """
    stmt = (
        update(ProductVariant)
        .where(ProductVariant.id == variant_id, ProductVariant.inventory_quantity >= quantity)
        .values(inventory_quantity=ProductVariant.inventory_quantity - quantity, updated_at=utcnow())
    )
    return db.connection().execute(stmt).rowcount == 1


def create_order(db: Session, data: OrderCreate) -> Order:
    """Create an order in one transaction: order, items, stock, promo usage"""
    checkout = prepare_checkout(db, data)

    # Redeem exactly the record that was evaluated; a deleted code fails redemption
    promo_code_id = checkout.discount.promo_code_id if checkout.discount else None

    order = Order(
        order_number=generate_order_number(),
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        customer_email=data.customer_email,
        customer_address=data.customer_address,
        special_note=data.special_note,
        delivery_zone=data.delivery_zone,
        total_weight_grams=checkout.shipping.total_weight_grams,
        items_total=checkout.items_total,
        shipping_cost=checkout.shipping_cost,
        actual_shipping_cost=checkout.shipping.cost,
        promo_code_id=promo_code_id,
        promo_code=data.promo_code.strip().upper() if promo_code_id else None,
        promo_code_discount=checkout.discount_amount if promo_code_id else None,
        total_amount=checkout.total_amount,
    )
    db.add(order)
    db.flush()

    labels = {}
    sold = Counter()
    for line in checkout.lines:
        db.add(OrderItem(
            order_id=order.id,
            product_id=line.product.id,
            variant_id=line.variant.id if line.variant else None,
            product_name=line.product.name,
            variant_title=line.variant.title if line.variant else None,
            variant_sku=line.variant.sku if line.variant else None,
            quantity=line.quantity,
            product_price=line.unit_price,
            item_total=line.line_total,
        ))

        if line.variant is not None:
            labels[line.variant.id] = f"{line.product.name} ({line.variant.title})"
            sold[line.variant.id] += line.quantity

    for variant_id, quantity in sold.items():
        if not reserve_stock(db, variant_id, quantity):
            db.rollback()
            logger.warning("Variant %s sold out while order was being placed", variant_id)
            raise HTTPException(status_code=400, detail=f"{labels[variant_id]} is out of stock")

    if promo_code_id is not None and not redeem_promo_code(db, promo_code_id):
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error_kind": PromoErrorKind.USAGE_LIMIT_REACHED.value,
                "error": ERROR_MESSAGES[PromoErrorKind.USAGE_LIMIT_REACHED],
            }
        )

    db.commit()
    db.refresh(order)

    logger.info(
        "Order %s placed: items=%s discount=%s shipping=%s total=%s",
        order.order_number, order.items_total, checkout.discount_amount,
        order.shipping_cost, order.total_amount,
    )
    return order
