from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select, col, func
from typing import Optional
from datetime import datetime, date, time, timezone
from math import ceil
from app.api.deps import get_db, admin_required
from app.core.config import settings
from app.core.timeutils import utcnow
from app.models.user import AdminUser
from app.models.order import Order, OrderStatus
from app.schemas.order import (
    CheckoutRequest, CheckoutQuoteResponse, OrderCreate, OrderResponse,
    OrderListResponse, OrderStatusUpdate, OrderTrackResponse, convert_bangla_numerals,
)
from app.services.orders import create_order, prepare_checkout

router = APIRouter(tags=["orders"])


# === Public: checkout ===

@router.post("/api/orders/quote", response_model=CheckoutQuoteResponse)
def checkout_quote(data: CheckoutRequest, db: Session = Depends(get_db)):
    """Totals for the checkout page, nothing is saved"""
    checkout = prepare_checkout(db, data)
    
    return CheckoutQuoteResponse(
        items_total=checkout.items_total,
        shipping_cost=checkout.shipping_cost,
        actual_shipping_cost=checkout.shipping.cost,
        free_delivery=settings.FREE_DELIVERY_CAMPAIGN,
        total_weight_grams=checkout.shipping.total_weight_grams,
        discount=checkout.discount,
        discount_amount=checkout.discount_amount,
        total_amount=checkout.total_amount,
    )


@router.post("/api/orders", response_model=OrderResponse, status_code=201)
def create_new_order(data: OrderCreate, db: Session = Depends(get_db)):
    """Place an order (guest checkout)"""
    return create_order(db, data)


@router.get("/api/orders/track", response_model=OrderTrackResponse)
def track_order(
    order_number: str = Query(..., min_length=1),
    db: Session = Depends(get_db)
):
    """Order status by order number"""
    order = db.exec(select(Order).where(Order.order_number == order_number.strip().upper())).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


# === Admin: order management ===

@router.get("/api/admin/orders", response_model=OrderListResponse)
def admin_list_orders(
    status: Optional[OrderStatus] = Query(None),
    search: Optional[str] = Query(None, alias="phone"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: AdminUser = Depends(admin_required)
):
    """Orders filtered by status, phone/order number and date range (admin)"""
    conditions = []

    if status:
        conditions.append(Order.status == status)

    if search:
        search = convert_bangla_numerals(search).strip()
        conditions.append(
            col(Order.customer_phone).contains(search) |
            col(Order.order_number).contains(search.upper())
        )

    if date_from:
        conditions.append(Order.created_at >= datetime.combine(date_from, time.min, tzinfo=timezone.utc))

    if date_to:
        conditions.append(Order.created_at <= datetime.combine(date_to, time.max, tzinfo=timezone.utc))

    total = db.exec(select(func.count()).select_from(Order).where(*conditions)).one()
    orders = db.exec(
        select(Order)
        .where(*conditions)
        .order_by(col(Order.created_at).desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    ).all()

    return OrderListResponse(
        items=[OrderResponse.model_validate(order) for order in orders],
        total=total,
        page=page,
        page_size=page_size,
        pages=ceil(total / page_size) if total else 0,
    )


@router.get("/api/admin/orders/{order_id}", response_model=OrderResponse)
def admin_get_order(
    order_id: int,
    db: Session = Depends(get_db),
    _: AdminUser = Depends(admin_required)
):
    """Order details (admin)"""
    order = db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    
    return order


@router.patch("/api/admin/orders/{order_id}", response_model=OrderResponse)
def admin_update_order(
    order_id: int,
    data: OrderStatusUpdate,
    db: Session = Depends(get_db),
    _: AdminUser = Depends(admin_required)
):
    """Update order status / payment flag (admin)"""
    order = db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    
    if data.status is not None:
        order.status = data.status
    
    if data.is_paid is not None:
        order.is_paid = data.is_paid
    
    order.updated_at = utcnow()
    
    db.add(order)
    db.commit()
    db.refresh(order)
    
    return order
