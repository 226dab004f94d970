from .user import AdminUser
from .product import Product, ProductVariant
from .promo_code import PromoCode, DiscountType
from .order import Order, OrderItem, OrderStatus, ShippingZone

__all__ = [
    "AdminUser",
    "Product", "ProductVariant",
    "PromoCode", "DiscountType",
    "Order", "OrderItem", "OrderStatus", "ShippingZone",
]
