from .promo_code import (
    PromoErrorKind, CartLine, DiscountResult,
    PromoValidateRequest, PromoValidateResponse,
    PromoCodeCreate, PromoCodeUpdate, PromoCodeResponse, PromoCodeListResponse,
)
from .shipping import ShippingCalculation, ShippingQuoteRequest, ShippingQuoteResponse
from .order import OrderCreate, CheckoutRequest, CheckoutQuoteResponse, OrderResponse

__all__ = [
    "PromoErrorKind", "CartLine", "DiscountResult",
    "PromoValidateRequest", "PromoValidateResponse",
    "PromoCodeCreate", "PromoCodeUpdate", "PromoCodeResponse", "PromoCodeListResponse",
    "ShippingCalculation", "ShippingQuoteRequest", "ShippingQuoteResponse",
    "OrderCreate", "CheckoutRequest", "CheckoutQuoteResponse", "OrderResponse",
]
