"""Domain models and helpers."""

from .order_status import OrderStatus, TRANSITIONS, can_transition
from .catalog import Addon, AddonGroup, DeliveryZone, MenuItem, Variant
from .coupons import Coupon, DiscountType, Eligibility, normalize_code
from .cart import AddonSelection, CartLineItem, CartState, DeliveryMethod
from .summary import (
    Address,
    CartSummary,
    DeliveryDetails,
    DiscountLine,
    FeeLine,
    FeeType,
    OrderSnapshot,
    PricedLine,
    TaxLine,
)

__all__ = [
    "Addon",
    "AddonGroup",
    "AddonSelection",
    "Address",
    "CartLineItem",
    "CartState",
    "CartSummary",
    "Coupon",
    "DeliveryDetails",
    "DeliveryMethod",
    "DeliveryZone",
    "DiscountLine",
    "DiscountType",
    "Eligibility",
    "FeeLine",
    "FeeType",
    "MenuItem",
    "OrderSnapshot",
    "OrderStatus",
    "PricedLine",
    "TRANSITIONS",
    "TaxLine",
    "Variant",
    "can_transition",
    "normalize_code",
]
