"""Cart pricing core: line pricer, coupon discounts and the cart engine."""

from .engine import price_cart, summary_hash, verify_summary
from .line_items import LinePrice, price_line_item
from .money import CENT, round_money

__all__ = [
    "CENT",
    "LinePrice",
    "price_cart",
    "price_line_item",
    "round_money",
    "summary_hash",
    "verify_summary",
]
