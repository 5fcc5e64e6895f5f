"""Cart pricing routes.

The client sends its whole cart state on every call; the server holds no
cart of its own and prices from fresh catalog, coupon and zone lookups.
"""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Header, Query

from config import get_settings

from .db import get_session_factory
from .domain.cart import CartState
from .pricing.money import money_str
from .routes_metrics import carts_priced_total, coupons_ignored_total
from .services.pricing_service import SessionFactory, price_cart_state, tip_presets
from .utils.responses import ok

router = APIRouter()


@router.post("/api/cart/price")
async def price_cart(
    payload: CartState,
    x_user: str | None = Header(default=None),
    factory: SessionFactory = Depends(get_session_factory),
) -> dict:
    summary = await price_cart_state(factory, payload, user_id=x_user)
    carts_priced_total.inc()
    if payload.coupon_code and summary.coupon_code is None:
        coupons_ignored_total.inc()
    return ok(summary.model_dump(mode="json"))


@router.get("/api/cart/tip-presets")
async def get_tip_presets(subtotal: Decimal = Query(ge=0)) -> dict:
    presets = tip_presets(subtotal, get_settings().tip_preset_percents)
    return ok(
        [{"percent": p["percent"], "amount": money_str(p["amount"])} for p in presets]
    )


__all__ = ["router"]
