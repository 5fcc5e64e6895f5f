"""Coupon validation route used by the cart's coupon field."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel, Field

from .db import get_session_factory
from .pricing.money import money_str
from .services.pricing_service import SessionFactory, validate_coupon
from .utils.responses import ok

router = APIRouter()


class CouponValidate(BaseModel):
    code: str = Field(min_length=1)
    subtotal: Decimal = Field(ge=0)
    store_id: str | None = None


@router.post("/api/coupons/validate")
async def coupons_validate(
    payload: CouponValidate,
    x_user: str | None = Header(default=None),
    factory: SessionFactory = Depends(get_session_factory),
) -> dict:
    result = await validate_coupon(
        factory,
        payload.code,
        subtotal=payload.subtotal,
        store_id=payload.store_id,
        user_id=x_user,
    )
    result["discount"] = money_str(result["discount"])
    if "value" in result:
        result["value"] = str(result["value"])
    return ok(result)


__all__ = ["router"]
