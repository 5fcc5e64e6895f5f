"""Coupon eligibility and discount computation.

These helpers are shared by the coupon lookups, which own eligibility, and the
pricing engine, which only turns an eligible coupon into a discount amount.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from ..domain.coupons import Coupon, DiscountType, Eligibility
from .money import ZERO, round_money


def _aware(value: datetime) -> datetime:
    """Treat naive timestamps as UTC."""

    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def check_coupon(
    coupon: Coupon,
    *,
    subtotal: Decimal,
    store_id: str | None = None,
    now: datetime | None = None,
    user_uses: int | None = 0,
) -> Eligibility:
    """Return whether ``coupon`` applies to a cart.

    Checks run in a fixed order and the first failure is reported: active flag,
    validity window, store applicability, minimum subtotal, global usage cap and
    per-user usage cap. ``user_uses`` is ``None`` when no user is known, and
    coupons with a per-user limit then do not apply.
    """

    now = _aware(now or datetime.now(timezone.utc))

    if not coupon.is_active:
        return Eligibility(eligible=False, reason="INACTIVE", message=f"Coupon {coupon.code} is not active")
    if coupon.starts_at and now < _aware(coupon.starts_at):
        return Eligibility(
            eligible=False,
            reason="NOT_ACTIVE",
            message=f"Coupon {coupon.code} starts {coupon.starts_at.date()}",
        )
    if coupon.ends_at and now > _aware(coupon.ends_at):
        return Eligibility(
            eligible=False,
            reason="EXPIRED",
            message=f"Coupon {coupon.code} expired on {coupon.ends_at.date()}",
        )
    if coupon.applicable_stores and store_id not in coupon.applicable_stores:
        return Eligibility(
            eligible=False, reason="STORE", message="Coupon not valid for this store"
        )
    if subtotal < coupon.min_subtotal:
        return Eligibility(
            eligible=False,
            reason="MIN_SUBTOTAL",
            message=f"Minimum order value of {coupon.min_subtotal} required",
        )
    if coupon.max_uses is not None and coupon.uses >= coupon.max_uses:
        return Eligibility(
            eligible=False, reason="USAGE_CAP", message="Coupon usage limit exceeded"
        )
    if coupon.per_user_limit is not None and user_uses is None:
        return Eligibility(
            eligible=False, reason="USER_CAP", message=f"Sign in to use coupon {coupon.code}"
        )
    if coupon.per_user_limit is not None and user_uses >= coupon.per_user_limit:
        return Eligibility(
            eligible=False, reason="USER_CAP", message=f"Coupon {coupon.code} already used"
        )
    return Eligibility(eligible=True)


def coupon_discount(coupon: Coupon, subtotal: Decimal) -> Decimal:
    """Return the discount ``coupon`` gives on ``subtotal``.

    Percent coupons take ``value`` percent of the subtotal, fixed coupons take
    ``value``. ``max_discount`` caps either kind when set, and the result never
    exceeds the subtotal.
    """

    if coupon.discount_type is DiscountType.PERCENT:
        amount = subtotal * coupon.value / Decimal("100")
    else:
        amount = coupon.value
    if coupon.max_discount is not None:
        amount = min(amount, coupon.max_discount)
    amount = min(amount, subtotal)
    return max(round_money(amount), ZERO)
