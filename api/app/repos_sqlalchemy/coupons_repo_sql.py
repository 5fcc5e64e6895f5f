"""SQLAlchemy-backed coupon loading and redemption."""

from __future__ import annotations

import logging

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.coupons import Coupon, normalize_code
from ..errors import CouponUnavailableError, LookupServiceError
from ..models_tenant import Coupon as CouponRow
from ..models_tenant import CouponRedemption
from ..repos.coupons import InMemoryCoupons

logger = logging.getLogger("orders")


def _to_coupon(row: CouponRow) -> Coupon:
    return Coupon(
        code=row.code,
        discount_type=row.discount_type,
        value=row.value,
        min_subtotal=row.min_subtotal or 0,
        max_discount=row.max_discount,
        starts_at=row.starts_at,
        ends_at=row.ends_at,
        max_uses=row.max_uses,
        per_user_limit=row.per_user_limit,
        uses=row.uses or 0,
        is_active=row.is_active,
        applicable_stores=frozenset(row.applicable_stores or []),
    )


async def _user_uses(session: AsyncSession, coupon_id: int, user_id: str) -> int:
    return await session.scalar(
        select(func.count(CouponRedemption.id)).where(
            CouponRedemption.coupon_id == coupon_id,
            CouponRedemption.user_id == user_id,
        )
    )


async def load_coupons(
    session: AsyncSession, code: str | None, user_id: str | None = None
) -> InMemoryCoupons:
    """Return a coupon lookup holding ``code`` and ``user_id``'s use count.

    A missing or blank code yields an empty lookup, which the engine treats as
    an unknown coupon.
    """

    if not code:
        return InMemoryCoupons()
    code = normalize_code(code)
    try:
        row = await session.scalar(select(CouponRow).where(CouponRow.code == code))
        if row is None:
            return InMemoryCoupons()
        user_uses = {}
        if user_id is not None:
            user_uses[(code, user_id)] = await _user_uses(session, row.id, user_id)
    except SQLAlchemyError as exc:
        raise LookupServiceError("COUPON_UNAVAILABLE", "Coupon lookup failed") from exc
    return InMemoryCoupons([_to_coupon(row)], user_uses=user_uses)


async def redeem(
    session: AsyncSession, code: str, *, user_id: str | None, order_no: str
) -> None:
    """Record one use of ``code`` for ``order_no`` inside the caller's transaction.

    The global cap is enforced by a conditional increment whose row lock also
    serialises the per-user check for concurrent checkouts on the same code.
    The caller commits or rolls back together with the order insert.
    """

    code = normalize_code(code)
    result = await session.execute(
        update(CouponRow)
        .where(
            CouponRow.code == code,
            CouponRow.is_active.is_(True),
            or_(CouponRow.max_uses.is_(None), CouponRow.uses < CouponRow.max_uses),
        )
        .values(uses=CouponRow.uses + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise CouponUnavailableError(
            "USAGE_CAP",
            f"Coupon {code} is no longer available",
            details={"code": code},
            hint="Reprice the cart",
        )
    row = await session.scalar(select(CouponRow).where(CouponRow.code == code))
    if row.per_user_limit is not None:
        if user_id is None or await _user_uses(session, row.id, user_id) >= row.per_user_limit:
            raise CouponUnavailableError(
                "USER_CAP",
                f"Coupon {code} already used",
                details={"code": code},
                hint="Reprice the cart",
            )
    session.add(CouponRedemption(coupon_id=row.id, user_id=user_id, order_no=order_no))
    logger.info("coupon redeemed code=%s order=%s", code, order_no)


async def save_coupon(session: AsyncSession, coupon: Coupon) -> None:
    """Insert or replace the row for ``coupon``."""

    row = await session.scalar(select(CouponRow).where(CouponRow.code == coupon.code))
    if row is None:
        row = CouponRow(code=coupon.code)
        session.add(row)
    row.discount_type = coupon.discount_type.value
    row.value = coupon.value
    row.min_subtotal = coupon.min_subtotal
    row.max_discount = coupon.max_discount
    row.starts_at = coupon.starts_at
    row.ends_at = coupon.ends_at
    row.max_uses = coupon.max_uses
    row.per_user_limit = coupon.per_user_limit
    row.uses = coupon.uses
    row.is_active = coupon.is_active
    row.applicable_stores = sorted(coupon.applicable_stores)
    await session.commit()
