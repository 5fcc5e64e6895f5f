"""SQLAlchemy-backed repository helpers for orders.

An order row stores the frozen :class:`~api.app.domain.summary.CartSummary`
and delivery details as JSON, so historical prices and names are retained
even if the menu, coupons or tax rules change later. Only ``status`` and
``updated_at`` are ever written after insertion.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.order_status import OrderStatus
from ..domain.summary import CartSummary, DeliveryDetails, OrderSnapshot
from ..errors import CouponUnavailableError, NotFoundError
from ..models_tenant import Order
from ..services.order_snapshot import transition
from . import coupons_repo_sql

logger = logging.getLogger("orders")


def _utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_snapshot(row: Order) -> OrderSnapshot:
    return OrderSnapshot(
        order_no=row.order_no,
        store_id=row.store_id,
        user_id=row.user_id,
        summary=CartSummary.model_validate(row.pricing),
        delivery=DeliveryDetails.model_validate(row.delivery),
        status=OrderStatus(row.status),
        created_at=_utc(row.created_at),
        updated_at=_utc(row.updated_at),
    )


async def _by_key(session: AsyncSession, idempotency_key: str) -> Order | None:
    return await session.scalar(
        select(Order).where(Order.idempotency_key == idempotency_key)
    )


async def find_by_idempotency_key(
    session: AsyncSession, idempotency_key: str
) -> OrderSnapshot | None:
    """Return the order previously placed with ``idempotency_key``, if any."""

    row = await _by_key(session, idempotency_key)
    return _to_snapshot(row) if row is not None else None


async def save_order(
    session: AsyncSession,
    snapshot: OrderSnapshot,
    *,
    idempotency_key: str | None = None,
) -> Tuple[OrderSnapshot, bool]:
    """Persist ``snapshot`` and redeem its coupon in one transaction.

    Returns ``(snapshot, created)``. When ``idempotency_key`` was already used
    the previously stored order is returned with ``created`` set to ``False``
    and no coupon use is recorded.
    """

    if idempotency_key:
        existing = await _by_key(session, idempotency_key)
        if existing is not None:
            return _to_snapshot(existing), False

    summary = snapshot.summary
    try:
        if summary.coupon_code:
            await coupons_repo_sql.redeem(
                session,
                summary.coupon_code,
                user_id=snapshot.user_id,
                order_no=snapshot.order_no,
            )
        session.add(
            Order(
                order_no=snapshot.order_no,
                store_id=snapshot.store_id,
                user_id=snapshot.user_id,
                status=snapshot.status.value,
                delivery_method=snapshot.delivery.method.value,
                total=summary.total,
                pricing=summary.model_dump(mode="json"),
                delivery=snapshot.delivery.model_dump(mode="json"),
                summary_hash=summary.hash,
                idempotency_key=idempotency_key,
                created_at=snapshot.created_at,
                updated_at=snapshot.updated_at,
            )
        )
        await session.commit()
    except CouponUnavailableError:
        await session.rollback()
        raise
    except IntegrityError:
        await session.rollback()
        if idempotency_key:
            existing = await _by_key(session, idempotency_key)
            if existing is not None:
                return _to_snapshot(existing), False
        raise
    logger.info("order created order=%s total=%s", snapshot.order_no, summary.total)
    return snapshot, True


async def get_order(session: AsyncSession, order_no: str) -> OrderSnapshot:
    """Return the stored snapshot for ``order_no``."""

    row = await session.scalar(select(Order).where(Order.order_no == order_no))
    if row is None:
        raise NotFoundError("order", order_no)
    return _to_snapshot(row)


async def update_status(
    session: AsyncSession,
    order_no: str,
    status: OrderStatus | str,
    *,
    now: datetime | None = None,
) -> OrderSnapshot:
    """Move ``order_no`` to ``status`` if the transition is allowed."""

    row = await session.scalar(select(Order).where(Order.order_no == order_no))
    if row is None:
        raise NotFoundError("order", order_no)
    snapshot = transition(_to_snapshot(row), status, now=now)
    row.status = snapshot.status.value
    row.updated_at = snapshot.updated_at
    await session.commit()
    logger.info("order status order=%s status=%s", order_no, row.status)
    return snapshot


__all__ = ["find_by_idempotency_key", "get_order", "save_order", "update_status"]
