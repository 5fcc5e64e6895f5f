"""Place an order from a cart state."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Tuple

from config import Settings, get_settings

from ..domain.cart import CartState
from ..domain.summary import DeliveryDetails, OrderSnapshot
from ..errors import PriceChangedError
from ..repos_sqlalchemy import orders_repo_sql
from .order_snapshot import freeze_order
from .pricing_service import SessionFactory, price_cart_state

logger = logging.getLogger("orders")


async def place_order(
    factory: SessionFactory,
    state: CartState,
    delivery: DeliveryDetails,
    *,
    user_id: str | None = None,
    expected_hash: str | None = None,
    idempotency_key: str | None = None,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> Tuple[OrderSnapshot, bool]:
    """Reprice ``state``, freeze it and persist the order.

    ``expected_hash`` is the hash of the summary the customer saw. If the cart
    prices differently now, :class:`PriceChangedError` carries the new summary
    so the client can show it and ask again. Returns ``(snapshot, created)``
    as :func:`orders_repo_sql.save_order` does.
    """

    settings = settings or get_settings()
    if idempotency_key:
        async with factory() as session:
            existing = await orders_repo_sql.find_by_idempotency_key(session, idempotency_key)
        if existing is not None:
            return existing, False
    summary = await price_cart_state(
        factory,
        state,
        user_id=user_id,
        now=now,
        settings=settings,
        priced_hash=expected_hash,
    )
    if expected_hash is not None and expected_hash != summary.hash:
        logger.info("price changed expected=%s actual=%s", expected_hash[:12], summary.hash[:12])
        raise PriceChangedError(
            "PRICE_CHANGED",
            "Cart prices changed since it was last shown",
            details={"summary": summary.model_dump(mode="json")},
            hint="Review the updated total and place the order again",
        )
    snapshot = freeze_order(
        summary, delivery, store_id=state.store_id, user_id=user_id, now=now
    )
    async with factory() as session:
        return await orders_repo_sql.save_order(
            session, snapshot, idempotency_key=idempotency_key
        )


__all__ = ["place_order"]
