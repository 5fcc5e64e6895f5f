"""Freeze a priced cart into an immutable order record.

The snapshot owns a deep copy of the summary, with names and price deltas
copied out of the catalog, so later catalog, coupon or tax changes never alter
what a placed order displays. Only the status may change afterwards.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from ..domain import can_transition
from ..domain.order_status import OrderStatus
from ..domain.summary import CartSummary, DeliveryDetails, OrderSnapshot
from ..errors import InvalidTransitionError, ValidationError


def generate_order_no() -> str:
    """Return a new order number such as ``ORD-3F9A1C07B2``."""

    return f"ORD-{uuid.uuid4().hex[:10].upper()}"


def freeze_order(
    summary: CartSummary,
    delivery: DeliveryDetails,
    *,
    store_id: str | None = None,
    user_id: str | None = None,
    order_no: str | None = None,
    now: datetime | None = None,
) -> OrderSnapshot:
    """Return the order snapshot for ``summary``.

    ``delivery.method`` must be the method the summary was priced with, since
    the delivery fee is part of the agreed price.
    """

    if delivery.method is not summary.delivery_method:
        raise ValidationError(
            "DELIVERY_METHOD",
            "Delivery method differs from the priced cart",
            details={
                "priced": summary.delivery_method.value,
                "requested": delivery.method.value,
            },
            hint="Reprice the cart before placing the order",
        )
    now = now or datetime.now(timezone.utc)
    return OrderSnapshot(
        order_no=order_no or generate_order_no(),
        store_id=store_id,
        user_id=user_id,
        summary=summary.model_copy(deep=True),
        delivery=delivery.model_copy(deep=True),
        status=OrderStatus.PENDING,
        created_at=now,
        updated_at=now,
    )


def transition(
    snapshot: OrderSnapshot, status: OrderStatus | str, *, now: datetime | None = None
) -> OrderSnapshot:
    """Return ``snapshot`` moved to ``status``; pricing is carried over as is."""

    status = OrderStatus(status)
    if not can_transition(snapshot.status, status):
        raise InvalidTransitionError(
            "INVALID_TRANSITION",
            f"Cannot move order from {snapshot.status.value} to {status.value}",
            details={"order_no": snapshot.order_no, "from": snapshot.status.value, "to": status.value},
        )
    return snapshot.model_copy(
        update={"status": status, "updated_at": now or datetime.now(timezone.utc)}
    )


__all__ = ["freeze_order", "generate_order_no", "transition"]
