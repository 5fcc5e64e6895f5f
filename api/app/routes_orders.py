"""Order placement and lifecycle routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Response
from pydantic import BaseModel

from .db import get_session_factory
from .domain.cart import CartState
from .domain.order_status import OrderStatus
from .domain.summary import DeliveryDetails
from .repos_sqlalchemy import orders_repo_sql
from .routes_metrics import coupon_redemptions_total, orders_created_total
from .services.checkout_service import place_order
from .services.pricing_service import SessionFactory
from .utils.responses import ok

router = APIRouter()


class OrderCreate(BaseModel):
    cart: CartState
    delivery: DeliveryDetails
    expected_hash: str | None = None


class StatusUpdate(BaseModel):
    status: OrderStatus


@router.post("/api/orders")
async def create_order(
    payload: OrderCreate,
    response: Response,
    x_user: str | None = Header(default=None),
    idempotency_key: str | None = Header(default=None),
    factory: SessionFactory = Depends(get_session_factory),
) -> dict:
    snapshot, created = await place_order(
        factory,
        payload.cart,
        payload.delivery,
        user_id=x_user,
        expected_hash=payload.expected_hash,
        idempotency_key=idempotency_key,
    )
    if created:
        response.status_code = 201
        orders_created_total.inc()
        if snapshot.summary.coupon_code:
            coupon_redemptions_total.inc()
    return ok(snapshot.model_dump(mode="json"))


@router.get("/api/orders/{order_no}")
async def read_order(
    order_no: str, factory: SessionFactory = Depends(get_session_factory)
) -> dict:
    async with factory() as session:
        snapshot = await orders_repo_sql.get_order(session, order_no)
    return ok(snapshot.model_dump(mode="json"))


@router.patch("/api/orders/{order_no}/status")
async def change_status(
    order_no: str,
    payload: StatusUpdate,
    factory: SessionFactory = Depends(get_session_factory),
) -> dict:
    async with factory() as session:
        snapshot = await orders_repo_sql.update_status(session, order_no, payload.status)
    return ok({"order_no": snapshot.order_no, "status": snapshot.status.value})


__all__ = ["router"]
