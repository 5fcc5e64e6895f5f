# routes_metrics.py

"""Prometheus metrics and /metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

# Counters
carts_priced_total = Counter("carts_priced_total", "Total successful cart pricings")
carts_priced_total.inc(0)

pricing_failures_total = Counter(
    "pricing_failures_total", "Cart pricings rejected", ["code"]
)

coupons_ignored_total = Counter(
    "coupons_ignored_total", "Coupon codes attached to a cart that did not apply"
)
coupons_ignored_total.inc(0)

orders_created_total = Counter("orders_created_total", "Total orders created")
orders_created_total.inc(0)

coupon_redemptions_total = Counter(
    "coupon_redemptions_total", "Total coupon redemptions recorded"
)
coupon_redemptions_total.inc(0)

http_errors_total = Counter(
    "http_errors_total", "Total HTTP errors", ["route", "status"]
)

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
