import pathlib
import sys

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from api.app.middlewares.http_errors import _route_group


def test_metrics_endpoint(client):
    client.post("/api/cart/price", json={"lines": [{"item_id": "soda"}], "coupon_code": "NOPE"})
    client.get("/api/orders/ORD-NOPE")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    body = resp.text
    assert "carts_priced_total" in body
    assert "coupons_ignored_total" in body
    assert "orders_created_total" in body
    assert "coupon_redemptions_total" in body
    assert 'pricing_failures_total{code="NOT_FOUND"}' in body
    assert 'http_errors_total{route="orders",status="404"}' in body


def test_route_group():
    assert _route_group("/api/cart/price") == "cart"
    assert _route_group("/metrics") == "metrics"
    assert _route_group("/") == "root"
