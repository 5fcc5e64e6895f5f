import pathlib
import sys

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

PIZZA = {
    "item_id": "pizza",
    "variant_id": "large",
    "quantity": 2,
    "addons": [
        {"group_id": "crust", "addon_ids": ["thin"]},
        {"group_id": "toppings", "addon_ids": ["cheese"]},
    ],
}


def _cart(**kwargs):
    cart = {"store_id": "s1", "lines": [PIZZA]}
    cart.update(kwargs)
    return cart


def test_price_cart(client):
    resp = client.post("/api/cart/price", json=_cart(coupon_code="welcome10", tip="2.00"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    data = body["data"]
    assert data["subtotal"] == "46.98"
    assert data["lines"][0]["unit_price"] == "23.49"
    assert data["discounts"][0]["code"] == "WELCOME10"
    assert data["total"] == "49.39"
    assert len(data["hash"]) == 64
    assert resp.headers["X-Request-ID"]


def test_price_cart_rejects_bad_input(client):
    resp = client.post("/api/cart/price", json=_cart(lines=[{"item_id": "soda", "quantity": 0}]))
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "VALIDATION"

    resp = client.post("/api/cart/price", json=_cart(lines=[{"item_id": "ghost"}]))
    assert resp.status_code == 422
    error = resp.json()["error"]
    assert error["code"] == "UNKNOWN_ITEM"
    assert error["details"]["line"] == 0


def test_delivery_minimum(client):
    cart = _cart(
        lines=[{"item_id": "wrap"}],
        delivery_method="delivery",
        delivery_zone_id="downtown",
    )
    resp = client.post("/api/cart/price", json=cart)
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "MIN_ORDER"
    assert error["hint"] == "Add more items or switch to pickup"

    cart["delivery_method"] = "pickup"
    resp = client.post("/api/cart/price", json=cart)
    assert resp.status_code == 200
    assert resp.json()["data"]["delivery_fee"] == "0"


def test_tip_presets(client):
    resp = client.get("/api/cart/tip-presets", params={"subtotal": "40"})
    assert resp.status_code == 200
    assert [p["amount"] for p in resp.json()["data"]] == ["0.00", "6.00", "7.20", "8.00", "10.00"]


def test_validate_coupon(client):
    resp = client.post("/api/coupons/validate", json={"code": "freeship", "subtotal": "40"})
    data = resp.json()["data"]
    assert data["eligible"] is True
    assert data["discount"] == "2.99"

    resp = client.post("/api/coupons/validate", json={"code": "OLD10", "subtotal": "40"})
    data = resp.json()["data"]
    assert data["eligible"] is False
    assert data["reason"] == "EXPIRED"


def test_order_lifecycle(client):
    priced = client.post("/api/cart/price", json=_cart()).json()["data"]
    payload = {
        "cart": _cart(),
        "delivery": {"method": "pickup"},
        "expected_hash": priced["hash"],
    }
    headers = {"Idempotency-Key": "abc", "X-User": "u1"}
    resp = client.post("/api/orders", json=payload, headers=headers)
    assert resp.status_code == 201
    order = resp.json()["data"]
    assert order["order_no"].startswith("ORD-")
    assert order["summary"]["total"] == priced["total"]

    again = client.post("/api/orders", json=payload, headers=headers)
    assert again.status_code == 200
    assert again.json()["data"]["order_no"] == order["order_no"]

    resp = client.get(f"/api/orders/{order['order_no']}")
    assert resp.json()["data"]["status"] == "pending"

    resp = client.patch(f"/api/orders/{order['order_no']}/status", json={"status": "confirmed"})
    assert resp.json()["data"]["status"] == "confirmed"

    resp = client.patch(f"/api/orders/{order['order_no']}/status", json={"status": "delivered"})
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "INVALID_TRANSITION"


def test_order_with_stale_price(client):
    payload = {"cart": _cart(), "delivery": {"method": "pickup"}, "expected_hash": "0" * 64}
    resp = client.post("/api/orders", json=payload)
    assert resp.status_code == 409
    error = resp.json()["error"]
    assert error["code"] == "PRICE_CHANGED"
    assert error["details"]["summary"]["subtotal"] == "46.98"


def test_missing_order(client):
    resp = client.get("/api/orders/ORD-NOPE")
    assert resp.status_code == 404
    assert resp.json()["ok"] is False


def test_unavailable_selection_cannot_be_priced_or_ordered(client):
    truffle = {
        "item_id": "pizza",
        "addons": [
            {"group_id": "crust", "addon_ids": ["thin"]},
            {"group_id": "toppings", "addon_ids": ["truffle"]},
        ],
    }
    for line, code in [(truffle, "ADDON_UNAVAILABLE"), ({"item_id": "special"}, "ITEM_UNAVAILABLE")]:
        resp = client.post("/api/cart/price", json=_cart(lines=[line]))
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == code

        payload = {"cart": _cart(lines=[line]), "delivery": {"method": "pickup"}}
        resp = client.post("/api/orders", json=payload, headers={"X-User": "u1"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == code
