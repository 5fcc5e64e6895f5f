import json
import logging
import pathlib
import sys

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from api.app.middlewares.logging import _redact
from api.app.middlewares.request_id import request_id_ctx
from api.app.obs.logging import JsonFormatter, RequestIdFilter


def _record(msg, **extra):
    record = logging.LogRecord("pricing", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_redacts_contact_details():
    token = request_id_ctx.set("req-1")
    try:
        record = _record("receipt for jane@example.com +1 555 123 4567", code="MIN_ORDER")
        RequestIdFilter().filter(record)
        data = json.loads(JsonFormatter().format(record))
    finally:
        request_id_ctx.reset(token)
    assert data["req_id"] == "req-1"
    assert data["code"] == "MIN_ORDER"
    assert data["logger"] == "pricing"
    assert "jane@example.com" not in data["msg"]
    assert "555" not in data["msg"]


def test_request_body_redaction():
    body = {
        "delivery": {
            "method": "delivery",
            "address": {"street": "1 Main St", "city": "Springfield", "zip_code": "62701"},
            "instructions": "ring twice",
        }
    }
    redacted = _redact(body)
    address = redacted["delivery"]["address"]
    assert address["street"] == "***"
    assert address["zip_code"] == "***"
    assert address["city"] == "Springfield"
    assert redacted["delivery"]["instructions"] == "***"
