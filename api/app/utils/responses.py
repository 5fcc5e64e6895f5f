from typing import Any, Dict

from ..errors import PricingError


def ok(data: Any) -> Dict[str, Any]:
    """Return a success envelope."""
    return {"ok": True, "data": data}


def err(
    code: int | str,
    message: str,
    details: Dict[str, Any] | None = None,
    hint: str | None = None,
) -> Dict[str, Any]:
    """Return an error envelope."""
    from ..middlewares.request_id import request_id_ctx

    error: Dict[str, Any] = {"code": code, "message": message}
    if hint:
        error["hint"] = hint
    if details:
        error["details"] = details

    return {"ok": False, "request_id": request_id_ctx.get(None), "error": error}


def pricing_err(exc: PricingError) -> Dict[str, Any]:
    """Return the error envelope for a :class:`PricingError`."""
    return err(exc.code, exc.message, details=exc.details, hint=exc.hint)
