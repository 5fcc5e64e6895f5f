from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..routes_metrics import http_errors_total


def _route_group(path: str) -> str:
    """Return ``cart`` for ``/api/cart/price`` so labels stay low-cardinality."""
    parts = [p for p in path.split("/") if p]
    if len(parts) >= 2 and parts[0] == "api":
        return parts[1]
    return parts[0] if parts else "root"


class HttpErrorCounterMiddleware(BaseHTTPMiddleware):
    """Increment counter for HTTP error responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if 400 <= response.status_code < 600:
            http_errors_total.labels(
                route=_route_group(request.url.path), status=str(response.status_code)
            ).inc()
        return response
