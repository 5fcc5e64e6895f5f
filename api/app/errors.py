"""Exception taxonomy for cart pricing and order placement.

Every error carries a machine readable ``code``, a human message, optional
structured ``details`` (line index, item id, group id, constraint) and an
optional ``hint`` so the UI can render a specific, actionable message. The
``status_code`` attribute is used by the HTTP layer in :mod:`api.app.main`.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict


class PricingError(Exception):
    """Base class for all errors raised by the pricing core."""

    status_code = 400

    def __init__(
        self,
        code: str,
        message: str,
        *,
        details: Dict[str, Any] | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.hint = hint


class ValidationError(PricingError):
    """Malformed line item selection or cart input."""

    status_code = 422


class MinimumOrderNotMetError(PricingError):
    """Delivery subtotal is below the zone's minimum order."""

    def __init__(self, subtotal: Decimal, minimum: Decimal, zone_id: str) -> None:
        super().__init__(
            "MIN_ORDER",
            f"Minimum order for delivery is {minimum}, cart subtotal is {subtotal}",
            details={
                "zone_id": zone_id,
                "subtotal": str(subtotal),
                "minimum_order": str(minimum),
                "shortfall": str(minimum - subtotal),
            },
            hint="Add more items or switch to pickup",
        )
        self.subtotal = subtotal
        self.minimum = minimum
        self.zone_id = zone_id


class NotFoundError(PricingError):
    """A lookup collaborator has no record for the requested key."""

    status_code = 404

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(
            "NOT_FOUND", f"{kind} {key!r} not found", details={kind: key}
        )
        self.kind = kind
        self.key = key


class LookupServiceError(PricingError, LookupError):
    """Catalog or coupon lookup failed for reasons other than a missing key."""

    status_code = 503


class CouponUnavailableError(PricingError):
    """Coupon could not be redeemed while placing the order."""

    status_code = 409


class PriceChangedError(PricingError):
    """The repriced cart no longer matches the summary shown to the customer."""

    status_code = 409


class InvalidTransitionError(PricingError):
    """Order status change not permitted from the current status."""

    status_code = 409


__all__ = [
    "PricingError",
    "ValidationError",
    "MinimumOrderNotMetError",
    "NotFoundError",
    "LookupServiceError",
    "CouponUnavailableError",
    "PriceChangedError",
    "InvalidTransitionError",
]
