"""Service layer helpers for the API."""

from .order_snapshot import freeze_order, generate_order_no, transition

__all__ = ["freeze_order", "generate_order_no", "transition"]
