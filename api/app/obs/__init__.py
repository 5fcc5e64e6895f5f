"""Observability helpers."""

from .logging import configure_logging
from .queries import add_query_logger

__all__ = ["add_query_logger", "configure_logging"]
