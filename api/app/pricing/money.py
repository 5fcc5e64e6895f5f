"""Decimal helpers for currency amounts."""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: object) -> Decimal:
    """Convert ``value`` to :class:`~decimal.Decimal` without float artefacts."""

    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc


def round_money(amount: Decimal) -> Decimal:
    """Round ``amount`` to cents using banker's rounding."""

    return amount.quantize(CENT, rounding=ROUND_HALF_EVEN)


def money_str(amount: Decimal) -> str:
    """Return the canonical two-decimal string used for hashing."""

    return str(round_money(amount))
