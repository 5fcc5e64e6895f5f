"""Tax and fee rules applied after the discount.

Amounts are rounded per line to cents with banker's rounding, so a summary's
total is the exact sum of the lines it displays.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List

from pydantic import BaseModel, ConfigDict, Field

from ..domain.summary import FeeLine, FeeType, TaxLine
from ..pricing.money import round_money


class TaxRule(BaseModel):
    """Named tax with a fractional rate, e.g. ``0.0875`` for 8.75%."""

    model_config = ConfigDict(frozen=True)

    name: str
    rate: Decimal = Field(ge=0, le=1)


class FeeRule(BaseModel):
    """Flat amount or fraction of the subtotal charged as a fee."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: FeeType = FeeType.FLAT
    value: Decimal = Field(ge=0)


def apply_taxes(taxable: Decimal, rules: Iterable[TaxRule]) -> List[TaxLine]:
    """Return one tax line per rule computed on ``taxable``."""

    return [
        TaxLine(name=rule.name, rate=rule.rate, amount=round_money(taxable * rule.rate))
        for rule in rules
    ]


def apply_fees(subtotal: Decimal, rules: Iterable[FeeRule]) -> List[FeeLine]:
    """Return one fee line per rule.

    Percentage fees are a fraction of the gross ``subtotal``; they do not
    depend on discounts or taxes.
    """

    lines: List[FeeLine] = []
    for rule in rules:
        if rule.type is FeeType.PERCENTAGE:
            amount = subtotal * rule.value
        else:
            amount = rule.value
        lines.append(FeeLine(name=rule.name, type=rule.type, amount=round_money(amount)))
    return lines


__all__ = ["TaxRule", "FeeRule", "apply_taxes", "apply_fees"]
