"""Coupon rules as returned by the coupon lookup."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_code(code: str) -> str:
    """Return ``code`` trimmed and upper-cased."""

    return code.strip().upper()


class DiscountType(str, Enum):
    """How a coupon's ``value`` is interpreted."""

    PERCENT = "percent"
    FIXED = "fixed"


class Coupon(BaseModel):
    """Code-activated discount rule with its eligibility constraints."""

    model_config = ConfigDict(frozen=True)

    code: str
    discount_type: DiscountType
    value: Decimal = Field(ge=0)
    min_subtotal: Decimal = Field(default=Decimal("0"), ge=0)
    max_discount: Optional[Decimal] = Field(default=None, ge=0)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    max_uses: Optional[int] = Field(default=None, ge=1)
    per_user_limit: Optional[int] = Field(default=None, ge=1)
    uses: int = Field(default=0, ge=0)
    is_active: bool = True
    applicable_stores: FrozenSet[str] = frozenset()

    @field_validator("code")
    @classmethod
    def _normalize(cls, value: str) -> str:
        value = normalize_code(value)
        if not value:
            raise ValueError("coupon code must not be blank")
        return value


class Eligibility(BaseModel):
    """Outcome of an eligibility check.

    ``reason`` is a machine code (``INACTIVE``, ``NOT_ACTIVE``, ``EXPIRED``,
    ``STORE``, ``MIN_SUBTOTAL``, ``USAGE_CAP``, ``USER_CAP``, ``NOT_FOUND``)
    and is ``None`` when the coupon applies.
    """

    model_config = ConfigDict(frozen=True)

    eligible: bool
    reason: Optional[str] = None
    message: Optional[str] = None


__all__ = ["Coupon", "DiscountType", "Eligibility", "normalize_code"]
