"""Priced cart summary and the frozen order snapshot."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .cart import DeliveryMethod
from .order_status import OrderStatus


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class VariantSnapshot(_Frozen):
    id: str
    name: str
    price_delta: Decimal


class AddonSnapshot(_Frozen):
    id: str
    group_id: str
    group_name: str
    name: str
    price_delta: Decimal


class PricedLine(_Frozen):
    """Cart line as priced, with names copied out of the catalog."""

    item_id: str
    name: str
    quantity: int
    variant: Optional[VariantSnapshot] = None
    addons: Tuple[AddonSnapshot, ...] = ()
    special_instructions: str = ""
    unit_price: Decimal
    total_price: Decimal


class DiscountLine(_Frozen):
    kind: str = "coupon"
    name: str
    amount: Decimal
    code: Optional[str] = None


class TaxLine(_Frozen):
    name: str
    rate: Decimal
    amount: Decimal


class FeeType(str, Enum):
    FLAT = "flat"
    PERCENTAGE = "percentage"


class FeeLine(_Frozen):
    name: str
    type: FeeType
    amount: Decimal


class CartSummary(_Frozen):
    """Itemised, hashed result of :func:`api.app.pricing.engine.price_cart`."""

    lines: Tuple[PricedLine, ...] = ()
    subtotal: Decimal
    discounts: Tuple[DiscountLine, ...] = ()
    taxes: Tuple[TaxLine, ...] = ()
    fees: Tuple[FeeLine, ...] = ()
    delivery_method: DeliveryMethod = DeliveryMethod.PICKUP
    delivery_fee: Decimal = Decimal("0")
    tip: Decimal = Decimal("0")
    total: Decimal
    hash: str = ""

    @property
    def discount_total(self) -> Decimal:
        return sum((d.amount for d in self.discounts), Decimal("0"))

    @property
    def tax_total(self) -> Decimal:
        return sum((t.amount for t in self.taxes), Decimal("0"))

    @property
    def fee_total(self) -> Decimal:
        return sum((f.amount for f in self.fees), Decimal("0"))

    @property
    def coupon_code(self) -> Optional[str]:
        for discount in self.discounts:
            if discount.code:
                return discount.code
        return None


class Address(_Frozen):
    street: str
    city: str
    state: str
    zip_code: str
    instructions: Optional[str] = None


class DeliveryDetails(_Frozen):
    """Where the order goes: an address for delivery, nothing for pickup."""

    method: DeliveryMethod
    address: Optional[Address] = None
    instructions: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _address_for_delivery(self) -> "DeliveryDetails":
        if self.method is DeliveryMethod.DELIVERY and self.address is None:
            raise ValueError("delivery orders need an address")
        return self


class OrderSnapshot(_Frozen):
    """Immutable record of a placed order and the price agreed to."""

    order_no: str
    store_id: Optional[str] = None
    user_id: Optional[str] = None
    summary: CartSummary
    delivery: DeliveryDetails
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime
    updated_at: datetime

    @property
    def is_pickup(self) -> bool:
        return self.delivery.method is DeliveryMethod.PICKUP


__all__ = [
    "Address",
    "AddonSnapshot",
    "CartSummary",
    "DeliveryDetails",
    "DiscountLine",
    "FeeLine",
    "FeeType",
    "OrderSnapshot",
    "PricedLine",
    "TaxLine",
    "VariantSnapshot",
]
