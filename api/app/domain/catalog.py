"""Catalog snapshots consumed by the pricing core.

Instances are frozen: a :class:`MenuItem` handed to the pricer is a snapshot
of the catalog at lookup time, with variants and addon groups inlined.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Variant(BaseModel):
    """Size or style choice with its own price delta."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price_delta: Decimal = Decimal("0")
    is_default: bool = False


class Addon(BaseModel):
    """Single selectable extra inside an addon group."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price_delta: Decimal = Decimal("0")
    is_available: bool = True


class AddonGroup(BaseModel):
    """Named set of addons with selection bounds."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    min: int = Field(default=0, ge=0)
    max: int = Field(default=1, ge=0)
    required: bool = False
    addons: Tuple[Addon, ...] = ()

    @model_validator(mode="after")
    def _check_bounds(self) -> "AddonGroup":
        if self.max < self.min:
            raise ValueError(f"addon group {self.id}: max {self.max} < min {self.min}")
        if self.required and self.min < 1:
            raise ValueError(f"addon group {self.id}: required groups need min >= 1")
        return self

    def addon(self, addon_id: str) -> Optional[Addon]:
        for addon in self.addons:
            if addon.id == addon_id:
                return addon
        return None


class MenuItem(BaseModel):
    """Fully resolved menu item snapshot."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    base_price: Decimal = Field(ge=0)
    variants: Tuple[Variant, ...] = ()
    addon_groups: Tuple[AddonGroup, ...] = ()
    is_available: bool = True
    store_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "MenuItem":
        variant_ids = [v.id for v in self.variants]
        if len(variant_ids) != len(set(variant_ids)):
            raise ValueError(f"item {self.id}: duplicate variant ids")
        addon_ids = [a.id for g in self.addon_groups for a in g.addons]
        if len(addon_ids) != len(set(addon_ids)):
            raise ValueError(f"item {self.id}: duplicate addon ids")
        group_ids = [g.id for g in self.addon_groups]
        if len(group_ids) != len(set(group_ids)):
            raise ValueError(f"item {self.id}: duplicate addon group ids")
        return self

    def default_variant(self) -> Optional[Variant]:
        """Return the first variant flagged default, else the first variant."""

        for variant in self.variants:
            if variant.is_default:
                return variant
        return self.variants[0] if self.variants else None

    def variant(self, variant_id: str) -> Optional[Variant]:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    def group(self, group_id: str) -> Optional[AddonGroup]:
        for group in self.addon_groups:
            if group.id == group_id:
                return group
        return None


class DeliveryZone(BaseModel):
    """Delivery area with its fee and minimum order."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    fee: Decimal = Field(default=Decimal("0"), ge=0)
    minimum_order: Decimal = Field(default=Decimal("0"), ge=0)


__all__ = ["Variant", "Addon", "AddonGroup", "MenuItem", "DeliveryZone"]
