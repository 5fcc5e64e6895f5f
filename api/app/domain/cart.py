"""Cart line items and the explicit cart state with its mutations.

A :class:`CartState` replaces the client-side global cart store: every
mutation takes a state and returns a new one, and the pricing engine never
holds state of its own. Lines with the same identity key are always merged.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Hashable, Iterable, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import ValidationError
from .catalog import MenuItem
from .coupons import normalize_code

MAX_INSTRUCTIONS_LENGTH = 500


class DeliveryMethod(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class AddonSelection(BaseModel):
    """Addons chosen from one addon group."""

    model_config = ConfigDict(frozen=True)

    group_id: str
    addon_ids: Tuple[str, ...] = ()

    @field_validator("addon_ids")
    @classmethod
    def _no_duplicates(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if len(value) != len(set(value)):
            raise ValueError("an addon can only be selected once per group")
        return value


class CartLineItem(BaseModel):
    """One requested item configuration and its quantity."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    quantity: int = Field(default=1, gt=0)
    variant_id: Optional[str] = None
    addons: Tuple[AddonSelection, ...] = ()
    special_instructions: str = Field(default="", max_length=MAX_INSTRUCTIONS_LENGTH)

    def addon_ids(self) -> FrozenSet[str]:
        return frozenset(a for sel in self.addons for a in sel.addon_ids)


def line_key(line: CartLineItem, item: MenuItem | None = None) -> Hashable:
    """Return the merge key for ``line``.

    When the catalog snapshot ``item`` is known, an omitted variant resolves to
    the item's default variant so both spellings merge together.
    """

    variant_id = line.variant_id
    if variant_id is None and item is not None:
        default = item.default_variant()
        variant_id = default.id if default else None
    return (line.item_id, variant_id, line.addon_ids())


def merge_lines(
    lines: Iterable[CartLineItem],
    items: Mapping[str, MenuItem] | None = None,
) -> Tuple[CartLineItem, ...]:
    """Merge lines with equal keys by summing their quantities.

    First-occurrence order is kept, as are the first non-empty special
    instructions.
    """

    merged: Dict[Hashable, CartLineItem] = {}
    for line in lines:
        key = line_key(line, (items or {}).get(line.item_id))
        existing = merged.get(key)
        if existing is None:
            merged[key] = line
            continue
        merged[key] = existing.model_copy(
            update={
                "quantity": existing.quantity + line.quantity,
                "special_instructions": existing.special_instructions
                or line.special_instructions,
            }
        )
    return tuple(merged.values())


class CartState(BaseModel):
    """Everything the pricing entry point needs about a cart."""

    model_config = ConfigDict(frozen=True)

    store_id: Optional[str] = None
    lines: Tuple[CartLineItem, ...] = ()
    delivery_method: DeliveryMethod = DeliveryMethod.PICKUP
    delivery_zone_id: Optional[str] = None
    coupon_code: Optional[str] = None
    tip: Decimal = Field(default=Decimal("0"), ge=0)


def _matches(
    line: CartLineItem,
    item_id: str,
    variant_id: str | None,
    addon_ids: Iterable[str] | None,
) -> bool:
    if line.item_id != item_id:
        return False
    if variant_id is not None and line.variant_id != variant_id:
        return False
    if addon_ids is not None and line.addon_ids() != frozenset(addon_ids):
        return False
    return True


def _resolve_variant(line: CartLineItem, item: MenuItem | None) -> CartLineItem:
    if item is None or line.variant_id is not None:
        return line
    default = item.default_variant()
    if default is None:
        return line
    return line.model_copy(update={"variant_id": default.id})


def add_item(
    state: CartState,
    line: CartLineItem,
    *,
    item: MenuItem,
    store_id: str | None = None,
) -> CartState:
    """Add ``line`` to the cart.

    The selection is validated against the catalog snapshot ``item`` first, so
    unavailable addons cannot be newly selected, and an omitted variant is
    stored as the item's default. Adding from a different store starts a fresh
    cart for that store.
    """

    from ..pricing.line_items import price_line_item

    price_line_item(item, line.variant_id, line.addons, line.quantity)
    line = _resolve_variant(line, item)

    if store_id and state.store_id and state.store_id != store_id:
        return state.model_copy(update={"store_id": store_id, "lines": (line,)})
    lines = tuple(
        _resolve_variant(existing, item) if existing.item_id == item.id else existing
        for existing in state.lines
    )
    return state.model_copy(
        update={
            "store_id": store_id or state.store_id,
            "lines": merge_lines(lines + (line,), {item.id: item}),
        }
    )


def remove_item(
    state: CartState,
    item_id: str,
    variant_id: str | None = None,
    addon_ids: Iterable[str] | None = None,
) -> CartState:
    """Remove matching lines; ``None`` filters match any variant or addons."""

    addon_ids = list(addon_ids) if addon_ids is not None else None
    lines = tuple(
        line
        for line in state.lines
        if not _matches(line, item_id, variant_id, addon_ids)
    )
    return state.model_copy(update={"lines": lines})


def update_quantity(
    state: CartState,
    item_id: str,
    quantity: int,
    variant_id: str | None = None,
    addon_ids: Iterable[str] | None = None,
    *,
    items: Mapping[str, MenuItem] | None = None,
) -> CartState:
    """Set the quantity of matching lines; zero or less removes them.

    ``items`` resolves omitted variants so the remaining lines merge by the
    variant they actually price as.
    """

    if quantity <= 0:
        return remove_item(state, item_id, variant_id, addon_ids)
    addon_ids = list(addon_ids) if addon_ids is not None else None
    lines = tuple(
        line.model_copy(update={"quantity": quantity})
        if _matches(line, item_id, variant_id, addon_ids)
        else line
        for line in state.lines
    )
    lines = tuple(_resolve_variant(line, (items or {}).get(line.item_id)) for line in lines)
    return state.model_copy(update={"lines": merge_lines(lines, items)})


def set_delivery_method(state: CartState, method: DeliveryMethod | str) -> CartState:
    return state.model_copy(update={"delivery_method": DeliveryMethod(method)})


def set_delivery_zone(state: CartState, zone_id: str | None) -> CartState:
    return state.model_copy(update={"delivery_zone_id": zone_id})


def apply_coupon(state: CartState, code: str | None) -> CartState:
    """Attach a normalised coupon code; blank codes detach it."""

    code = normalize_code(code) if code else None
    return state.model_copy(update={"coupon_code": code or None})


def set_tip(state: CartState, tip: Decimal | int | str) -> CartState:
    amount = Decimal(str(tip))
    if amount < 0:
        raise ValidationError(
            "TIP", "Tip cannot be negative", details={"tip": str(amount)}
        )
    return state.model_copy(update={"tip": amount})


def clear_cart(state: CartState) -> CartState:
    return CartState()


__all__ = [
    "MAX_INSTRUCTIONS_LENGTH",
    "AddonSelection",
    "CartLineItem",
    "CartState",
    "DeliveryMethod",
    "add_item",
    "apply_coupon",
    "clear_cart",
    "line_key",
    "merge_lines",
    "remove_item",
    "set_delivery_method",
    "set_delivery_zone",
    "set_tip",
    "update_quantity",
]
