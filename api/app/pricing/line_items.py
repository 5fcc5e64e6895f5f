"""Server-side pricing of a single cart line.

The price of a line is ``base_price + variant delta + addon deltas`` times the
quantity. Selections are validated against the catalog snapshot and any
violation raises :class:`~api.app.errors.ValidationError`; nothing is clamped
or silently dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..domain.cart import AddonSelection
from ..domain.catalog import MenuItem
from ..domain.summary import AddonSnapshot, VariantSnapshot
from ..errors import ValidationError

Selections = Union[Iterable[AddonSelection], Mapping[str, Iterable[str]], None]


@dataclass(frozen=True)
class LinePrice:
    """Unrounded unit and total price plus what was priced."""

    unit_price: Decimal
    total_price: Decimal
    variant: Optional[VariantSnapshot]
    addons: Tuple[AddonSnapshot, ...]


def _group_selections(item: MenuItem, selections: Selections) -> Dict[str, List[str]]:
    if selections is None:
        return {}
    if isinstance(selections, Mapping):
        pairs = [(gid, list(ids)) for gid, ids in selections.items()]
    else:
        pairs = [(sel.group_id, list(sel.addon_ids)) for sel in selections]

    grouped: Dict[str, List[str]] = {}
    for group_id, addon_ids in pairs:
        chosen = grouped.setdefault(group_id, [])
        for addon_id in addon_ids:
            if addon_id in chosen:
                raise ValidationError(
                    "DUPLICATE_ADDON",
                    f"Addon {addon_id!r} selected more than once",
                    details={"item_id": item.id, "group_id": group_id, "addon_id": addon_id},
                )
            chosen.append(addon_id)
    return grouped


def price_line_item(
    item: MenuItem,
    variant_id: str | None,
    addon_selections: Selections,
    quantity: int,
    *,
    allow_unavailable: bool = False,
) -> LinePrice:
    """Return the unit and total price for one configured item.

    Parameters
    ----------
    item:
        Catalog snapshot with variants and addon groups inlined.
    variant_id:
        Selected variant. ``None`` picks the default variant (first flagged
        default, else first listed); items without variants ignore it.
    addon_selections:
        :class:`AddonSelection` objects or a mapping of group id to addon ids.
    quantity:
        Positive number of units.
    allow_unavailable:
        Accept an unavailable item or addons. Used when repricing lines that
        were validated when first added to a cart.
    """

    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError(
            "QUANTITY",
            "Quantity must be a positive integer",
            details={"item_id": item.id, "quantity": quantity},
        )
    if not item.is_available and not allow_unavailable:
        raise ValidationError(
            "ITEM_UNAVAILABLE",
            f"{item.name} is currently unavailable",
            details={"item_id": item.id},
        )

    unit_price = item.base_price

    variant = item.default_variant() if variant_id is None else item.variant(variant_id)
    if variant_id is not None and variant is None:
        raise ValidationError(
            "UNKNOWN_VARIANT",
            f"Variant {variant_id!r} does not exist for {item.name}",
            details={"item_id": item.id, "variant_id": variant_id},
        )
    variant_snapshot = None
    if variant is not None:
        unit_price += variant.price_delta
        variant_snapshot = VariantSnapshot(
            id=variant.id, name=variant.name, price_delta=variant.price_delta
        )

    grouped = _group_selections(item, addon_selections)
    for group_id, addon_ids in grouped.items():
        group = item.group(group_id)
        if group is None:
            raise ValidationError(
                "UNKNOWN_ADDON_GROUP",
                f"Addon group {group_id!r} is not offered for {item.name}",
                details={"item_id": item.id, "group_id": group_id},
            )
        for addon_id in addon_ids:
            if group.addon(addon_id) is None:
                raise ValidationError(
                    "UNKNOWN_ADDON",
                    f"Addon {addon_id!r} is not offered for {item.name}",
                    details={"item_id": item.id, "group_id": group_id, "addon_id": addon_id},
                )

    addons: List[AddonSnapshot] = []
    for group in item.addon_groups:
        chosen = grouped.get(group.id, [])
        if not group.min <= len(chosen) <= group.max:
            raise ValidationError(
                "ADDON_COUNT",
                f"Choose between {group.min} and {group.max} from {group.name}",
                details={
                    "item_id": item.id,
                    "group_id": group.id,
                    "min": group.min,
                    "max": group.max,
                    "selected": len(chosen),
                },
            )
        for addon_id in chosen:
            addon = group.addon(addon_id)
            if not addon.is_available and not allow_unavailable:
                raise ValidationError(
                    "ADDON_UNAVAILABLE",
                    f"{addon.name} is currently unavailable",
                    details={"item_id": item.id, "group_id": group.id, "addon_id": addon.id},
                )
            unit_price += addon.price_delta
            addons.append(
                AddonSnapshot(
                    id=addon.id,
                    group_id=group.id,
                    group_name=group.name,
                    name=addon.name,
                    price_delta=addon.price_delta,
                )
            )

    if unit_price < 0:
        raise ValidationError(
            "NEGATIVE_PRICE",
            f"Configured price for {item.name} is below zero",
            details={"item_id": item.id, "unit_price": str(unit_price)},
        )

    return LinePrice(
        unit_price=unit_price,
        total_price=unit_price * quantity,
        variant=variant_snapshot,
        addons=tuple(addons),
    )
