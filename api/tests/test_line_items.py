import pathlib
import sys

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from decimal import Decimal

import pytest

from api.app.domain import AddonSelection
from api.app.errors import ValidationError
from api.app.pricing import price_line_item


def _crust(addon_id="thin"):
    return AddonSelection(group_id="crust", addon_ids=(addon_id,))


def test_large_with_extra_cheese(menu):
    price = price_line_item(
        menu["pizza"],
        "large",
        [_crust(), AddonSelection(group_id="toppings", addon_ids=("cheese",))],
        2,
    )
    assert price.unit_price == Decimal("23.49")
    assert price.total_price == Decimal("46.98")
    assert price.variant.name == "Large"
    assert [a.name for a in price.addons] == ["Thin", "Extra Cheese"]


def test_default_variant_when_omitted(menu):
    price = price_line_item(menu["pizza"], None, {"crust": ["stuffed"]}, 1)
    assert price.variant.id == "small"
    assert price.unit_price == Decimal("19.99")


def test_item_without_variants(menu):
    price = price_line_item(menu["soda"], None, None, 3)
    assert price.variant is None
    assert price.total_price == Decimal("7.50")


def test_required_group_must_be_selected(menu):
    with pytest.raises(ValidationError) as exc:
        price_line_item(menu["pizza"], "small", None, 1)
    assert exc.value.code == "ADDON_COUNT"
    assert exc.value.details["group_id"] == "crust"
    assert exc.value.details["selected"] == 0


def test_too_many_addons_is_rejected_not_clamped(menu):
    with pytest.raises(ValidationError) as exc:
        price_line_item(
            menu["pizza"],
            "small",
            {"crust": ["thin"], "toppings": ["cheese", "olives", "truffle"]},
            1,
            allow_unavailable=True,
        )
    assert exc.value.code == "ADDON_COUNT"
    assert exc.value.details["max"] == 2


def test_unknown_variant(menu):
    with pytest.raises(ValidationError) as exc:
        price_line_item(menu["pizza"], "family", [_crust()], 1)
    assert exc.value.code == "UNKNOWN_VARIANT"


def test_addon_from_other_group(menu):
    with pytest.raises(ValidationError) as exc:
        price_line_item(menu["pizza"], "small", {"crust": ["cheese"]}, 1)
    assert exc.value.code == "UNKNOWN_ADDON"
    assert exc.value.details["addon_id"] == "cheese"


@pytest.mark.parametrize("addon_ids", [[], ["thin"]])
def test_unknown_group_is_rejected(menu, addon_ids):
    with pytest.raises(ValidationError) as exc:
        price_line_item(menu["pizza"], "small", {"crust": ["thin"], "sauce": addon_ids}, 1)
    assert exc.value.code == "UNKNOWN_ADDON_GROUP"
    assert exc.value.details["group_id"] == "sauce"


def test_duplicate_addon_in_mapping(menu):
    with pytest.raises(ValidationError) as exc:
        price_line_item(menu["pizza"], "small", {"crust": ["thin", "thin"]}, 1)
    assert exc.value.code == "DUPLICATE_ADDON"


def test_unavailable_addon(menu):
    selections = {"crust": ["thin"], "toppings": ["truffle"]}
    with pytest.raises(ValidationError) as exc:
        price_line_item(menu["pizza"], "small", selections, 1)
    assert exc.value.code == "ADDON_UNAVAILABLE"

    price = price_line_item(menu["pizza"], "small", selections, 1, allow_unavailable=True)
    assert price.unit_price == Decimal("22.99")


def test_unavailable_item(menu):
    with pytest.raises(ValidationError) as exc:
        price_line_item(menu["special"], None, None, 1)
    assert exc.value.code == "ITEM_UNAVAILABLE"


@pytest.mark.parametrize("quantity", [0, -1])
def test_quantity_must_be_positive(menu, quantity):
    with pytest.raises(ValidationError) as exc:
        price_line_item(menu["soda"], None, None, quantity)
    assert exc.value.code == "QUANTITY"
