import pathlib
import sys
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from api.app.domain import CartLineItem, Coupon, DiscountType, FeeType, MenuItem  # noqa: E402
from api.app.pricing import price_cart  # noqa: E402
from api.app.pricing.coupons import coupon_discount  # noqa: E402
from api.app.repos.catalog import InMemoryCatalog  # noqa: E402
from api.app.repos.coupons import InMemoryCoupons  # noqa: E402
from api.app.tax.rules import FeeRule, TaxRule  # noqa: E402

cents = st.integers(min_value=0, max_value=100_000).map(lambda c: Decimal(c) / 100)

# strategies for random carts and coupons
lines_strategy = st.lists(
    st.tuples(cents, st.integers(min_value=1, max_value=5)), min_size=1, max_size=5
)

coupon_strategy = st.builds(
    lambda kind, value, cap: Coupon(
        code="PROP",
        discount_type=kind,
        value=value,
        max_discount=cap,
    ),
    kind=st.sampled_from(list(DiscountType)),
    value=st.integers(min_value=0, max_value=500).map(Decimal),
    cap=st.one_of(st.none(), cents),
)


def _cart(lines):
    items = [
        MenuItem(id=f"i{n}", name=f"Item {n}", base_price=price)
        for n, (price, _) in enumerate(lines)
    ]
    cart = [CartLineItem(item_id=f"i{n}", quantity=qty) for n, (_, qty) in enumerate(lines)]
    return InMemoryCatalog(items), cart


@given(lines=lines_strategy, coupon=coupon_strategy, tip=cents)
def test_total_is_never_negative(lines, coupon, tip):
    catalog, cart = _cart(lines)
    summary = price_cart(
        cart,
        "pickup",
        catalog=catalog,
        coupons=InMemoryCoupons([coupon]),
        coupon_code="PROP",
        tip=tip,
        tax_rules=[TaxRule(name="Sales Tax", rate=Decimal("0.0875"))],
        fee_rules=[FeeRule(name="Service Fee", type=FeeType.PERCENTAGE, value=Decimal("0.03"))],
    )
    assert summary.total >= 0
    assert summary.discount_total <= summary.subtotal
    expected = (
        summary.subtotal
        - summary.discount_total
        + summary.tax_total
        + summary.fee_total
        + summary.delivery_fee
        + summary.tip
    )
    assert summary.total == max(expected, Decimal("0"))


@given(subtotal=cents, coupon=coupon_strategy)
def test_discount_respects_cap_and_subtotal(subtotal, coupon):
    discount = coupon_discount(coupon, subtotal)
    assert Decimal("0") <= discount <= subtotal
    if coupon.max_discount is not None:
        assert discount <= coupon.max_discount
