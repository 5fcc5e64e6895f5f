"""Cart pricing engine.

:func:`price_cart` turns cart lines plus delivery, coupon, tip and rule inputs
into an itemised :class:`~api.app.domain.summary.CartSummary`. The steps run in
a fixed order because later steps depend on earlier totals:

1. fetch catalog snapshots and merge duplicate lines
2. price every line and sum the subtotal
3. resolve the coupon (ineligible or unknown codes are ignored, never raised)
4. delivery fee and zone minimum
5. taxes on the discounted subtotal
6. fees, independent of discount and tax
7. tip as supplied
8. grand total, floored at zero
9. content hash

The function is pure apart from reading the lookups; calling it twice with the
same inputs returns equal summaries with equal hashes.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Sequence

from ..domain.cart import CartLineItem, DeliveryMethod, merge_lines
from ..domain.catalog import DeliveryZone, MenuItem
from ..domain.summary import CartSummary, DiscountLine, PricedLine
from ..errors import MinimumOrderNotMetError, NotFoundError, ValidationError
from ..tax import rules
from .coupons import coupon_discount
from .line_items import price_line_item
from .money import ZERO, money_str, round_money, to_decimal

if TYPE_CHECKING:  # pragma: no cover
    from ..repos.catalog import CatalogRepo
    from ..repos.coupons import CouponRepo

logger = logging.getLogger("pricing")


def _fetch_items(catalog: "CatalogRepo", lines: Sequence[CartLineItem]) -> Dict[str, MenuItem]:
    items: Dict[str, MenuItem] = {}
    for index, line in enumerate(lines):
        if line.item_id in items:
            continue
        try:
            items[line.item_id] = catalog.get_item(line.item_id)
        except NotFoundError as exc:
            raise ValidationError(
                "UNKNOWN_ITEM",
                f"Item {line.item_id!r} is no longer on the menu",
                details={"line": index, "item_id": line.item_id},
                hint="Remove the item from your cart",
            ) from exc
    return items


def _resolve_discount(
    coupons: "CouponRepo | None",
    code: str | None,
    subtotal: Decimal,
    *,
    store_id: str | None,
    user_id: str | None,
    now: datetime,
) -> List[DiscountLine]:
    if not code or coupons is None:
        return []
    try:
        coupon = coupons.get_coupon(code)
    except NotFoundError:
        logger.info("coupon ignored code=%s reason=NOT_FOUND", code)
        return []
    eligibility = coupons.check_eligibility(coupon, user_id, store_id, subtotal, now=now)
    if not eligibility.eligible:
        logger.info("coupon ignored code=%s reason=%s", coupon.code, eligibility.reason)
        return []
    amount = coupon_discount(coupon, subtotal)
    return [DiscountLine(kind="coupon", name=f"Coupon: {coupon.code}", amount=amount, code=coupon.code)]


def _hash_payload(summary: CartSummary) -> bytes:
    lines = sorted(
        (
            {
                "item_id": line.item_id,
                "variant": line.variant.id if line.variant else None,
                "addons": sorted(a.id for a in line.addons),
                "quantity": line.quantity,
                "unit_price": money_str(line.unit_price),
                "total_price": money_str(line.total_price),
            }
            for line in summary.lines
        ),
        key=lambda entry: (entry["item_id"], entry["variant"] or "", entry["addons"]),
    )
    payload = {
        "lines": lines,
        "subtotal": money_str(summary.subtotal),
        "discounts": [
            {"name": d.name, "code": d.code, "amount": money_str(d.amount)}
            for d in summary.discounts
        ],
        "taxes": [
            {"name": t.name, "rate": str(t.rate), "amount": money_str(t.amount)}
            for t in summary.taxes
        ],
        "fees": [
            {"name": f.name, "type": f.type.value, "amount": money_str(f.amount)}
            for f in summary.fees
        ],
        "delivery_method": summary.delivery_method.value,
        "delivery_fee": money_str(summary.delivery_fee),
        "tip": money_str(summary.tip),
        "total": money_str(summary.total),
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()


def summary_hash(summary: CartSummary, secret: str | None = None) -> str:
    """Return the content hash of ``summary`` (HMAC-SHA256 when ``secret`` is set)."""

    body = _hash_payload(summary)
    if secret:
        return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hashlib.sha256(body).hexdigest()


def verify_summary(summary: CartSummary, secret: str | None = None) -> bool:
    """Return ``True`` if ``summary.hash`` matches its content."""

    return hmac.compare_digest(summary.hash, summary_hash(summary, secret))


def price_cart(
    lines: Sequence[CartLineItem],
    delivery_method: DeliveryMethod | str,
    *,
    catalog: "CatalogRepo",
    coupons: "CouponRepo | None" = None,
    delivery_zone: DeliveryZone | None = None,
    coupon_code: str | None = None,
    tip: Decimal | int | str = 0,
    tax_rules: Sequence[rules.TaxRule] = (),
    fee_rules: Sequence[rules.FeeRule] = (),
    store_id: str | None = None,
    user_id: str | None = None,
    now: datetime | None = None,
    hash_secret: str | None = None,
    allow_unavailable: bool = False,
) -> CartSummary:
    """Price ``lines`` and return the itemised summary.

    Raises
    ------
    ValidationError
        A line is malformed, references an unknown item, the tip is negative
        or delivery was requested without a zone.
    MinimumOrderNotMetError
        Delivery subtotal is below the zone's minimum order.
    LookupServiceError
        Propagated from the catalog or coupon lookup.
    """

    method = DeliveryMethod(delivery_method)
    now = now or datetime.now(timezone.utc)
    tip_amount = to_decimal(tip)
    if tip_amount < 0:
        raise ValidationError("TIP", "Tip cannot be negative", details={"tip": str(tip_amount)})

    items = _fetch_items(catalog, lines)
    merged = merge_lines(lines, items)

    priced: List[PricedLine] = []
    subtotal = ZERO
    for index, line in enumerate(merged):
        try:
            price = price_line_item(
                items[line.item_id],
                line.variant_id,
                line.addons,
                line.quantity,
                allow_unavailable=allow_unavailable,
            )
        except ValidationError as exc:
            exc.details.setdefault("line", index)
            raise
        subtotal += price.total_price
        priced.append(
            PricedLine(
                item_id=line.item_id,
                name=items[line.item_id].name,
                quantity=line.quantity,
                variant=price.variant,
                addons=price.addons,
                special_instructions=line.special_instructions,
                unit_price=round_money(price.unit_price),
                total_price=round_money(price.total_price),
            )
        )
    subtotal = round_money(subtotal)

    discounts = _resolve_discount(
        coupons, coupon_code, subtotal, store_id=store_id, user_id=user_id, now=now
    )
    discount_total = min(sum((d.amount for d in discounts), ZERO), subtotal)

    delivery_fee = ZERO
    if method is DeliveryMethod.DELIVERY:
        if delivery_zone is None:
            raise ValidationError(
                "DELIVERY_ZONE",
                "Choose a delivery zone",
                hint="Select a delivery area or switch to pickup",
            )
        if subtotal < delivery_zone.minimum_order:
            raise MinimumOrderNotMetError(subtotal, delivery_zone.minimum_order, delivery_zone.id)
        delivery_fee = round_money(delivery_zone.fee)

    taxes = rules.apply_taxes(subtotal - discount_total, tax_rules)
    fees = rules.apply_fees(subtotal, fee_rules)
    tip_amount = round_money(tip_amount)

    total = (
        (subtotal - discount_total)
        + sum((t.amount for t in taxes), ZERO)
        + sum((f.amount for f in fees), ZERO)
        + delivery_fee
        + tip_amount
    )
    total = max(total, ZERO)

    summary = CartSummary(
        lines=tuple(priced),
        subtotal=subtotal,
        discounts=tuple(discounts),
        taxes=tuple(taxes),
        fees=tuple(fees),
        delivery_method=method,
        delivery_fee=delivery_fee,
        tip=tip_amount,
        total=round_money(total),
    )
    summary = summary.model_copy(update={"hash": summary_hash(summary, hash_secret)})
    logger.debug(
        "cart priced lines=%d subtotal=%s total=%s hash=%s",
        len(priced),
        summary.subtotal,
        summary.total,
        summary.hash[:12],
    )
    return summary


__all__ = ["price_cart", "summary_hash", "verify_summary"]
