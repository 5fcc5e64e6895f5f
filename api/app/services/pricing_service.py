"""Async pricing entry point used by the HTTP layer.

Catalog, coupon and zone data are loaded concurrently, each on its own
session, and the pure engine in :mod:`api.app.pricing.engine` is then run on
the loaded snapshots.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Sequence

import anyio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config import Settings, get_settings

from ..domain.cart import CartState, DeliveryMethod
from ..domain.catalog import DeliveryZone
from ..domain.coupons import normalize_code
from ..domain.summary import CartSummary, FeeType
from ..errors import NotFoundError, ValidationError
from ..pricing.coupons import coupon_discount
from ..pricing.engine import price_cart
from ..pricing.money import ZERO, round_money, to_decimal
from ..repos_sqlalchemy import catalog_repo_sql, coupons_repo_sql
from ..tax.rules import FeeRule, TaxRule

SessionFactory = async_sessionmaker[AsyncSession]

logger = logging.getLogger("pricing")

# line errors that a previously priced cart may still be accepted with
UNAVAILABLE_CODES = frozenset({"ITEM_UNAVAILABLE", "ADDON_UNAVAILABLE"})


def default_rules(settings: Settings) -> tuple[list[TaxRule], list[FeeRule]]:
    """Return the tax and fee rules configured in ``settings``."""

    taxes = [TaxRule(name=settings.sales_tax_name, rate=settings.sales_tax_rate)]
    fees = []
    if settings.service_fee_rate:
        fees.append(
            FeeRule(
                name=settings.service_fee_name,
                type=FeeType.PERCENTAGE,
                value=settings.service_fee_rate,
            )
        )
    return taxes, fees


def tip_presets(subtotal: Decimal | str, percents: Sequence[int]) -> List[Dict[str, Any]]:
    """Return ``{"percent", "amount"}`` suggestions for ``subtotal``."""

    subtotal = to_decimal(subtotal)
    if subtotal < 0:
        raise ValidationError("SUBTOTAL", "Subtotal cannot be negative")
    return [
        {"percent": p, "amount": round_money(subtotal * Decimal(p) / Decimal("100"))}
        for p in percents
    ]


async def _load_catalog(factory: SessionFactory, item_ids):
    async with factory() as session:
        return await catalog_repo_sql.load_catalog(session, item_ids)


async def _load_coupons(factory: SessionFactory, code, user_id):
    async with factory() as session:
        return await coupons_repo_sql.load_coupons(session, code, user_id)


async def _load_zone(factory: SessionFactory, zone_id) -> DeliveryZone | None:
    if not zone_id:
        return None
    async with factory() as session:
        try:
            return await catalog_repo_sql.get_zone(session, zone_id)
        except NotFoundError as exc:
            raise ValidationError(
                "DELIVERY_ZONE",
                f"Unknown delivery zone {zone_id!r}",
                details={"zone_id": zone_id},
                hint="Select a delivery area or switch to pickup",
            ) from exc


async def _load_all(factory: SessionFactory, state: CartState, user_id, zone_id):
    loaded: Dict[str, Any] = {}

    async def run(name, loader, *args):
        loaded[name] = await loader(factory, *args)

    # a failing load cancels its siblings
    try:
        async with anyio.create_task_group() as tg:
            tg.start_soon(run, "catalog", _load_catalog, [line.item_id for line in state.lines])
            tg.start_soon(run, "coupons", _load_coupons, state.coupon_code, user_id)
            tg.start_soon(run, "zone", _load_zone, zone_id)
    except BaseExceptionGroup as group:
        if len(group.exceptions) == 1:
            raise group.exceptions[0] from None
        raise
    return loaded["catalog"], loaded["coupons"], loaded["zone"]


async def price_cart_state(
    factory: SessionFactory,
    state: CartState,
    *,
    user_id: str | None = None,
    now: datetime | None = None,
    settings: Settings | None = None,
    priced_hash: str | None = None,
) -> CartSummary:
    """Load everything ``state`` references and price it.

    Unavailable items and addons are rejected. When ``priced_hash`` is the
    signed hash of a summary this server produced for the same cart, lines
    that became unavailable since are priced as selected instead. Unsigned
    hashes can be computed by anyone and never relax the check.
    """

    settings = settings or get_settings()
    zone_id = state.delivery_zone_id if state.delivery_method is DeliveryMethod.DELIVERY else None
    catalog, coupons, zone = await _load_all(factory, state, user_id, zone_id)
    tax_rules, fee_rules = default_rules(settings)

    def price(allow_unavailable: bool) -> CartSummary:
        return price_cart(
            state.lines,
            state.delivery_method,
            catalog=catalog,
            coupons=coupons,
            delivery_zone=zone,
            coupon_code=state.coupon_code,
            tip=state.tip,
            tax_rules=tax_rules,
            fee_rules=fee_rules,
            store_id=state.store_id,
            user_id=user_id,
            now=now,
            hash_secret=settings.pricing_hash_secret,
            allow_unavailable=allow_unavailable,
        )

    try:
        return price(False)
    except ValidationError as exc:
        if not (priced_hash and settings.pricing_hash_secret) or exc.code not in UNAVAILABLE_CODES:
            raise
        summary = price(True)
        if summary.hash != priced_hash:
            raise
        logger.info("repriced unavailable selection as shown code=%s", exc.code)
        return summary


async def validate_coupon(
    factory: SessionFactory,
    code: str,
    *,
    subtotal: Decimal | str,
    store_id: str | None = None,
    user_id: str | None = None,
    now: datetime | None = None,
) -> Dict[str, Any]:
    """Report whether ``code`` applies and the discount it would give."""

    code = normalize_code(code)
    subtotal = to_decimal(subtotal)
    async with factory() as session:
        coupons = await coupons_repo_sql.load_coupons(session, code, user_id)
    try:
        coupon = coupons.get_coupon(code)
    except NotFoundError:
        return {
            "code": code,
            "eligible": False,
            "reason": "NOT_FOUND",
            "message": "Invalid coupon code",
            "discount": ZERO,
        }
    eligibility = coupons.check_eligibility(coupon, user_id, store_id, subtotal, now=now)
    discount = coupon_discount(coupon, subtotal) if eligibility.eligible else ZERO
    return {
        "code": code,
        "eligible": eligibility.eligible,
        "reason": eligibility.reason,
        "message": eligibility.message,
        "discount": discount,
        "discount_type": coupon.discount_type.value,
        "value": coupon.value,
    }


__all__ = ["default_rules", "price_cart_state", "tip_presets", "validate_coupon"]
