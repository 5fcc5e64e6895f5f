"""Shared fixtures for API tests: a small menu, coupons and a seeded database."""
import pathlib
import sys

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from datetime import datetime, timezone
from decimal import Decimal

import anyio
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from api.app.db import create_session_factory, get_engine, get_session_factory, init_models
from api.app.domain import (
    Addon,
    AddonGroup,
    Coupon,
    DeliveryZone,
    DiscountType,
    MenuItem,
    Variant,
)
from api.app.repos.catalog import InMemoryCatalog
from api.app.repos.coupons import InMemoryCoupons
from api.app.repos_sqlalchemy import catalog_repo_sql, coupons_repo_sql

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _menu() -> list[MenuItem]:
    pizza = MenuItem(
        id="pizza",
        name="Margherita",
        base_price=Decimal("16.99"),
        store_id="s1",
        variants=[
            Variant(id="small", name="Small", price_delta=Decimal("0"), is_default=True),
            Variant(id="large", name="Large", price_delta=Decimal("4.00")),
        ],
        addon_groups=[
            AddonGroup(
                id="crust",
                name="Crust",
                min=1,
                max=1,
                required=True,
                addons=[
                    Addon(id="thin", name="Thin"),
                    Addon(id="stuffed", name="Stuffed", price_delta=Decimal("3.00")),
                ],
            ),
            AddonGroup(
                id="toppings",
                name="Toppings",
                min=0,
                max=2,
                addons=[
                    Addon(id="cheese", name="Extra Cheese", price_delta=Decimal("2.50")),
                    Addon(id="olives", name="Olives", price_delta=Decimal("1.00")),
                    Addon(
                        id="truffle",
                        name="Truffle",
                        price_delta=Decimal("6.00"),
                        is_available=False,
                    ),
                ],
            ),
        ],
    )
    return [
        pizza,
        MenuItem(id="soda", name="Soda", base_price=Decimal("2.50"), store_id="s1"),
        MenuItem(id="wrap", name="Wrap", base_price=Decimal("10.00"), store_id="s1"),
        MenuItem(id="bowl", name="Grain Bowl", base_price=Decimal("20.00"), store_id="s1"),
        MenuItem(id="platter", name="Party Platter", base_price=Decimal("50.00"), store_id="s1"),
        MenuItem(
            id="special",
            name="Chef Special",
            base_price=Decimal("12.00"),
            store_id="s1",
            is_available=False,
        ),
    ]


def _coupons() -> list[Coupon]:
    return [
        Coupon(
            code="WELCOME10",
            discount_type=DiscountType.PERCENT,
            value=Decimal("10"),
            min_subtotal=Decimal("25"),
            max_discount=Decimal("5.00"),
        ),
        Coupon(
            code="FREESHIP",
            discount_type=DiscountType.FIXED,
            value=Decimal("2.99"),
            min_subtotal=Decimal("30"),
        ),
        Coupon(code="BIG50", discount_type=DiscountType.FIXED, value=Decimal("50")),
        Coupon(
            code="OLD10",
            discount_type=DiscountType.PERCENT,
            value=Decimal("10"),
            ends_at=datetime(2020, 1, 1, tzinfo=timezone.utc),
        ),
        Coupon(
            code="ONCE",
            discount_type=DiscountType.FIXED,
            value=Decimal("1.00"),
            per_user_limit=1,
        ),
        Coupon(
            code="LAST",
            discount_type=DiscountType.FIXED,
            value=Decimal("1.00"),
            max_uses=1,
        ),
    ]


def _zones() -> list[DeliveryZone]:
    return [
        DeliveryZone(id="downtown", name="Downtown", fee=Decimal("3.99"), minimum_order=Decimal("15.00"))
    ]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def menu() -> dict[str, MenuItem]:
    return {item.id: item for item in _menu()}


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog(_menu())


@pytest.fixture
def coupons() -> InMemoryCoupons:
    return InMemoryCoupons(_coupons())


@pytest.fixture
def zone() -> DeliveryZone:
    return _zones()[0]


async def build_session_factory(path: pathlib.Path):
    """Create a file-backed SQLite database seeded with the test menu."""

    engine = get_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    await init_models(engine)
    factory = create_session_factory(engine)
    async with factory() as session:
        for item in _menu():
            await catalog_repo_sql.save_item(session, item)
        for delivery_zone in _zones():
            await catalog_repo_sql.save_zone(session, delivery_zone, store_id="s1")
        for coupon in _coupons():
            await coupons_repo_sql.save_coupon(session, coupon)
    return factory


@pytest.fixture
async def session_factory(tmp_path):
    factory = await build_session_factory(tmp_path / "storefront.db")
    yield factory
    await factory.kw["bind"].dispose()


@pytest.fixture
def client(tmp_path):
    from api.app.main import create_app

    factory = anyio.run(build_session_factory, tmp_path / "storefront.db")
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: factory
    yield TestClient(app)
    anyio.run(factory.kw["bind"].dispose)
