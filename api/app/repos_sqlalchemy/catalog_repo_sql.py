"""SQLAlchemy-backed catalog loading.

Rows are converted into :class:`~api.app.domain.catalog.MenuItem` snapshots
up front so the pricing engine never reaches back into the database mid
computation.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.catalog import DeliveryZone, MenuItem
from ..errors import LookupServiceError, NotFoundError
from ..models_tenant import DeliveryZone as DeliveryZoneRow
from ..models_tenant import MenuItem as MenuItemRow
from ..repos.catalog import InMemoryCatalog


def _to_item(row: MenuItemRow) -> MenuItem:
    return MenuItem.model_validate(
        {
            "id": row.id,
            "name": row.name,
            "base_price": row.base_price,
            "variants": row.variants or [],
            "addon_groups": row.addon_groups or [],
            "is_available": row.is_available,
            "store_id": row.store_id,
        }
    )


async def load_catalog(session: AsyncSession, item_ids: Iterable[str]) -> InMemoryCatalog:
    """Return a catalog holding snapshots for ``item_ids``.

    Unknown ids are simply absent; the engine reports them as stale cart
    references.
    """

    ids = sorted(set(item_ids))
    catalog = InMemoryCatalog()
    if not ids:
        return catalog
    try:
        result = await session.execute(select(MenuItemRow).where(MenuItemRow.id.in_(ids)))
        rows = result.scalars().all()
    except SQLAlchemyError as exc:
        raise LookupServiceError("CATALOG_UNAVAILABLE", "Menu lookup failed") from exc
    for row in rows:
        catalog.add(_to_item(row))
    return catalog


async def get_zone(session: AsyncSession, zone_id: str) -> DeliveryZone:
    """Return the delivery zone ``zone_id`` or raise ``NotFoundError``."""

    try:
        row = await session.get(DeliveryZoneRow, zone_id)
    except SQLAlchemyError as exc:
        raise LookupServiceError("ZONE_UNAVAILABLE", "Delivery zone lookup failed") from exc
    if row is None:
        raise NotFoundError("zone", zone_id)
    return DeliveryZone(
        id=row.id, name=row.name, fee=row.fee, minimum_order=row.minimum_order
    )


async def save_item(session: AsyncSession, item: MenuItem) -> None:
    """Insert or replace the row for ``item``."""

    data = item.model_dump(mode="json")
    row = await session.get(MenuItemRow, item.id)
    if row is None:
        row = MenuItemRow(id=item.id)
        session.add(row)
    row.name = item.name
    row.store_id = item.store_id
    row.base_price = item.base_price
    row.is_available = item.is_available
    row.variants = data["variants"]
    row.addon_groups = data["addon_groups"]
    await session.commit()


async def save_zone(session: AsyncSession, zone: DeliveryZone, store_id: str | None = None) -> None:
    """Insert or replace the row for ``zone``."""

    row = await session.get(DeliveryZoneRow, zone.id)
    if row is None:
        row = DeliveryZoneRow(id=zone.id)
        session.add(row)
    row.store_id = store_id
    row.name = zone.name
    row.fee = zone.fee
    row.minimum_order = zone.minimum_order
    await session.commit()
