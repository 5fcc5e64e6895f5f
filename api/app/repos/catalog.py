"""Catalog lookup contract and an in-memory implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable

from ..domain.catalog import MenuItem
from ..errors import NotFoundError


class CatalogRepo(ABC):
    """Contract for resolving menu item snapshots."""

    @abstractmethod
    def get_item(self, item_id: str) -> MenuItem:
        """Return the snapshot for ``item_id`` or raise ``NotFoundError``."""
        raise NotImplementedError


class InMemoryCatalog(CatalogRepo):
    """Catalog backed by a dict of already loaded snapshots."""

    def __init__(self, items: Iterable[MenuItem] = ()) -> None:
        self._items: Dict[str, MenuItem] = {item.id: item for item in items}

    def add(self, item: MenuItem) -> None:
        self._items[item.id] = item

    def get_item(self, item_id: str) -> MenuItem:
        try:
            return self._items[item_id]
        except KeyError:
            raise NotFoundError("item", item_id) from None

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["CatalogRepo", "InMemoryCatalog"]
