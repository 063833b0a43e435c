"""Abstract interface for the catalog registry the ledger reads from."""

from abc import ABC, abstractmethod

from src.core.entities.catalog import CatalogItem


class ICatalogRegistry(ABC):
    """Read access to catalog items and their costing policy."""

    @abstractmethod
    async def get_item(self, item_id: int) -> CatalogItem | None:
        """Get catalog item by ID."""
        pass

    @abstractmethod
    async def register_item(self, item: CatalogItem) -> CatalogItem:
        """Register a catalog item (seeding and tests; the ledger never writes)."""
        pass
