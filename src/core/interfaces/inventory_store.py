"""Abstract interface for inventory aggregate and lot storage."""

from abc import ABC, abstractmethod

from src.core.entities.inventory import InventoryAggregate, InventoryValuation, Lot


class IInventoryStore(ABC):
    """Interface for inventory aggregate and lot persistence."""

    @abstractmethod
    async def get_or_create_aggregate(
        self, catalog_item_id: int, condition: str
    ) -> tuple[InventoryAggregate, bool]:
        """Get the aggregate for (item, condition), creating an empty one if absent.

        Returns the aggregate and whether it was created.
        """
        pass

    @abstractmethod
    async def get_aggregate(self, inventory_id: int) -> InventoryAggregate | None:
        """Get aggregate by ID."""
        pass

    @abstractmethod
    async def get_aggregate_by_key(
        self, catalog_item_id: int, condition: str
    ) -> InventoryAggregate | None:
        """Get aggregate by (catalog item, condition)."""
        pass

    @abstractmethod
    async def update_aggregate(self, aggregate: InventoryAggregate) -> InventoryAggregate:
        """Overwrite quantity and every derived cost field."""
        pass

    @abstractmethod
    async def adjust_quantity(self, inventory_id: int, delta: int) -> InventoryAggregate:
        """Add delta to quantity in one guarded write.

        Raises InsufficientStockError if the result would be negative.
        """
        pass

    @abstractmethod
    async def set_market_price(
        self, inventory_id: int, market_price: int | None
    ) -> InventoryAggregate:
        """Record an externally supplied market price."""
        pass

    @abstractmethod
    async def list_aggregates(
        self,
        catalog_item_id: int | None = None,
        in_stock_only: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryAggregate]:
        """List aggregates with optional filters and pagination."""
        pass

    @abstractmethod
    async def get_valuation(self) -> InventoryValuation:
        """Units, kinds, cost and market value of all stock on hand."""
        pass

    @abstractmethod
    async def create_lot(self, lot: Lot) -> Lot:
        """Create a lot. Raises DatabaseError on a lot_number conflict."""
        pass

    @abstractmethod
    async def get_lot(self, lot_id: int) -> Lot | None:
        """Get lot by ID."""
        pass

    @abstractmethod
    async def get_lot_by_entry(self, ledger_entry_id: int) -> Lot | None:
        """Get the lot created by a purchase entry."""
        pass

    @abstractmethod
    async def update_lot(self, lot: Lot) -> Lot:
        """Update quantity, remainder and costs of a lot."""
        pass

    @abstractmethod
    async def adjust_lot_remaining(self, lot_id: int, delta: int) -> Lot:
        """Add delta to remaining_qty in one guarded write.

        Raises LotInsufficientError if the result would be negative.
        """
        pass

    @abstractmethod
    async def delete_lot(self, lot_id: int) -> None:
        """Delete a lot."""
        pass

    @abstractmethod
    async def list_lots(
        self, inventory_id: int, has_remaining: bool = False
    ) -> list[Lot]:
        """List lots of an aggregate, newest first."""
        pass

    @abstractmethod
    async def get_latest_lot_number(self, prefix: str) -> str | None:
        """Highest lot number starting with prefix, if any."""
        pass
