"""Picks the costing strategy for a sale or withdrawal and validates stock."""

from src.core.entities.catalog import CatalogItem
from src.core.entities.inventory import InventoryAggregate, Lot
from src.core.exceptions import (
    CatalogItemNotFoundError,
    InsufficientStockError,
    InventoryNotFoundError,
    LotInsufficientError,
    LotNotFoundError,
    LotRequiredError,
)
from src.core.interfaces.catalog import ICatalogRegistry
from src.core.interfaces.inventory_store import IInventoryStore
from src.core.services.costing import AverageCosting, CostingStrategy, LotCosting


class CostingResolver:
    """
    Loads what an outgoing movement needs and checks it can happen.

    All checks run before the caller mutates anything.
    """

    def __init__(self, inventory_store: IInventoryStore, catalog: ICatalogRegistry):
        self._inventory = inventory_store
        self._catalog = catalog

    async def load_aggregate(self, inventory_id: int) -> InventoryAggregate:
        aggregate = await self._inventory.get_aggregate(inventory_id)
        if aggregate is None:
            raise InventoryNotFoundError(inventory_id)
        return aggregate

    async def load_catalog_item(self, item_id: int) -> CatalogItem:
        item = await self._catalog.get_item(item_id)
        if item is None:
            raise CatalogItemNotFoundError(item_id)
        return item

    async def load_lot(self, lot_id: int, inventory_id: int) -> Lot:
        lot = await self._inventory.get_lot(lot_id)
        if lot is None or lot.inventory_id != inventory_id:
            raise LotNotFoundError(lot_id)
        return lot

    async def resolve(
        self,
        aggregate: InventoryAggregate,
        quantity: int,
        lot_id: int | None = None,
    ) -> CostingStrategy:
        """
        Return the strategy for taking `quantity` units out of `aggregate`.

        Average-costed items ignore lot_id. Lot-costed items require a lot of
        this aggregate holding at least `quantity` units.

        Raises:
            InsufficientStockError: Aggregate holds fewer units
            LotRequiredError: Lot-costed item without lot_id
            LotNotFoundError: Lot unknown or belongs to another aggregate
            LotInsufficientError: Lot holds fewer units
        """
        if aggregate.quantity < quantity:
            raise InsufficientStockError(
                inventory_id=aggregate.id,  # type: ignore[arg-type]
                requested=quantity,
                available=aggregate.quantity,
            )

        catalog_item = await self.load_catalog_item(aggregate.catalog_item_id)
        if not catalog_item.is_lot_costed:
            return AverageCosting(aggregate)

        if lot_id is None:
            raise LotRequiredError(aggregate.id)  # type: ignore[arg-type]

        lot = await self.load_lot(lot_id, aggregate.id)  # type: ignore[arg-type]
        if lot.remaining_qty < quantity:
            raise LotInsufficientError(
                lot_id=lot_id, requested=quantity, remaining=lot.remaining_qty
            )
        return LotCosting(lot)
