"""Shared wiring for the ledger and checkout use cases."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from src.application.services import (
    get_checkout_folder_locks,
    get_costing_resolver,
    get_locks,
    get_lot_allocator,
    get_reconciliation_engine,
)
from src.config import ledger_context
from src.core.entities.checkout import CheckoutFolder, CheckoutItem
from src.core.entities.ledger import HistoryEntry
from src.core.exceptions import (
    AlreadyResolvedError,
    CheckoutItemNotFoundError,
    FolderClosedError,
    FolderNotFoundError,
    ValidationError,
)
from src.core.interfaces.catalog import ICatalogRegistry
from src.core.interfaces.checkout_store import ICheckoutStore
from src.core.interfaces.inventory_store import IInventoryStore
from src.core.interfaces.ledger_store import ILedgerStore
from src.core.services import (
    CompensationPlan,
    CostingResolver,
    KeyedLock,
    LotNumberAllocator,
    ReconciliationEngine,
)


class LedgerUseCase:
    """
    Base for use cases that read and write stock.

    Stores are injected for tests and resolved lazily from the SQLite
    singletons otherwise.
    """

    def __init__(
        self,
        inventory_store: IInventoryStore | None = None,
        ledger_store: ILedgerStore | None = None,
        checkout_store: ICheckoutStore | None = None,
        catalog: ICatalogRegistry | None = None,
        locks: KeyedLock | None = None,
        folder_locks: KeyedLock | None = None,
    ):
        self._inventory_store = inventory_store
        self._ledger_store = ledger_store
        self._checkout_store = checkout_store
        self._catalog = catalog
        self._locks = locks
        self._folder_locks = folder_locks

    async def _get_inventory_store(self) -> IInventoryStore:
        if self._inventory_store is None:
            from src.infrastructure.storage.sqlite import get_inventory_store

            self._inventory_store = await get_inventory_store()
        return self._inventory_store

    async def _get_ledger_store(self) -> ILedgerStore:
        if self._ledger_store is None:
            from src.infrastructure.storage.sqlite import get_ledger_store

            self._ledger_store = await get_ledger_store()
        return self._ledger_store

    async def _get_checkout_store(self) -> ICheckoutStore:
        if self._checkout_store is None:
            from src.infrastructure.storage.sqlite import get_checkout_store

            self._checkout_store = await get_checkout_store()
        return self._checkout_store

    async def _get_catalog(self) -> ICatalogRegistry:
        if self._catalog is None:
            from src.infrastructure.storage.sqlite import get_catalog_registry

            self._catalog = await get_catalog_registry()
        return self._catalog

    def _get_locks(self) -> KeyedLock:
        if self._locks is None:
            self._locks = get_locks()
        return self._locks

    def _get_folder_locks(self) -> KeyedLock:
        if self._folder_locks is None:
            self._folder_locks = get_checkout_folder_locks()
        return self._folder_locks

    @asynccontextmanager
    async def _hold(
        self, *inventory_ids: int | None, folder: int | None = None
    ) -> AsyncIterator[None]:
        """
        Lock the folder (if any), then the aggregates, and tag every event
        logged meanwhile with them.
        """
        ids = sorted({i for i in inventory_ids if i is not None})
        async with self._get_folder_locks().hold(folder):
            async with self._get_locks().hold(*ids):
                with ledger_context(locked_inventory=ids or None, locked_folder=folder):
                    yield

    async def _get_engine(self) -> ReconciliationEngine:
        return get_reconciliation_engine(
            await self._get_inventory_store(),
            await self._get_ledger_store(),
            await self._get_checkout_store(),
        )

    async def _settle_aggregate(self, inventory_id: int) -> None:
        """Rebuild an aggregate from its ledger when a write's outcome is unknown."""
        engine = await self._get_engine()
        await engine.reconcile(inventory_id)

    async def _get_resolver(self) -> CostingResolver:
        return get_costing_resolver(
            await self._get_inventory_store(), await self._get_catalog()
        )

    async def _get_lot_allocator(self) -> LotNumberAllocator:
        return get_lot_allocator(await self._get_inventory_store())

    async def _record_history(self, history: HistoryEntry) -> HistoryEntry:
        ledger = await self._get_ledger_store()
        return await ledger.add_history(history)

    async def _undo_history(self, history: HistoryEntry) -> None:
        ledger = await self._get_ledger_store()
        await ledger.delete_history(history.id)  # type: ignore[arg-type]


class CheckoutUseCase(LedgerUseCase):
    """Base for use cases acting on one checkout item."""

    async def _load_item(self, item_id: int) -> tuple[CheckoutItem, CheckoutFolder]:
        """Load an item and its folder; a closed folder rejects the action."""
        store = await self._get_checkout_store()
        item = await store.get_item(item_id)
        if item is None:
            raise CheckoutItemNotFoundError(item_id)
        folder = await store.get_folder(item.folder_id)
        if folder is None:
            raise FolderNotFoundError(item.folder_id)
        if folder.is_closed:
            raise FolderClosedError(folder.id)  # type: ignore[arg-type]
        return item, folder

    @staticmethod
    def _resolve_quantity(item: CheckoutItem, requested: int | None) -> int:
        """Units to resolve: the whole item unless a valid part is requested."""
        if requested is None:
            return item.quantity
        if requested < 1 or requested > item.quantity:
            raise ValidationError(
                "resolve_quantity",
                f"must be between 1 and {item.quantity}",
                requested,
            )
        return requested

    @staticmethod
    def _require_pending(item: CheckoutItem) -> None:
        if not item.is_pending:
            raise AlreadyResolvedError(item.id, item.status.value)  # type: ignore[arg-type]

    async def _resolve_item(
        self,
        plan: CompensationPlan,
        item: CheckoutItem,
        quantity: int,
        **resolution,
    ) -> tuple[CheckoutItem, CheckoutItem | None]:
        """
        Move `quantity` units of a pending item into a terminal state.

        The whole item changes state when all of it is resolved. Otherwise
        the item keeps the rest as pending and a new item carries the
        resolved part. Returns (resolved, remaining pending or None).
        """
        store = await self._get_checkout_store()
        now = datetime.now(UTC)

        if quantity == item.quantity:
            resolved = item.model_copy(
                update={**resolution, "resolved_at": now, "updated_at": now}
            )
            resolved = await plan.run(
                "resolve_item",
                lambda: store.update_item(resolved),
                lambda _: store.update_item(item),
            )
            return resolved, None

        remaining = item.model_copy(
            update={"quantity": item.quantity - quantity, "updated_at": now}
        )
        remaining = await plan.run(
            "shrink_item",
            lambda: store.update_item(remaining),
            lambda _: store.update_item(item),
        )
        resolved = await plan.run(
            "split_item",
            lambda: store.create_item(item.resolved_copy(quantity, **resolution)),
            lambda r: store.delete_item(r.id),
        )
        return resolved, remaining
