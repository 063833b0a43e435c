"""
Service factory functions for dependency injection.

This module provides factory functions that wire infrastructure
implementations to core services. Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from src.config import get_settings
from src.core.interfaces import (
    ICatalogRegistry,
    ICheckoutStore,
    IInventoryStore,
    ILedgerStore,
)
from src.core.services import (
    CostingResolver,
    KeyedLock,
    LotNumberAllocator,
    ReconciliationEngine,
    get_folder_locks,
    get_inventory_locks,
)


def get_reconciliation_engine(
    inventory_store: IInventoryStore,
    ledger_store: ILedgerStore,
    checkout_store: ICheckoutStore,
) -> ReconciliationEngine:
    """Build a ReconciliationEngine over the given stores."""
    return ReconciliationEngine(
        inventory_store=inventory_store,
        ledger_store=ledger_store,
        checkout_store=checkout_store,
    )


def get_costing_resolver(
    inventory_store: IInventoryStore,
    catalog: ICatalogRegistry,
) -> CostingResolver:
    """Build a CostingResolver over the given stores."""
    return CostingResolver(inventory_store=inventory_store, catalog=catalog)


def get_lot_allocator(inventory_store: IInventoryStore) -> LotNumberAllocator:
    """
    Build a LotNumberAllocator configured from LedgerSettings.

    Args:
        inventory_store: Store the lots are written to

    Returns:
        Allocator using the configured prefix, digits and retry count
    """
    ledger = get_settings().ledger
    return LotNumberAllocator(
        inventory_store=inventory_store,
        prefix=ledger.lot_number_prefix,
        digits=ledger.lot_number_digits,
        retries=ledger.lot_number_retries,
    )


def get_locks() -> KeyedLock:
    """Process-wide per-aggregate locks."""
    return get_inventory_locks()


def get_checkout_folder_locks() -> KeyedLock:
    """Process-wide per-folder locks, always taken before aggregate locks."""
    return get_folder_locks()
