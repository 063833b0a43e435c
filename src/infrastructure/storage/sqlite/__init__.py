"""SQLite storage implementations."""

from src.infrastructure.storage.sqlite.catalog_store import SQLiteCatalogRegistry
from src.infrastructure.storage.sqlite.checkout_store import SQLiteCheckoutStore
from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from src.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore
from src.infrastructure.storage.sqlite.ledger_store import SQLiteLedgerStore

# Singleton instances
_catalog_registry: SQLiteCatalogRegistry | None = None
_checkout_store: SQLiteCheckoutStore | None = None
_inventory_store: SQLiteInventoryStore | None = None
_ledger_store: SQLiteLedgerStore | None = None


async def get_catalog_registry() -> SQLiteCatalogRegistry:
    """Get singleton catalog registry instance."""
    global _catalog_registry
    if _catalog_registry is None:
        _catalog_registry = SQLiteCatalogRegistry()
    return _catalog_registry


async def get_checkout_store() -> SQLiteCheckoutStore:
    """Get singleton checkout store instance."""
    global _checkout_store
    if _checkout_store is None:
        _checkout_store = SQLiteCheckoutStore()
    return _checkout_store


async def get_inventory_store() -> SQLiteInventoryStore:
    """Get singleton inventory store instance."""
    global _inventory_store
    if _inventory_store is None:
        _inventory_store = SQLiteInventoryStore()
    return _inventory_store


async def get_ledger_store() -> SQLiteLedgerStore:
    """Get singleton ledger store instance."""
    global _ledger_store
    if _ledger_store is None:
        _ledger_store = SQLiteLedgerStore()
    return _ledger_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteCatalogRegistry",
    "SQLiteCheckoutStore",
    "SQLiteInventoryStore",
    "SQLiteLedgerStore",
    # Factory functions
    "get_catalog_registry",
    "get_checkout_store",
    "get_inventory_store",
    "get_ledger_store",
]
