"""Storage infrastructure implementations."""

from src.infrastructure.storage.sqlite import (
    SQLiteCatalogRegistry,
    SQLiteCheckoutStore,
    SQLiteInventoryStore,
    SQLiteLedgerStore,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLiteCatalogRegistry",
    "SQLiteCheckoutStore",
    "SQLiteInventoryStore",
    "SQLiteLedgerStore",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
