"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.catalog import ICatalogRegistry
from src.core.interfaces.checkout_store import ICheckoutStore
from src.core.interfaces.inventory_store import IInventoryStore
from src.core.interfaces.ledger_store import ILedgerStore

__all__ = [
    "ICatalogRegistry",
    "ICheckoutStore",
    "IInventoryStore",
    "ILedgerStore",
]
