"""Core domain entities."""

from src.core.entities.catalog import CatalogItem, CostingPolicy
from src.core.entities.checkout import (
    HOLDING_STATUSES,
    CheckoutFolder,
    CheckoutItem,
    CheckoutStats,
    CheckoutStatus,
    FolderStatus,
    FolderSummary,
)
from src.core.entities.inventory import InventoryAggregate, InventoryValuation, Lot
from src.core.entities.ledger import (
    HistoryAction,
    HistoryEntry,
    LedgerEntry,
    LedgerTotals,
    TransactionType,
)

__all__ = [
    # Catalog
    "CatalogItem",
    "CostingPolicy",
    # Inventory
    "InventoryAggregate",
    "InventoryValuation",
    "Lot",
    # Ledger
    "LedgerEntry",
    "LedgerTotals",
    "TransactionType",
    "HistoryEntry",
    "HistoryAction",
    # Checkout
    "CheckoutFolder",
    "CheckoutItem",
    "CheckoutStatus",
    "CheckoutStats",
    "FolderStatus",
    "FolderSummary",
    "HOLDING_STATUSES",
]
