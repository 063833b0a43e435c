"""
Dependency injection container for FastAPI.

Provides store and use case instances to route handlers. Tests replace
them through app.dependency_overrides.
"""

from src.application.use_cases import (
    CancelCheckoutItemUseCase,
    ConvertCheckoutItemUseCase,
    DeleteLedgerEntryUseCase,
    EditLedgerEntryUseCase,
    InventoryStatsUseCase,
    ManageFolderUseCase,
    ReconcileInventoryUseCase,
    RecordPurchaseUseCase,
    RecordSaleUseCase,
    ReturnCheckoutItemUseCase,
    SellCheckoutItemUseCase,
    SetMarketPriceUseCase,
    UndoCheckoutItemUseCase,
    WithdrawToFolderUseCase,
)
from src.infrastructure.storage.sqlite import (
    SQLiteInventoryStore,
    SQLiteLedgerStore,
    get_inventory_store,
    get_ledger_store,
)


# Store dependencies
async def get_inv_store() -> SQLiteInventoryStore:
    """Get inventory aggregate and lot store."""
    return await get_inventory_store()


async def get_ledger() -> SQLiteLedgerStore:
    """Get ledger and history store."""
    return await get_ledger_store()


# Use case dependencies
def get_record_purchase_use_case() -> RecordPurchaseUseCase:
    return RecordPurchaseUseCase()


def get_record_sale_use_case() -> RecordSaleUseCase:
    return RecordSaleUseCase()


def get_edit_entry_use_case() -> EditLedgerEntryUseCase:
    return EditLedgerEntryUseCase()


def get_delete_entry_use_case() -> DeleteLedgerEntryUseCase:
    return DeleteLedgerEntryUseCase()


def get_reconcile_use_case() -> ReconcileInventoryUseCase:
    return ReconcileInventoryUseCase()


def get_market_price_use_case() -> SetMarketPriceUseCase:
    return SetMarketPriceUseCase()


def get_inventory_stats_use_case() -> InventoryStatsUseCase:
    return InventoryStatsUseCase()


def get_withdraw_use_case() -> WithdrawToFolderUseCase:
    return WithdrawToFolderUseCase()


def get_return_use_case() -> ReturnCheckoutItemUseCase:
    return ReturnCheckoutItemUseCase()


def get_sell_use_case() -> SellCheckoutItemUseCase:
    return SellCheckoutItemUseCase()


def get_convert_use_case() -> ConvertCheckoutItemUseCase:
    return ConvertCheckoutItemUseCase()


def get_undo_use_case() -> UndoCheckoutItemUseCase:
    return UndoCheckoutItemUseCase()


def get_cancel_use_case() -> CancelCheckoutItemUseCase:
    return CancelCheckoutItemUseCase()


def get_folder_use_case() -> ManageFolderUseCase:
    return ManageFolderUseCase()
