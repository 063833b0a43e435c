"""Application use cases."""

from src.application.use_cases.cancel_checkout_item import (
    CancelCheckoutItemUseCase,
    CancelResult,
)
from src.application.use_cases.convert_checkout_item import (
    ConvertCheckoutItemUseCase,
    ConvertResult,
)
from src.application.use_cases.delete_ledger_entry import (
    DeleteLedgerEntryResult,
    DeleteLedgerEntryUseCase,
)
from src.application.use_cases.edit_ledger_entry import (
    EditLedgerEntryResult,
    EditLedgerEntryUseCase,
)
from src.application.use_cases.inventory_stats import (
    InventoryStatsResult,
    InventoryStatsUseCase,
)
from src.application.use_cases.manage_folder import ManageFolderUseCase
from src.application.use_cases.reconcile_inventory import ReconcileInventoryUseCase
from src.application.use_cases.record_purchase import (
    RecordPurchaseResult,
    RecordPurchaseUseCase,
)
from src.application.use_cases.record_sale import RecordSaleResult, RecordSaleUseCase
from src.application.use_cases.return_checkout_item import (
    ReturnCheckoutItemUseCase,
    ReturnResult,
)
from src.application.use_cases.sell_checkout_item import (
    SellCheckoutItemUseCase,
    SellResult,
)
from src.application.use_cases.set_market_price import SetMarketPriceUseCase
from src.application.use_cases.undo_checkout_item import (
    UndoCheckoutItemUseCase,
    UndoResult,
)
from src.application.use_cases.withdraw_to_folder import (
    WithdrawResult,
    WithdrawToFolderUseCase,
)

__all__ = [
    "RecordPurchaseUseCase",
    "RecordPurchaseResult",
    "RecordSaleUseCase",
    "RecordSaleResult",
    "EditLedgerEntryUseCase",
    "EditLedgerEntryResult",
    "DeleteLedgerEntryUseCase",
    "DeleteLedgerEntryResult",
    "ReconcileInventoryUseCase",
    "SetMarketPriceUseCase",
    "InventoryStatsUseCase",
    "InventoryStatsResult",
    "WithdrawToFolderUseCase",
    "WithdrawResult",
    "ReturnCheckoutItemUseCase",
    "ReturnResult",
    "SellCheckoutItemUseCase",
    "SellResult",
    "ConvertCheckoutItemUseCase",
    "ConvertResult",
    "UndoCheckoutItemUseCase",
    "UndoResult",
    "CancelCheckoutItemUseCase",
    "CancelResult",
    "ManageFolderUseCase",
]
