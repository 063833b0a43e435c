"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers.
"""

from src.application.dto.requests import (
    ConvertItemRequest,
    CreateFolderRequest,
    DeleteLedgerEntryRequest,
    EditLedgerEntryRequest,
    RecordPurchaseRequest,
    RecordSaleRequest,
    ReturnItemRequest,
    SellItemRequest,
    UndoItemRequest,
    WithdrawRequest,
)
from src.application.dto.responses import (
    CheckoutResolutionResponse,
    ErrorResponse,
    HealthResponse,
    InventoryResponse,
    LedgerChangeResponse,
    PurchaseResponse,
    SaleResponse,
)
from src.application.services import (
    get_costing_resolver,
    get_locks,
    get_lot_allocator,
    get_reconciliation_engine,
)
from src.application.use_cases import (
    CancelCheckoutItemUseCase,
    ConvertCheckoutItemUseCase,
    DeleteLedgerEntryUseCase,
    EditLedgerEntryUseCase,
    ManageFolderUseCase,
    ReconcileInventoryUseCase,
    RecordPurchaseUseCase,
    RecordSaleUseCase,
    ReturnCheckoutItemUseCase,
    SellCheckoutItemUseCase,
    UndoCheckoutItemUseCase,
    WithdrawToFolderUseCase,
)

__all__ = [
    # Request DTOs
    "RecordPurchaseRequest",
    "RecordSaleRequest",
    "EditLedgerEntryRequest",
    "DeleteLedgerEntryRequest",
    "CreateFolderRequest",
    "WithdrawRequest",
    "ReturnItemRequest",
    "SellItemRequest",
    "ConvertItemRequest",
    "UndoItemRequest",
    # Response DTOs
    "InventoryResponse",
    "PurchaseResponse",
    "SaleResponse",
    "LedgerChangeResponse",
    "CheckoutResolutionResponse",
    "HealthResponse",
    "ErrorResponse",
    # Use Cases
    "RecordPurchaseUseCase",
    "RecordSaleUseCase",
    "EditLedgerEntryUseCase",
    "DeleteLedgerEntryUseCase",
    "ReconcileInventoryUseCase",
    "WithdrawToFolderUseCase",
    "ReturnCheckoutItemUseCase",
    "SellCheckoutItemUseCase",
    "ConvertCheckoutItemUseCase",
    "UndoCheckoutItemUseCase",
    "CancelCheckoutItemUseCase",
    "ManageFolderUseCase",
    # Service factories
    "get_reconciliation_engine",
    "get_costing_resolver",
    "get_lot_allocator",
    "get_locks",
]
