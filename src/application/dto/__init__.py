"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
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
    SetMarketPriceRequest,
    UndoItemRequest,
    WithdrawRequest,
)
from src.application.dto.responses import (
    CheckoutFolderResponse,
    CheckoutItemResponse,
    CheckoutResolutionResponse,
    CheckoutStatsResponse,
    ErrorResponse,
    FolderListResponse,
    FolderSummaryResponse,
    HealthResponse,
    HistoryResponse,
    InventoryListResponse,
    InventoryResponse,
    InventoryStatsResponse,
    LedgerChangeResponse,
    LedgerEntryResponse,
    LotResponse,
    ProviderHealthResponse,
    PurchaseResponse,
    SaleResponse,
)

__all__ = [
    # Requests
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
    "SetMarketPriceRequest",
    # Responses
    "InventoryResponse",
    "InventoryListResponse",
    "InventoryStatsResponse",
    "LotResponse",
    "HistoryResponse",
    "LedgerEntryResponse",
    "PurchaseResponse",
    "SaleResponse",
    "LedgerChangeResponse",
    "CheckoutItemResponse",
    "CheckoutFolderResponse",
    "FolderSummaryResponse",
    "FolderListResponse",
    "CheckoutStatsResponse",
    "CheckoutResolutionResponse",
    "HealthResponse",
    "ProviderHealthResponse",
    "ErrorResponse",
]
