"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from src.core.entities.checkout import CheckoutFolder, CheckoutItem, CheckoutStats
from src.core.entities.inventory import InventoryAggregate, InventoryValuation, Lot
from src.core.entities.ledger import HistoryEntry, LedgerEntry, LedgerTotals

# --- Inventory ---


class InventoryResponse(BaseModel):
    """Inventory aggregate response DTO."""

    id: int
    catalog_item_id: int
    condition: str
    quantity: int
    avg_purchase_price: int
    total_purchased: int
    total_purchase_cost: int
    total_expenses: int
    avg_expense_per_unit: int
    market_price: int | None = None
    total_value: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, aggregate: InventoryAggregate) -> "InventoryResponse":
        return cls(
            id=aggregate.id,  # type: ignore[arg-type]
            catalog_item_id=aggregate.catalog_item_id,
            condition=aggregate.condition,
            quantity=aggregate.quantity,
            avg_purchase_price=aggregate.avg_purchase_price,
            total_purchased=aggregate.total_purchased,
            total_purchase_cost=aggregate.total_purchase_cost,
            total_expenses=aggregate.total_expenses,
            avg_expense_per_unit=aggregate.avg_expense_per_unit,
            market_price=aggregate.market_price,
            total_value=aggregate.total_value,
            created_at=aggregate.created_at,
            updated_at=aggregate.updated_at,
        )


class InventoryListResponse(BaseModel):
    """Page of inventory aggregates."""

    items: list[InventoryResponse] = Field(default_factory=list)
    total: int = 0
    total_value: int = 0


class InventoryStatsResponse(BaseModel):
    """Valuation of stock on hand and one day's trading."""

    day: date
    total_units: int = 0
    total_kinds: int = 0
    total_cost: int = 0
    estimated_value: int = 0
    estimated_profit: int = 0
    total_expenses: int = 0
    day_purchase: int = 0
    day_sale: int = 0
    day_profit: int = 0
    day_expenses: int = 0

    @classmethod
    def from_entities(
        cls, valuation: InventoryValuation, totals: LedgerTotals
    ) -> "InventoryStatsResponse":
        return cls(
            day=totals.day,
            total_units=valuation.total_units,
            total_kinds=valuation.total_kinds,
            total_cost=valuation.total_cost,
            estimated_value=valuation.estimated_value,
            estimated_profit=valuation.estimated_profit,
            total_expenses=totals.all_time_expenses,
            day_purchase=totals.purchase_total,
            day_sale=totals.sale_total,
            day_profit=totals.sale_profit,
            day_expenses=totals.purchase_expenses,
        )


class LotResponse(BaseModel):
    """Lot response DTO."""

    id: int
    lot_number: str
    inventory_id: int
    quantity: int
    remaining_qty: int
    unit_cost: int
    expenses: int
    unit_expense: int
    purchase_date: date
    ledger_entry_id: int | None = None
    notes: str | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, lot: Lot) -> "LotResponse":
        return cls(**lot.model_dump())


class HistoryResponse(BaseModel):
    """History record response DTO."""

    id: int
    inventory_id: int
    action_type: str
    quantity_change: int
    quantity_before: int
    quantity_after: int
    ledger_entry_id: int | None = None
    reason: str | None = None
    notes: str | None = None
    is_modified: bool = False
    modified_at: datetime | None = None
    modified_reason: str | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, history: HistoryEntry) -> "HistoryResponse":
        data = history.model_dump()
        data["action_type"] = history.action_type.value
        return cls(**data)


# --- Ledger ---


class LedgerEntryResponse(BaseModel):
    """Ledger entry response DTO."""

    id: int
    inventory_id: int
    type: str
    quantity: int
    unit_price: int
    total_price: int
    expenses: int
    profit: int | None = None
    profit_rate: float | None = None
    transaction_date: date
    lot_id: int | None = None
    is_checkout: bool = False
    notes: str | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, entry: LedgerEntry) -> "LedgerEntryResponse":
        data = entry.model_dump()
        data["type"] = entry.type.value
        return cls(**data)


class PurchaseResponse(BaseModel):
    """Response for a recorded purchase."""

    entry: LedgerEntryResponse
    inventory: InventoryResponse
    lot: LotResponse | None = None
    created: bool = False  # True if the aggregate was created by this purchase


class SaleResponse(BaseModel):
    """Response for a recorded direct sale."""

    entry: LedgerEntryResponse
    inventory: InventoryResponse
    lot: LotResponse | None = None


class LedgerChangeResponse(BaseModel):
    """Response for an edited or deleted entry and the rebuilt aggregate."""

    entry: LedgerEntryResponse | None = None
    inventory: InventoryResponse
    restated_entries: int = 0


# --- Checkout ---


class CheckoutItemResponse(BaseModel):
    """Checkout item response DTO."""

    id: int
    folder_id: int
    inventory_id: int
    lot_id: int | None = None
    quantity: int
    unit_cost: int
    unit_expense: int
    status: str
    resolved_at: datetime | None = None
    resolution_notes: str | None = None
    sale_unit_price: int | None = None
    sale_expenses: int | None = None
    sale_profit: int | None = None
    converted_condition: str | None = None
    converted_expenses: int | None = None
    ledger_entry_id: int | None = None
    locked_amount: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, item: CheckoutItem) -> "CheckoutItemResponse":
        data = item.model_dump()
        data["status"] = item.status.value
        data["locked_amount"] = item.locked_amount
        return cls(**data)


class CheckoutFolderResponse(BaseModel):
    """Checkout folder response DTO."""

    id: int
    name: str
    description: str | None = None
    status: str
    closed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, folder: CheckoutFolder) -> "CheckoutFolderResponse":
        data = folder.model_dump()
        data["status"] = folder.status.value
        return cls(**data)


class FolderSummaryResponse(BaseModel):
    """A folder with its items and pending totals."""

    folder: CheckoutFolderResponse
    items: list[CheckoutItemResponse] = Field(default_factory=list)
    item_count: int = 0
    pending_count: int = 0
    locked_amount: int = 0


class FolderListResponse(BaseModel):
    """List of folders."""

    folders: list[CheckoutFolderResponse] = Field(default_factory=list)
    total: int = 0


class CheckoutStatsResponse(BaseModel):
    """Money tied up in pending checkouts."""

    locked_amount: int = 0
    locked_expenses: int = 0
    total_locked_value: int = 0
    pending_items: int = 0
    open_folders: int = 0

    @classmethod
    def from_entity(cls, stats: CheckoutStats) -> "CheckoutStatsResponse":
        return cls(
            locked_amount=stats.locked_amount,
            locked_expenses=stats.locked_expenses,
            total_locked_value=stats.total_locked_value,
            pending_items=stats.pending_items,
            open_folders=stats.open_folders,
        )


class CheckoutResolutionResponse(BaseModel):
    """Response for withdraw, return, sell, convert, undo and cancel."""

    item: CheckoutItemResponse | None = None  # None after cancel
    remaining_item: CheckoutItemResponse | None = None  # pending part after a split
    entry: LedgerEntryResponse | None = None
    inventory: InventoryResponse | None = None
    target_inventory: InventoryResponse | None = None  # convert only


# --- Health & errors ---


class ProviderHealthResponse(BaseModel):
    """Health status of a backing component."""

    name: str
    available: bool
    latency_ms: float | None = None
    schema_version: str | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Structured context, e.g. requested vs available quantity",
    )
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
