"""Transaction ledger and audit history entities."""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class TransactionType(str, Enum):
    """Types of ledger entries."""

    PURCHASE = "purchase"
    SALE = "sale"


class LedgerEntry(BaseModel):
    """
    One purchase or sale against an inventory aggregate.

    The ledger is the source of truth: aggregates are rebuilt from it.
    Entries flagged is_checkout were produced by resolving a checkout item;
    for sales this means the stock already left the aggregate at withdrawal.
    """

    id: int | None = None
    inventory_id: int  # FK → inventory.id
    type: TransactionType
    quantity: int = Field(gt=0)
    unit_price: int = Field(ge=0)
    total_price: int = 0  # quantity * unit_price
    expenses: int = 0
    profit: int | None = None  # sales only
    profit_rate: float | None = None  # sales only, percent with 2 decimals
    transaction_date: date = Field(default_factory=date.today)
    lot_id: int | None = None
    is_checkout: bool = False
    notes: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def compute_total(self) -> "LedgerEntry":
        """Keep total_price derived from quantity and unit_price."""
        self.total_price = self.quantity * self.unit_price
        return self

    @property
    def is_purchase(self) -> bool:
        return self.type == TransactionType.PURCHASE

    @property
    def is_sale(self) -> bool:
        return self.type == TransactionType.SALE


class HistoryAction(str, Enum):
    """Kinds of quantity changes recorded in the audit log."""

    PURCHASE = "purchase"
    SALE = "sale"
    ADJUSTMENT = "adjustment"
    RETURN = "return"


class HistoryEntry(BaseModel):
    """Append-only audit record of a quantity change."""

    id: int | None = None
    inventory_id: int
    action_type: HistoryAction
    quantity_change: int
    quantity_before: int
    quantity_after: int
    ledger_entry_id: int | None = None
    reason: str | None = None
    notes: str | None = None
    is_modified: bool = False
    modified_at: datetime | None = None
    modified_reason: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class LedgerTotals(BaseModel):
    """Purchase and sale totals for one transaction date."""

    day: date
    purchase_total: int = 0
    purchase_expenses: int = 0
    sale_total: int = 0
    sale_profit: int = 0
    all_time_expenses: int = 0  # expenses of every purchase ever recorded
