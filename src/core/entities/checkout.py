"""
Checkout (reservation) entities.

Stock taken off the shelf for auctions, consignment and similar is tracked
as checkout items grouped in folders until its fate is decided.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class FolderStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class CheckoutStatus(str, Enum):
    """Checkout item states. Everything except PENDING is terminal."""

    PENDING = "pending"
    RETURNED = "returned"
    SOLD = "sold"
    CONVERTED = "converted"


# Holds in these states are still off the aggregate's shelf count
HOLDING_STATUSES = frozenset(
    {CheckoutStatus.PENDING, CheckoutStatus.SOLD, CheckoutStatus.CONVERTED}
)


class CheckoutFolder(BaseModel):
    """A named group of checkout items."""

    id: int | None = None
    name: str
    description: str | None = None
    status: FolderStatus = FolderStatus.OPEN
    closed_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_closed(self) -> bool:
        return self.status == FolderStatus.CLOSED


class CheckoutItem(BaseModel):
    """
    A quantity withdrawn from an aggregate into a folder.

    unit_cost and unit_expense are snapshotted at withdrawal and are the
    cost basis for any later sale, regardless of how the aggregate's
    average moves afterwards.
    """

    id: int | None = None
    folder_id: int
    inventory_id: int
    lot_id: int | None = None
    quantity: int = Field(gt=0)
    unit_cost: int = 0
    unit_expense: int = 0
    status: CheckoutStatus = CheckoutStatus.PENDING
    resolved_at: datetime | None = None
    resolution_notes: str | None = None
    sale_unit_price: int | None = None
    sale_expenses: int | None = None
    sale_profit: int | None = None
    converted_condition: str | None = None
    converted_expenses: int | None = None
    ledger_entry_id: int | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_pending(self) -> bool:
        return self.status == CheckoutStatus.PENDING

    @property
    def is_holding(self) -> bool:
        return self.status in HOLDING_STATUSES

    @property
    def locked_amount(self) -> int:
        return self.unit_cost * self.quantity

    def resolved_copy(self, quantity: int, **resolution) -> "CheckoutItem":
        """Split off a resolved portion carrying the same cost snapshot."""
        now = datetime.now(UTC)
        return CheckoutItem(
            folder_id=self.folder_id,
            inventory_id=self.inventory_id,
            lot_id=self.lot_id,
            quantity=quantity,
            unit_cost=self.unit_cost,
            unit_expense=self.unit_expense,
            resolved_at=now,
            created_at=now,
            updated_at=now,
            **resolution,
        )


class FolderSummary(BaseModel):
    """A folder with its items and pending totals."""

    folder: CheckoutFolder
    items: list[CheckoutItem] = Field(default_factory=list)

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def pending_count(self) -> int:
        return sum(1 for i in self.items if i.is_pending)

    @property
    def locked_amount(self) -> int:
        return sum(i.locked_amount for i in self.items if i.is_pending)


class CheckoutStats(BaseModel):
    """Money tied up in pending checkouts across all folders."""

    locked_amount: int = 0
    locked_expenses: int = 0
    pending_items: int = 0
    open_folders: int = 0

    @property
    def total_locked_value(self) -> int:
        return self.locked_amount + self.locked_expenses
