"""Inventory domain entities."""

from datetime import UTC, date, datetime

from pydantic import BaseModel, Field


class InventoryAggregate(BaseModel):
    """
    Current stock and running cost for one (catalog item, condition) pair.

    All money values are integers in currency minor units. The aggregate is
    a cache derived from the ledger; the reconciliation engine can rebuild
    every field except market_price.
    """

    id: int | None = None
    catalog_item_id: int  # FK → catalog_items.id
    condition: str
    quantity: int = Field(default=0, ge=0)
    avg_purchase_price: int = 0  # Weighted Average Cost
    total_purchased: int = 0  # units ever purchased
    total_purchase_cost: int = 0
    total_expenses: int = 0
    avg_expense_per_unit: int = 0
    market_price: int | None = None  # supplied by price feeds, never derived
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def total_value(self) -> int:
        """Stock value at average cost = quantity * avg_purchase_price."""
        return self.quantity * self.avg_purchase_price

    @property
    def key(self) -> tuple[int, str]:
        return (self.catalog_item_id, self.condition)


class Lot(BaseModel):
    """A discrete purchase batch with its own cost, for lot-costed items."""

    id: int | None = None
    lot_number: str
    inventory_id: int  # FK → inventory.id
    quantity: int = Field(gt=0)  # units originally purchased
    remaining_qty: int = Field(ge=0)
    unit_cost: int = 0
    expenses: int = 0  # total purchase expenses of the batch
    unit_expense: int = 0
    purchase_date: date = Field(default_factory=date.today)
    ledger_entry_id: int | None = None  # the purchase that created the lot
    notes: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_qty == 0

    @property
    def is_untouched(self) -> bool:
        """True while nothing has been sold or withdrawn from the lot."""
        return self.remaining_qty == self.quantity


class InventoryValuation(BaseModel):
    """Stock on hand across all aggregates, at cost and at market."""

    total_units: int = 0
    total_kinds: int = 0  # aggregates, including empty ones
    total_cost: int = 0  # sum of quantity * avg_purchase_price
    estimated_value: int = 0  # market price where known, else average cost

    @property
    def estimated_profit(self) -> int:
        return self.estimated_value - self.total_cost
