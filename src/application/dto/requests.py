"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
Money fields are integers in currency minor units.
"""

from datetime import date

from pydantic import BaseModel, Field

# --- Ledger ---


class RecordPurchaseRequest(BaseModel):
    """Request to record a purchase into an (item, condition) aggregate."""

    catalog_item_id: int = Field(..., description="Catalog item ID")
    condition: str = Field(
        ...,
        min_length=1,
        description="Condition grade of the purchased units",
        examples=["A", "B", "PSA10"],
    )
    quantity: int = Field(..., gt=0, description="Units purchased")
    unit_price: int = Field(..., ge=0, description="Price paid per unit")
    expenses: int = Field(default=0, ge=0, description="Shipping, fees, etc. for the whole purchase")
    transaction_date: date | None = Field(
        default=None,
        description="Purchase date (defaults to today)",
    )
    notes: str | None = Field(default=None, description="Additional notes")


class RecordSaleRequest(BaseModel):
    """Request to record a direct sale out of an aggregate."""

    inventory_id: int = Field(..., description="Inventory aggregate ID")
    quantity: int = Field(..., gt=0, description="Units sold")
    unit_price: int = Field(..., ge=0, description="Sale price per unit")
    lot_id: int | None = Field(
        default=None,
        description="Lot to sell from (required for lot-costed items)",
    )
    transaction_date: date | None = Field(
        default=None,
        description="Sale date (defaults to today)",
    )
    notes: str | None = Field(default=None, description="Additional notes")


class EditLedgerEntryRequest(BaseModel):
    """Fields of a ledger entry that may be changed after the fact."""

    quantity: int | None = Field(default=None, gt=0)
    unit_price: int | None = Field(default=None, ge=0)
    expenses: int | None = Field(default=None, ge=0)
    transaction_date: date | None = None
    notes: str | None = None
    reason: str | None = Field(default=None, description="Why the entry was edited")


class DeleteLedgerEntryRequest(BaseModel):
    """Optional reason recorded when deleting a ledger entry."""

    reason: str | None = Field(default=None, description="Why the entry was deleted")


# --- Inventory ---


class SetMarketPriceRequest(BaseModel):
    """Market price supplied by a price feed; null clears it."""

    market_price: int | None = Field(..., ge=0, description="Market price per unit")


# --- Checkout ---


class CreateFolderRequest(BaseModel):
    """Request to create a checkout folder."""

    name: str = Field(..., description="Folder name", examples=["Auction 2024-06"])
    description: str | None = Field(default=None, description="Folder description")


class WithdrawRequest(BaseModel):
    """Request to move stock from an aggregate into a folder."""

    folder_id: int = Field(..., description="Target folder ID")
    inventory_id: int = Field(..., description="Inventory aggregate ID")
    quantity: int = Field(..., gt=0, description="Units to withdraw")
    lot_id: int | None = Field(
        default=None,
        description="Lot to withdraw from (required for lot-costed items)",
    )
    notes: str | None = Field(default=None, description="Resolution notes")


class ReturnItemRequest(BaseModel):
    """Request to put (part of) a pending item back on the shelf."""

    resolve_quantity: int | None = Field(
        default=None,
        description="Units to return (defaults to the whole item)",
    )
    notes: str | None = None


class SellItemRequest(BaseModel):
    """Request to record the sale of (part of) a pending item."""

    sale_unit_price: int = Field(..., ge=0, description="Sale price per unit")
    sale_expenses: int = Field(default=0, ge=0, description="Expenses of the sale")
    resolve_quantity: int | None = Field(
        default=None,
        description="Units sold (defaults to the whole item)",
    )
    transaction_date: date | None = None
    notes: str | None = None


class ConvertItemRequest(BaseModel):
    """Request to move (part of) a pending item into another condition."""

    new_condition: str = Field(..., description="Condition of the target aggregate", examples=["PSA10"])
    convert_expenses: int = Field(default=0, ge=0, description="Grading fees and similar")
    resolve_quantity: int | None = Field(
        default=None,
        description="Units converted (defaults to the whole item)",
    )
    transaction_date: date | None = None
    notes: str | None = None


class UndoItemRequest(BaseModel):
    """Request to revert a resolved item to pending."""

    notes: str | None = None

