"""
Catalog item as seen by the ledger.

The catalog itself is owned elsewhere; the ledger only reads an item's
identity and its costing policy.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class CostingPolicy(str, Enum):
    """How the cost basis of a sale or withdrawal is determined."""

    AVERAGE = "average"
    LOT = "lot"


class CatalogItem(BaseModel):
    """A sellable item. The costing policy is fixed at creation."""

    id: int | None = None
    name: str
    category: str | None = None
    costing_policy: CostingPolicy = CostingPolicy.AVERAGE
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_lot_costed(self) -> bool:
        return self.costing_policy == CostingPolicy.LOT
