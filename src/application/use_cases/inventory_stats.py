"""Inventory Stats Use Case: valuation of stock on hand and one day's trading."""

from dataclasses import dataclass
from datetime import date

from src.application.dto.responses import InventoryStatsResponse
from src.application.use_cases.base import LedgerUseCase
from src.config import get_logger
from src.core.entities.inventory import InventoryValuation
from src.core.entities.ledger import LedgerTotals

logger = get_logger(__name__)


@dataclass
class InventoryStatsResult:
    """Stock valuation plus the ledger totals of one day."""

    valuation: InventoryValuation
    totals: LedgerTotals


class InventoryStatsUseCase(LedgerUseCase):
    """
    Summarise stock at cost and at market, and the trading of one date.

    Read-only and lock-free: a write landing between the two queries can
    show up in one figure and not the other.
    """

    async def execute(self, day: date | None = None) -> InventoryStatsResult:
        day = day or date.today()
        inv_store = await self._get_inventory_store()
        ledger = await self._get_ledger_store()

        valuation = await inv_store.get_valuation()
        totals = await ledger.get_totals(day)

        logger.debug(
            "inventory_stats_computed",
            day=day.isoformat(),
            total_units=valuation.total_units,
            estimated_value=valuation.estimated_value,
        )
        return InventoryStatsResult(valuation=valuation, totals=totals)

    def to_response(self, result: InventoryStatsResult) -> InventoryStatsResponse:
        return InventoryStatsResponse.from_entities(result.valuation, result.totals)
