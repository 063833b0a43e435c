"""Record Sale Use Case: direct stock OUT with profit at the cost basis."""

from dataclasses import dataclass
from datetime import date

from src.application.dto.requests import RecordSaleRequest
from src.application.dto.responses import (
    InventoryResponse,
    LedgerEntryResponse,
    LotResponse,
    SaleResponse,
)
from src.application.use_cases.base import LedgerUseCase
from src.config import get_logger
from src.core.entities.inventory import InventoryAggregate, Lot
from src.core.entities.ledger import (
    HistoryAction,
    HistoryEntry,
    LedgerEntry,
    TransactionType,
)
from src.core.services import CompensationPlan, sale_figures

logger = get_logger(__name__)


@dataclass
class RecordSaleResult:
    """Result of recording a sale."""

    entry: LedgerEntry
    aggregate: InventoryAggregate
    lot: Lot | None = None


class RecordSaleUseCase(LedgerUseCase):
    """Sell from an aggregate, costed by average or by the chosen lot."""

    async def execute(self, request: RecordSaleRequest) -> RecordSaleResult:
        """Execute record sale use case."""
        logger.info(
            "record_sale_started",
            inventory_id=request.inventory_id,
            quantity=request.quantity,
            unit_price=request.unit_price,
            lot_id=request.lot_id,
        )

        inv_store = await self._get_inventory_store()
        ledger = await self._get_ledger_store()
        resolver = await self._get_resolver()
        inventory_id = request.inventory_id
        quantity = request.quantity

        async with self._hold(inventory_id):
            # Every check happens before the first write
            before = await resolver.load_aggregate(inventory_id)
            strategy = await resolver.resolve(before, quantity, request.lot_id)
            basis = strategy.cost_basis(quantity)
            figures = sale_figures(
                request.unit_price, quantity, basis.unit_cost, basis.unit_expense
            )
            lot_id = strategy.lot_id

            async with CompensationPlan(
                "record_sale", inventory_id=inventory_id, lot_id=lot_id
            ) as plan:
                lot = None
                if lot_id is not None:
                    lot = await plan.run(
                        "decrement_lot",
                        lambda: inv_store.adjust_lot_remaining(lot_id, -quantity),
                        lambda _: inv_store.adjust_lot_remaining(lot_id, quantity),
                    )

                aggregate = await plan.run(
                    "decrement_stock",
                    lambda: inv_store.adjust_quantity(inventory_id, -quantity),
                    lambda _: inv_store.adjust_quantity(inventory_id, quantity),
                )

                entry = await plan.run(
                    "add_entry",
                    lambda: ledger.add_entry(
                        LedgerEntry(
                            inventory_id=inventory_id,
                            type=TransactionType.SALE,
                            quantity=quantity,
                            unit_price=request.unit_price,
                            expenses=figures.expenses,
                            profit=figures.profit,
                            profit_rate=figures.profit_rate,
                            transaction_date=request.transaction_date or date.today(),
                            lot_id=lot_id,
                            notes=request.notes,
                        )
                    ),
                    lambda e: ledger.delete_entry(e.id),
                )

                await plan.run(
                    "record_history",
                    lambda: self._record_history(
                        HistoryEntry(
                            inventory_id=inventory_id,
                            action_type=HistoryAction.SALE,
                            quantity_change=-quantity,
                            quantity_before=before.quantity,
                            quantity_after=aggregate.quantity,
                            ledger_entry_id=entry.id,
                            reason="Sale",
                            notes=request.notes,
                        )
                    ),
                    self._undo_history,
                )

        logger.info(
            "record_sale_complete",
            entry_id=entry.id,
            inventory_id=inventory_id,
            remaining_qty=aggregate.quantity,
            profit=figures.profit,
            profit_rate=figures.profit_rate,
        )

        return RecordSaleResult(entry=entry, aggregate=aggregate, lot=lot)

    def to_response(self, result: RecordSaleResult) -> SaleResponse:
        """Convert result to API response."""
        return SaleResponse(
            entry=LedgerEntryResponse.from_entity(result.entry),
            inventory=InventoryResponse.from_entity(result.aggregate),
            lot=LotResponse.from_entity(result.lot) if result.lot else None,
        )
