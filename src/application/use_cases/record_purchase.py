"""Record Purchase Use Case: stock IN with weighted-average recalculation."""

from dataclasses import dataclass
from datetime import date

from src.application.dto.requests import RecordPurchaseRequest
from src.application.dto.responses import (
    InventoryResponse,
    LedgerEntryResponse,
    LotResponse,
    PurchaseResponse,
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
from src.core.exceptions import CatalogItemNotFoundError, InventoryNotFoundError
from src.core.services import CompensationPlan, apply_purchase, expense_per_unit

logger = get_logger(__name__)


@dataclass
class RecordPurchaseResult:
    """Result of recording a purchase."""

    entry: LedgerEntry
    aggregate: InventoryAggregate
    lot: Lot | None = None
    created: bool = False  # True if the aggregate did not exist before


class RecordPurchaseUseCase(LedgerUseCase):
    """Record a purchase: ledger entry, lot (lot-costed items), aggregate, history."""

    async def execute(self, request: RecordPurchaseRequest) -> RecordPurchaseResult:
        """Execute record purchase use case."""
        logger.info(
            "record_purchase_started",
            catalog_item_id=request.catalog_item_id,
            condition=request.condition,
            quantity=request.quantity,
            unit_price=request.unit_price,
        )

        catalog = await self._get_catalog()
        catalog_item = await catalog.get_item(request.catalog_item_id)
        if catalog_item is None:
            raise CatalogItemNotFoundError(request.catalog_item_id)

        inv_store = await self._get_inventory_store()
        ledger = await self._get_ledger_store()

        aggregate, created = await inv_store.get_or_create_aggregate(
            request.catalog_item_id, request.condition
        )
        inventory_id: int = aggregate.id  # type: ignore[assignment]
        transaction_date = request.transaction_date or date.today()

        async with self._hold(inventory_id):
            # Re-read under the lock
            before = await inv_store.get_aggregate(inventory_id)
            if before is None:
                raise InventoryNotFoundError(inventory_id)
            after = apply_purchase(
                before, request.quantity, request.unit_price, request.expenses
            )

            async with CompensationPlan(
                "record_purchase", inventory_id=inventory_id
            ) as plan:
                entry = await plan.run(
                    "add_entry",
                    lambda: ledger.add_entry(
                        LedgerEntry(
                            inventory_id=inventory_id,
                            type=TransactionType.PURCHASE,
                            quantity=request.quantity,
                            unit_price=request.unit_price,
                            expenses=request.expenses,
                            transaction_date=transaction_date,
                            notes=request.notes,
                        )
                    ),
                    lambda e: ledger.delete_entry(e.id),
                )

                lot = None
                if catalog_item.is_lot_costed:
                    allocator = await self._get_lot_allocator()
                    lot = await plan.run(
                        "create_lot",
                        lambda: allocator.create_lot(
                            Lot(
                                lot_number="",
                                inventory_id=inventory_id,
                                quantity=request.quantity,
                                remaining_qty=request.quantity,
                                unit_cost=request.unit_price,
                                expenses=request.expenses,
                                unit_expense=expense_per_unit(
                                    request.expenses, request.quantity
                                ),
                                purchase_date=transaction_date,
                                ledger_entry_id=entry.id,
                                notes=request.notes,
                            )
                        ),
                        lambda created_lot: inv_store.delete_lot(created_lot.id),
                    )
                    await ledger.set_entry_lot(entry.id, lot.id)  # type: ignore[arg-type]
                    entry = entry.model_copy(update={"lot_id": lot.id})

                aggregate = await plan.run(
                    "update_aggregate",
                    lambda: inv_store.update_aggregate(after),
                    lambda _: inv_store.update_aggregate(before),
                )

                await plan.run(
                    "record_history",
                    lambda: self._record_history(
                        HistoryEntry(
                            inventory_id=inventory_id,
                            action_type=HistoryAction.PURCHASE,
                            quantity_change=request.quantity,
                            quantity_before=before.quantity,
                            quantity_after=aggregate.quantity,
                            ledger_entry_id=entry.id,
                            reason="Purchase",
                            notes=request.notes,
                        )
                    ),
                    self._undo_history,
                )

        logger.info(
            "record_purchase_complete",
            entry_id=entry.id,
            inventory_id=inventory_id,
            quantity=aggregate.quantity,
            avg_purchase_price=aggregate.avg_purchase_price,
            lot_number=lot.lot_number if lot else None,
        )

        return RecordPurchaseResult(
            entry=entry, aggregate=aggregate, lot=lot, created=created
        )

    def to_response(self, result: RecordPurchaseResult) -> PurchaseResponse:
        """Convert result to API response."""
        return PurchaseResponse(
            entry=LedgerEntryResponse.from_entity(result.entry),
            inventory=InventoryResponse.from_entity(result.aggregate),
            lot=LotResponse.from_entity(result.lot) if result.lot else None,
            created=result.created,
        )
