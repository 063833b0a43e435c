"""Sell Checkout Item Use Case: record a sale of withdrawn units."""

from dataclasses import dataclass
from datetime import date

from src.application.dto.requests import SellItemRequest
from src.application.dto.responses import (
    CheckoutItemResponse,
    CheckoutResolutionResponse,
    InventoryResponse,
    LedgerEntryResponse,
)
from src.application.use_cases.base import CheckoutUseCase
from src.config import get_logger
from src.core.entities.checkout import CheckoutItem, CheckoutStatus
from src.core.entities.inventory import InventoryAggregate
from src.core.entities.ledger import (
    HistoryAction,
    HistoryEntry,
    LedgerEntry,
    TransactionType,
)
from src.core.exceptions import InventoryNotFoundError
from src.core.services import CompensationPlan, sale_figures

logger = get_logger(__name__)


@dataclass
class SellResult:
    item: CheckoutItem
    remaining_item: CheckoutItem | None
    entry: LedgerEntry
    aggregate: InventoryAggregate


class SellCheckoutItemUseCase(CheckoutUseCase):
    """
    Sell all or part of a pending item.

    Profit is measured against the cost snapshot taken at withdrawal. The
    stock already left the aggregate then, so the sale entry is flagged
    is_checkout and the aggregate quantity does not move.
    """

    async def execute(self, item_id: int, request: SellItemRequest) -> SellResult:
        """Execute sell use case."""
        item, folder = await self._load_item(item_id)
        logger.info(
            "checkout_sell_started",
            item_id=item_id,
            inventory_id=item.inventory_id,
            sale_unit_price=request.sale_unit_price,
            resolve_quantity=request.resolve_quantity,
        )

        inv_store = await self._get_inventory_store()
        ledger = await self._get_ledger_store()
        inventory_id = item.inventory_id

        async with self._hold(inventory_id, folder=item.folder_id):
            item, folder = await self._load_item(item_id)
            self._require_pending(item)
            quantity = self._resolve_quantity(item, request.resolve_quantity)

            aggregate = await inv_store.get_aggregate(inventory_id)
            if aggregate is None:
                raise InventoryNotFoundError(inventory_id)

            figures = sale_figures(
                request.sale_unit_price, quantity, item.unit_cost, item.unit_expense
            )
            notes = (
                f"Checkout sale: {request.notes}"
                if request.notes
                else f"Checkout sale ({folder.name})"
            )

            async with CompensationPlan(
                "checkout_sell", inventory_id=inventory_id, item_id=item_id
            ) as plan:
                entry = await plan.run(
                    "add_entry",
                    lambda: ledger.add_entry(
                        LedgerEntry(
                            inventory_id=inventory_id,
                            type=TransactionType.SALE,
                            quantity=quantity,
                            unit_price=request.sale_unit_price,
                            expenses=request.sale_expenses + figures.expenses,
                            profit=figures.profit,
                            profit_rate=figures.profit_rate,
                            transaction_date=request.transaction_date or date.today(),
                            lot_id=item.lot_id,
                            is_checkout=True,
                            notes=notes,
                        )
                    ),
                    lambda e: ledger.delete_entry(e.id),
                )

                # Stock left the shelf at withdrawal
                await plan.run(
                    "record_history",
                    lambda: self._record_history(
                        HistoryEntry(
                            inventory_id=inventory_id,
                            action_type=HistoryAction.SALE,
                            quantity_change=0,
                            quantity_before=aggregate.quantity,
                            quantity_after=aggregate.quantity,
                            ledger_entry_id=entry.id,
                            reason=f"Checkout sale: {folder.name}",
                            notes=request.notes,
                        )
                    ),
                    self._undo_history,
                )

                resolved, remaining = await self._resolve_item(
                    plan,
                    item,
                    quantity,
                    status=CheckoutStatus.SOLD,
                    sale_unit_price=request.sale_unit_price,
                    sale_expenses=request.sale_expenses,
                    sale_profit=figures.profit,
                    ledger_entry_id=entry.id,
                    resolution_notes=request.notes,
                )

        logger.info(
            "checkout_sell_complete",
            item_id=resolved.id,
            entry_id=entry.id,
            sold=quantity,
            profit=figures.profit,
            profit_rate=figures.profit_rate,
        )

        return SellResult(
            item=resolved, remaining_item=remaining, entry=entry, aggregate=aggregate
        )

    def to_response(self, result: SellResult) -> CheckoutResolutionResponse:
        """Convert result to API response."""
        return CheckoutResolutionResponse(
            item=CheckoutItemResponse.from_entity(result.item),
            remaining_item=(
                CheckoutItemResponse.from_entity(result.remaining_item)
                if result.remaining_item
                else None
            ),
            entry=LedgerEntryResponse.from_entity(result.entry),
            inventory=InventoryResponse.from_entity(result.aggregate),
        )
