"""Cancel Checkout Item Use Case: undo a withdrawal entirely."""

from dataclasses import dataclass

from src.application.dto.responses import CheckoutResolutionResponse, InventoryResponse
from src.application.use_cases.base import CheckoutUseCase
from src.config import get_logger
from src.core.entities.inventory import InventoryAggregate
from src.core.entities.ledger import HistoryAction, HistoryEntry
from src.core.services import CompensationPlan

logger = get_logger(__name__)


@dataclass
class CancelResult:
    item_id: int
    aggregate: InventoryAggregate


class CancelCheckoutItemUseCase(CheckoutUseCase):
    """Delete a pending item and put its units back in the aggregate and lot."""

    async def execute(self, item_id: int) -> CancelResult:
        """Execute cancel use case."""
        item, _ = await self._load_item(item_id)
        logger.info("cancel_started", item_id=item_id, inventory_id=item.inventory_id)

        checkout = await self._get_checkout_store()
        inv_store = await self._get_inventory_store()
        inventory_id = item.inventory_id

        async with self._hold(inventory_id, folder=item.folder_id):
            item, folder = await self._load_item(item_id)
            self._require_pending(item)
            quantity = item.quantity

            async with CompensationPlan(
                "cancel", inventory_id=inventory_id, item_id=item_id
            ) as plan:
                await plan.run(
                    "delete_item",
                    lambda: checkout.delete_item(item_id),
                    lambda _: checkout.create_item(item),
                )

                aggregate = await plan.run(
                    "restore_stock",
                    lambda: inv_store.adjust_quantity(inventory_id, quantity),
                    lambda _: inv_store.adjust_quantity(inventory_id, -quantity),
                )

                if item.lot_id is not None:
                    await plan.run(
                        "restore_lot",
                        lambda: inv_store.adjust_lot_remaining(item.lot_id, quantity),
                        lambda _: inv_store.adjust_lot_remaining(item.lot_id, -quantity),
                    )

                await plan.run(
                    "record_history",
                    lambda: self._record_history(
                        HistoryEntry(
                            inventory_id=inventory_id,
                            action_type=HistoryAction.ADJUSTMENT,
                            quantity_change=quantity,
                            quantity_before=aggregate.quantity - quantity,
                            quantity_after=aggregate.quantity,
                            reason=f"Checkout cancelled: {folder.name}",
                        )
                    ),
                    self._undo_history,
                )

        logger.info(
            "cancel_complete",
            item_id=item_id,
            inventory_id=inventory_id,
            restored=quantity,
            quantity=aggregate.quantity,
        )
        return CancelResult(item_id=item_id, aggregate=aggregate)

    def to_response(self, result: CancelResult) -> CheckoutResolutionResponse:
        """Convert result to API response."""
        return CheckoutResolutionResponse(
            inventory=InventoryResponse.from_entity(result.aggregate)
        )
