"""Return Checkout Item Use Case: put withdrawn units back on the shelf."""

from dataclasses import dataclass

from src.application.dto.requests import ReturnItemRequest
from src.application.dto.responses import (
    CheckoutItemResponse,
    CheckoutResolutionResponse,
    InventoryResponse,
)
from src.application.use_cases.base import CheckoutUseCase
from src.config import get_logger
from src.core.entities.checkout import CheckoutItem, CheckoutStatus
from src.core.entities.inventory import InventoryAggregate
from src.core.entities.ledger import HistoryAction, HistoryEntry
from src.core.services import CompensationPlan

logger = get_logger(__name__)


@dataclass
class ReturnResult:
    item: CheckoutItem
    remaining_item: CheckoutItem | None
    aggregate: InventoryAggregate


class ReturnCheckoutItemUseCase(CheckoutUseCase):
    """Return all or part of a pending item to its aggregate (and lot)."""

    async def execute(
        self, item_id: int, request: ReturnItemRequest | None = None
    ) -> ReturnResult:
        """Execute return use case."""
        request = request or ReturnItemRequest()
        item, folder = await self._load_item(item_id)
        logger.info(
            "return_started",
            item_id=item_id,
            inventory_id=item.inventory_id,
            resolve_quantity=request.resolve_quantity,
        )

        inv_store = await self._get_inventory_store()
        inventory_id = item.inventory_id

        async with self._hold(inventory_id, folder=item.folder_id):
            item, folder = await self._load_item(item_id)
            self._require_pending(item)
            quantity = self._resolve_quantity(item, request.resolve_quantity)

            async with CompensationPlan(
                "return", inventory_id=inventory_id, item_id=item_id
            ) as plan:
                resolved, remaining = await self._resolve_item(
                    plan,
                    item,
                    quantity,
                    status=CheckoutStatus.RETURNED,
                    resolution_notes=request.notes,
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
                            action_type=HistoryAction.RETURN,
                            quantity_change=quantity,
                            quantity_before=aggregate.quantity - quantity,
                            quantity_after=aggregate.quantity,
                            reason=f"Checkout return: {folder.name}",
                            notes=request.notes,
                        )
                    ),
                    self._undo_history,
                )

        logger.info(
            "return_complete",
            item_id=resolved.id,
            inventory_id=inventory_id,
            returned=quantity,
            quantity=aggregate.quantity,
        )

        return ReturnResult(item=resolved, remaining_item=remaining, aggregate=aggregate)

    def to_response(self, result: ReturnResult) -> CheckoutResolutionResponse:
        """Convert result to API response."""
        return CheckoutResolutionResponse(
            item=CheckoutItemResponse.from_entity(result.item),
            remaining_item=(
                CheckoutItemResponse.from_entity(result.remaining_item)
                if result.remaining_item
                else None
            ),
            inventory=InventoryResponse.from_entity(result.aggregate),
        )
