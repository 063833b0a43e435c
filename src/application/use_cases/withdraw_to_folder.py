"""Withdraw To Folder Use Case: take stock off the shelf into a checkout folder."""

from dataclasses import dataclass

from src.application.dto.requests import WithdrawRequest
from src.application.dto.responses import (
    CheckoutItemResponse,
    CheckoutResolutionResponse,
    InventoryResponse,
)
from src.application.use_cases.base import CheckoutUseCase
from src.config import get_logger
from src.core.entities.checkout import CheckoutItem
from src.core.entities.inventory import InventoryAggregate
from src.core.entities.ledger import HistoryAction, HistoryEntry
from src.core.exceptions import FolderClosedError, FolderNotFoundError
from src.core.services import CompensationPlan

logger = get_logger(__name__)


@dataclass
class WithdrawResult:
    """Result of a withdrawal."""

    item: CheckoutItem
    aggregate: InventoryAggregate


class WithdrawToFolderUseCase(CheckoutUseCase):
    """
    Move units from an aggregate into a folder as a pending checkout item.

    The cost basis at this moment (average or lot) is frozen on the item.
    No ledger entry is written; the quantity change is recorded in history.
    """

    async def execute(self, request: WithdrawRequest) -> WithdrawResult:
        """Execute withdraw use case."""
        logger.info(
            "withdraw_started",
            folder_id=request.folder_id,
            inventory_id=request.inventory_id,
            quantity=request.quantity,
            lot_id=request.lot_id,
        )

        checkout = await self._get_checkout_store()
        inv_store = await self._get_inventory_store()
        resolver = await self._get_resolver()
        inventory_id = request.inventory_id
        quantity = request.quantity

        async with self._hold(inventory_id, folder=request.folder_id):
            folder = await checkout.get_folder(request.folder_id)
            if folder is None:
                raise FolderNotFoundError(request.folder_id)
            if folder.is_closed:
                raise FolderClosedError(request.folder_id)

            before = await resolver.load_aggregate(inventory_id)
            strategy = await resolver.resolve(before, quantity, request.lot_id)
            basis = strategy.cost_basis(quantity)
            lot_id = strategy.lot_id

            async with CompensationPlan(
                "withdraw", inventory_id=inventory_id, folder_id=request.folder_id
            ) as plan:
                if lot_id is not None:
                    await plan.run(
                        "decrement_lot",
                        lambda: inv_store.adjust_lot_remaining(lot_id, -quantity),
                        lambda _: inv_store.adjust_lot_remaining(lot_id, quantity),
                    )

                aggregate = await plan.run(
                    "decrement_stock",
                    lambda: inv_store.adjust_quantity(inventory_id, -quantity),
                    lambda _: inv_store.adjust_quantity(inventory_id, quantity),
                    settle=lambda _: self._settle_aggregate(inventory_id),
                )

                item = await plan.run(
                    "create_item",
                    lambda: checkout.create_item(
                        CheckoutItem(
                            folder_id=request.folder_id,
                            inventory_id=inventory_id,
                            lot_id=lot_id,
                            quantity=quantity,
                            unit_cost=basis.unit_cost,
                            unit_expense=basis.unit_expense,
                            resolution_notes=request.notes,
                        )
                    ),
                    lambda created: checkout.delete_item(created.id),
                )

                await plan.run(
                    "record_history",
                    lambda: self._record_history(
                        HistoryEntry(
                            inventory_id=inventory_id,
                            action_type=HistoryAction.ADJUSTMENT,
                            quantity_change=-quantity,
                            quantity_before=before.quantity,
                            quantity_after=aggregate.quantity,
                            reason=f"Checkout: {folder.name}",
                            notes=request.notes,
                        )
                    ),
                    self._undo_history,
                )

        logger.info(
            "withdraw_complete",
            item_id=item.id,
            inventory_id=inventory_id,
            quantity=aggregate.quantity,
            unit_cost=item.unit_cost,
        )

        return WithdrawResult(item=item, aggregate=aggregate)

    def to_response(self, result: WithdrawResult) -> CheckoutResolutionResponse:
        """Convert result to API response."""
        return CheckoutResolutionResponse(
            item=CheckoutItemResponse.from_entity(result.item),
            inventory=InventoryResponse.from_entity(result.aggregate),
        )
