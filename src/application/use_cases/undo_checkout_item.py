"""Undo Checkout Item Use Case: take a resolution back to pending."""

from dataclasses import dataclass
from datetime import UTC, datetime

from src.application.dto.requests import UndoItemRequest
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
from src.core.exceptions import (
    InsufficientStockForUndoError,
    LedgerEntryNotFoundError,
    NotResolvedError,
)
from src.core.services import CompensationPlan

logger = get_logger(__name__)

_CLEARED_RESOLUTION = {
    "status": CheckoutStatus.PENDING,
    "resolved_at": None,
    "resolution_notes": None,
    "sale_unit_price": None,
    "sale_expenses": None,
    "sale_profit": None,
    "converted_condition": None,
    "converted_expenses": None,
    "ledger_entry_id": None,
}


@dataclass
class UndoResult:
    item: CheckoutItem
    aggregate: InventoryAggregate | None = None
    target: InventoryAggregate | None = None


class UndoCheckoutItemUseCase(CheckoutUseCase):
    """
    Revert a returned, sold or converted item to pending.

    returned: the units go back into the hold, so the aggregate (and lot)
        must still have them.
    sold: the checkout sale entry and its history are removed.
    converted: the purchase into the target condition is removed and the
        target aggregate is rebuilt from its ledger. The target must still
        hold the units and any lot made by the conversion must be untouched.
    """

    async def execute(
        self, item_id: int, request: UndoItemRequest | None = None
    ) -> UndoResult:
        """Execute undo use case."""
        request = request or UndoItemRequest()
        item, _ = await self._load_item(item_id)
        logger.info(
            "undo_started",
            item_id=item_id,
            inventory_id=item.inventory_id,
            status=item.status.value,
        )

        if item.is_pending:
            raise NotResolvedError(item_id)

        target_id = None
        if item.status == CheckoutStatus.CONVERTED and item.ledger_entry_id is not None:
            ledger = await self._get_ledger_store()
            entry = await ledger.get_entry(item.ledger_entry_id)
            if entry is not None:
                target_id = entry.inventory_id

        async with self._hold(item.inventory_id, target_id, folder=item.folder_id):
            item, _ = await self._load_item(item_id)
            if item.is_pending:
                raise NotResolvedError(item_id)

            if item.status == CheckoutStatus.RETURNED:
                result = await self._undo_return(item, request)
            elif item.status == CheckoutStatus.SOLD:
                result = await self._undo_sale(item)
            else:
                result = await self._undo_conversion(item)

        logger.info(
            "undo_complete",
            item_id=item_id,
            inventory_id=item.inventory_id,
            previous_status=item.status.value,
            quantity=item.quantity,
        )
        return result

    def _pending_copy(self, item: CheckoutItem) -> CheckoutItem:
        return item.model_copy(
            update={**_CLEARED_RESOLUTION, "updated_at": datetime.now(UTC)}
        )

    async def _reset_item(self, plan: CompensationPlan, item: CheckoutItem) -> CheckoutItem:
        store = await self._get_checkout_store()
        pending = self._pending_copy(item)
        return await plan.run(
            "reset_item",
            lambda: store.update_item(pending),
            lambda _: store.update_item(item),
        )

    async def _undo_return(
        self, item: CheckoutItem, request: UndoItemRequest
    ) -> UndoResult:
        inv_store = await self._get_inventory_store()
        resolver = await self._get_resolver()
        quantity = item.quantity
        inventory_id = item.inventory_id

        before = await resolver.load_aggregate(inventory_id)
        if before.quantity < quantity:
            raise InsufficientStockForUndoError(
                item_id=item.id,  # type: ignore[arg-type]
                requested=quantity,
                available=before.quantity,
                reason="returned units are no longer in stock",
            )
        if item.lot_id is not None:
            lot = await inv_store.get_lot(item.lot_id)
            if lot is None or lot.remaining_qty < quantity:
                raise InsufficientStockForUndoError(
                    item_id=item.id,  # type: ignore[arg-type]
                    requested=quantity,
                    available=lot.remaining_qty if lot else 0,
                    reason="returned units are no longer in the lot",
                )

        async with CompensationPlan(
            "undo_return", inventory_id=inventory_id, item_id=item.id
        ) as plan:
            pending = await self._reset_item(plan, item)

            aggregate = await plan.run(
                "decrement_stock",
                lambda: inv_store.adjust_quantity(inventory_id, -quantity),
                lambda _: inv_store.adjust_quantity(inventory_id, quantity),
            )

            if item.lot_id is not None:
                await plan.run(
                    "decrement_lot",
                    lambda: inv_store.adjust_lot_remaining(item.lot_id, -quantity),
                    lambda _: inv_store.adjust_lot_remaining(item.lot_id, quantity),
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
                        reason="Checkout return undone",
                        notes=request.notes,
                    )
                ),
                self._undo_history,
            )

        return UndoResult(item=pending, aggregate=aggregate)

    async def _undo_sale(self, item: CheckoutItem) -> UndoResult:
        ledger = await self._get_ledger_store()
        inv_store = await self._get_inventory_store()
        entry = (
            await ledger.get_entry(item.ledger_entry_id)
            if item.ledger_entry_id is not None
            else None
        )

        async with CompensationPlan(
            "undo_sale", inventory_id=item.inventory_id, item_id=item.id
        ) as plan:
            pending = await self._reset_item(plan, item)

            if entry is not None:
                await self._delete_entry_with_history(plan, entry.id)  # type: ignore[arg-type]

        aggregate = await inv_store.get_aggregate(item.inventory_id)
        return UndoResult(item=pending, aggregate=aggregate)

    async def _undo_conversion(self, item: CheckoutItem) -> UndoResult:
        ledger = await self._get_ledger_store()
        inv_store = await self._get_inventory_store()
        engine = await self._get_engine()
        quantity = item.quantity

        entry = (
            await ledger.get_entry(item.ledger_entry_id)
            if item.ledger_entry_id is not None
            else None
        )
        if entry is None:
            raise LedgerEntryNotFoundError(item.ledger_entry_id)  # type: ignore[arg-type]
        target_id = entry.inventory_id

        target = await inv_store.get_aggregate(target_id)
        available = target.quantity if target else 0
        if available < quantity:
            raise InsufficientStockForUndoError(
                item_id=item.id,  # type: ignore[arg-type]
                requested=quantity,
                available=available,
                reason="converted units are no longer in the target condition",
            )

        lot = await inv_store.get_lot(entry.lot_id) if entry.lot_id is not None else None
        if lot is not None and not lot.is_untouched:
            raise InsufficientStockForUndoError(
                item_id=item.id,  # type: ignore[arg-type]
                requested=quantity,
                available=lot.remaining_qty,
                reason=f"lot {lot.lot_number} was already used",
            )

        replay = await engine.plan(
            target_id, exclude={entry.id}, operation="undo_conversion"  # type: ignore[arg-type]
        )

        async with CompensationPlan(
            "undo_conversion",
            inventory_id=item.inventory_id,
            target_id=target_id,
            item_id=item.id,
        ) as plan:
            pending = await self._reset_item(plan, item)
            await self._delete_entry_with_history(plan, entry.id, relink=lot)  # type: ignore[arg-type]

            if lot is not None:
                await plan.run(
                    "delete_lot",
                    lambda: inv_store.delete_lot(lot.id),  # type: ignore[arg-type]
                    lambda _: inv_store.create_lot(
                        lot.model_copy(update={"ledger_entry_id": None})
                    ),
                )

            target = await plan.run(
                "apply_replay",
                lambda: engine.apply(replay),
                lambda _: engine.revert(replay),
            )

        source = await inv_store.get_aggregate(item.inventory_id)
        return UndoResult(item=pending, aggregate=source, target=target)

    async def _delete_entry_with_history(
        self, plan: CompensationPlan, entry_id: int, relink=None
    ) -> None:
        """Remove an entry and its history rows; the inverse restores both under their ids."""
        ledger = await self._get_ledger_store()
        inv_store = await self._get_inventory_store()
        entry = await ledger.get_entry(entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError(entry_id)

        async def restore_history(rows) -> None:
            for row in rows:
                await ledger.add_history(row)

        async def restore_entry(_) -> None:
            await ledger.add_entry(entry)
            if relink is not None:
                await inv_store.update_lot(relink)

        await plan.run(
            "delete_history",
            lambda: ledger.delete_history_for_entry(entry_id),
            restore_history,
        )
        await plan.run("delete_entry", lambda: ledger.delete_entry(entry_id), restore_entry)

    def to_response(self, result: UndoResult) -> CheckoutResolutionResponse:
        """Convert result to API response."""
        return CheckoutResolutionResponse(
            item=CheckoutItemResponse.from_entity(result.item),
            inventory=(
                InventoryResponse.from_entity(result.aggregate)
                if result.aggregate
                else None
            ),
            target_inventory=(
                InventoryResponse.from_entity(result.target) if result.target else None
            ),
        )
