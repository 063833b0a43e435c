"""Delete Ledger Entry Use Case: remove an entry and rebuild by replay."""

from dataclasses import dataclass
from datetime import UTC, datetime

from src.application.dto.requests import DeleteLedgerEntryRequest
from src.application.dto.responses import (
    InventoryResponse,
    LedgerChangeResponse,
    LedgerEntryResponse,
)
from src.application.use_cases.base import LedgerUseCase
from src.config import get_logger, get_settings
from src.core.entities.inventory import InventoryAggregate, Lot
from src.core.entities.ledger import HistoryAction, HistoryEntry, LedgerEntry
from src.core.exceptions import (
    CheckoutLinkedEntryError,
    LedgerEntryNotFoundError,
    WouldGoNegativeError,
)
from src.core.services import CompensationPlan

logger = get_logger(__name__)


@dataclass
class DeleteLedgerEntryResult:
    """Result of deleting a ledger entry."""

    deleted: LedgerEntry
    aggregate: InventoryAggregate
    restated_entries: int = 0


class DeleteLedgerEntryUseCase(LedgerUseCase):
    """
    Delete a purchase or direct sale.

    A purchase whose lot has been sold from or withdrawn cannot be deleted.
    Deleting a purchase removes its untouched lot; deleting a lot sale puts
    the units back into the lot.
    """

    async def execute(
        self, entry_id: int, request: DeleteLedgerEntryRequest | None = None
    ) -> DeleteLedgerEntryResult:
        """Execute delete ledger entry use case."""
        request = request or DeleteLedgerEntryRequest()
        logger.info("delete_ledger_entry_started", entry_id=entry_id)

        ledger = await self._get_ledger_store()
        inv_store = await self._get_inventory_store()
        engine = await self._get_engine()

        entry = await ledger.get_entry(entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError(entry_id)
        inventory_id = entry.inventory_id

        async with self._hold(inventory_id):
            entry = await ledger.get_entry(entry_id)
            if entry is None:
                raise LedgerEntryNotFoundError(entry_id)
            if entry.is_checkout:
                raise CheckoutLinkedEntryError(entry_id)

            lot: Lot | None = None
            if entry.lot_id is not None:
                lot = await inv_store.get_lot(entry.lot_id)

            owns_lot = (
                lot is not None and entry.is_purchase and lot.ledger_entry_id == entry.id
            )
            if owns_lot and not lot.is_untouched:  # type: ignore[union-attr]
                raise WouldGoNegativeError(
                    inventory_id=inventory_id,
                    resulting_quantity=lot.remaining_qty - lot.quantity,  # type: ignore[union-attr]
                    operation="delete_ledger_entry",
                )

            replay = await engine.plan(
                inventory_id, exclude={entry_id}, operation="delete_ledger_entry"
            )
            before = replay.previous_aggregate

            async def restore_entry(_) -> None:
                await ledger.add_entry(entry)
                if owns_lot:
                    await inv_store.update_lot(lot)  # type: ignore[arg-type]

            async with CompensationPlan(
                "delete_ledger_entry", inventory_id=inventory_id, entry_id=entry_id
            ) as plan:
                await plan.run(
                    "delete_entry", lambda: ledger.delete_entry(entry_id), restore_entry
                )

                if owns_lot:
                    await plan.run(
                        "delete_lot",
                        lambda: inv_store.delete_lot(lot.id),  # type: ignore[union-attr]
                        lambda _: inv_store.create_lot(
                            lot.model_copy(update={"ledger_entry_id": None})  # type: ignore[union-attr]
                        ),
                    )
                elif lot is not None and entry.is_sale:
                    await plan.run(
                        "restore_lot",
                        lambda: inv_store.adjust_lot_remaining(lot.id, entry.quantity),
                        lambda _: inv_store.adjust_lot_remaining(lot.id, -entry.quantity),
                    )

                aggregate = await plan.run(
                    "apply_replay",
                    lambda: engine.apply(replay),
                    lambda _: engine.revert(replay),
                )

                reason = request.reason or get_settings().ledger.delete_reason
                await plan.run(
                    "record_history",
                    lambda: self._record_history(
                        HistoryEntry(
                            inventory_id=inventory_id,
                            action_type=HistoryAction.ADJUSTMENT,
                            quantity_change=(
                                -entry.quantity if entry.is_purchase else entry.quantity
                            ),
                            quantity_before=before.quantity,  # type: ignore[union-attr]
                            quantity_after=aggregate.quantity,
                            reason=reason,
                            is_modified=True,
                            modified_at=datetime.now(UTC),
                            modified_reason=reason,
                        )
                    ),
                    self._undo_history,
                )

        logger.info(
            "delete_ledger_entry_complete",
            entry_id=entry_id,
            inventory_id=inventory_id,
            quantity=aggregate.quantity,
            restated=len(replay.changed_entries),
        )

        return DeleteLedgerEntryResult(
            deleted=entry,
            aggregate=aggregate,
            restated_entries=len(replay.changed_entries),
        )

    def to_response(self, result: DeleteLedgerEntryResult) -> LedgerChangeResponse:
        """Convert result to API response."""
        return LedgerChangeResponse(
            entry=LedgerEntryResponse.from_entity(result.deleted),
            inventory=InventoryResponse.from_entity(result.aggregate),
            restated_entries=result.restated_entries,
        )
