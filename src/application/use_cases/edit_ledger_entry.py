"""Edit Ledger Entry Use Case: out-of-band correction repaired by replay."""

from dataclasses import dataclass
from datetime import UTC, datetime

from src.application.dto.requests import EditLedgerEntryRequest
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
    LotInsufficientError,
    WouldGoNegativeError,
)
from src.core.services import CompensationPlan, expense_per_unit

logger = get_logger(__name__)

EDITABLE_FIELDS = ("quantity", "unit_price", "expenses", "transaction_date", "notes")


@dataclass
class EditLedgerEntryResult:
    """Result of editing a ledger entry."""

    entry: LedgerEntry
    aggregate: InventoryAggregate
    restated_entries: int = 0


class EditLedgerEntryUseCase(LedgerUseCase):
    """
    Change quantity, price, expenses, date or notes of an entry.

    The whole ledger of the aggregate is replayed with the change applied
    in memory first; if the replay would leave negative stock nothing is
    written. Lots follow the entry: a purchase's lot takes the new size
    and cost, a lot sale moves the lot remainder by the quantity delta.
    """

    async def execute(
        self, entry_id: int, request: EditLedgerEntryRequest
    ) -> EditLedgerEntryResult:
        """Execute edit ledger entry use case."""
        changes = {
            field: value
            for field, value in request.model_dump(
                include=set(EDITABLE_FIELDS), exclude_unset=True
            ).items()
            if value is not None or field == "notes"
        }
        logger.info("edit_ledger_entry_started", entry_id=entry_id, fields=sorted(changes))

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

            # Rebuild through the constructor so total_price is re-derived
            updated = LedgerEntry(**{**entry.model_dump(), **changes})
            delta = updated.quantity - entry.quantity

            lot: Lot | None = None
            new_lot: Lot | None = None
            if entry.lot_id is not None:
                lot = await inv_store.get_lot(entry.lot_id)

            if lot is not None and entry.is_purchase and lot.ledger_entry_id == entry.id:
                new_remaining = lot.remaining_qty + delta
                if new_remaining < 0:
                    raise WouldGoNegativeError(
                        inventory_id=inventory_id,
                        resulting_quantity=new_remaining,
                        operation="edit_ledger_entry",
                    )
                new_lot = lot.model_copy(
                    update={
                        "quantity": updated.quantity,
                        "remaining_qty": new_remaining,
                        "unit_cost": updated.unit_price,
                        "expenses": updated.expenses,
                        "unit_expense": expense_per_unit(
                            updated.expenses, updated.quantity
                        ),
                        "purchase_date": updated.transaction_date,
                    }
                )
            elif lot is not None and entry.is_sale and lot.remaining_qty < delta:
                raise LotInsufficientError(
                    lot_id=lot.id,  # type: ignore[arg-type]
                    requested=delta,
                    remaining=lot.remaining_qty,
                )

            replay = await engine.plan(
                inventory_id,
                replace={entry_id: updated},
                lots={new_lot.id: new_lot} if new_lot else None,  # type: ignore[dict-item]
                operation="edit_ledger_entry",
            )
            before = replay.previous_aggregate

            async with CompensationPlan(
                "edit_ledger_entry", inventory_id=inventory_id, entry_id=entry_id
            ) as plan:
                await plan.run(
                    "update_entry",
                    lambda: ledger.update_entry(updated),
                    lambda _: ledger.update_entry(entry),
                )

                if new_lot is not None:
                    await plan.run(
                        "update_lot",
                        lambda: inv_store.update_lot(new_lot),
                        lambda _: inv_store.update_lot(lot),
                    )
                elif lot is not None and entry.is_sale and delta != 0:
                    await plan.run(
                        "adjust_lot",
                        lambda: inv_store.adjust_lot_remaining(lot.id, -delta),
                        lambda _: inv_store.adjust_lot_remaining(lot.id, delta),
                    )

                aggregate = await plan.run(
                    "apply_replay",
                    lambda: engine.apply(replay),
                    lambda _: engine.revert(replay),
                )

                reason = request.reason or get_settings().ledger.edit_reason
                await plan.run(
                    "record_history",
                    lambda: self._record_history(
                        HistoryEntry(
                            inventory_id=inventory_id,
                            action_type=HistoryAction(entry.type.value),
                            quantity_change=aggregate.quantity - before.quantity,  # type: ignore[union-attr]
                            quantity_before=before.quantity,  # type: ignore[union-attr]
                            quantity_after=aggregate.quantity,
                            ledger_entry_id=entry_id,
                            reason=reason,
                            is_modified=True,
                            modified_at=datetime.now(UTC),
                            modified_reason=reason,
                        )
                    ),
                    self._undo_history,
                )

        restated = next(
            (e for e in replay.changed_entries if e.id == entry_id), updated
        )

        logger.info(
            "edit_ledger_entry_complete",
            entry_id=entry_id,
            inventory_id=inventory_id,
            quantity=aggregate.quantity,
            avg_purchase_price=aggregate.avg_purchase_price,
            restated=len(replay.changed_entries),
        )

        return EditLedgerEntryResult(
            entry=restated,
            aggregate=aggregate,
            restated_entries=len(replay.changed_entries),
        )

    def to_response(self, result: EditLedgerEntryResult) -> LedgerChangeResponse:
        """Convert result to API response."""
        return LedgerChangeResponse(
            entry=LedgerEntryResponse.from_entity(result.entry),
            inventory=InventoryResponse.from_entity(result.aggregate),
            restated_entries=result.restated_entries,
        )
