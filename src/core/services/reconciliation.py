"""
Reconciliation engine.

Rebuilds an aggregate's quantity and cost fields by replaying its full
ledger from zero. Used after an out-of-band edit or deletion, and on demand
to repair drift. Planning is pure with respect to storage: nothing is
written until apply() is called, so a rejected plan leaves no trace.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from src.config import get_logger
from src.core.entities.inventory import InventoryAggregate, Lot
from src.core.entities.ledger import LedgerEntry
from src.core.exceptions import InventoryNotFoundError, WouldGoNegativeError
from src.core.interfaces.checkout_store import ICheckoutStore
from src.core.interfaces.inventory_store import IInventoryStore
from src.core.interfaces.ledger_store import ILedgerStore
from src.core.services.costing import apply_purchase, sale_figures

logger = get_logger(__name__)


@dataclass
class ReplayPlan:
    """Outcome of a replay, ready to be written."""

    inventory_id: int
    aggregate: InventoryAggregate
    changed_entries: list[LedgerEntry] = field(default_factory=list)
    entries_replayed: int = 0
    held_quantity: int = 0
    previous_aggregate: InventoryAggregate | None = None
    previous_entries: list[LedgerEntry] = field(default_factory=list)


def _replay_key(entry: LedgerEntry) -> tuple:
    # Entries without an id are not persisted yet and sort after their day
    return (entry.transaction_date, entry.id is None, entry.id or 0)


class ReconciliationEngine:
    """Replays the ledger of one aggregate and writes the result."""

    def __init__(
        self,
        inventory_store: IInventoryStore,
        ledger_store: ILedgerStore,
        checkout_store: ICheckoutStore,
    ):
        self._inventory = inventory_store
        self._ledger = ledger_store
        self._checkout = checkout_store

    async def plan(
        self,
        inventory_id: int,
        replace: dict[int, LedgerEntry] | None = None,
        exclude: set[int] | None = None,
        lots: dict[int, Lot] | None = None,
        operation: str = "reconcile",
    ) -> ReplayPlan:
        """
        Replay the ledger with a pending change applied in memory.

        Args:
            inventory_id: Aggregate to rebuild
            replace: Entries to substitute, keyed by entry id
            exclude: Entry ids to leave out
            lots: Lot values to use instead of the stored ones
            operation: Name reported if the replay is rejected

        Raises:
            InventoryNotFoundError: Unknown aggregate
            WouldGoNegativeError: Final quantity after holds is below zero
        """
        current = await self._inventory.get_aggregate(inventory_id)
        if current is None:
            raise InventoryNotFoundError(inventory_id)

        replace = replace or {}
        exclude = exclude or set()
        lot_cache: dict[int, Lot | None] = dict(lots or {})

        entries = []
        for entry in await self._ledger.list_entries(inventory_id):
            if entry.id in exclude:
                continue
            entries.append(replace.get(entry.id, entry))  # type: ignore[arg-type]
        entries.sort(key=_replay_key)

        running = current.model_copy(
            update={
                "quantity": 0,
                "avg_purchase_price": 0,
                "total_purchased": 0,
                "total_purchase_cost": 0,
                "total_expenses": 0,
                "avg_expense_per_unit": 0,
            }
        )
        changed: list[LedgerEntry] = []
        originals: list[LedgerEntry] = []

        for entry in entries:
            if entry.is_purchase:
                running = apply_purchase(
                    running, entry.quantity, entry.unit_price, entry.expenses
                )
                continue

            # Checkout sales left the shelf at withdrawal; the hold covers them
            if entry.is_checkout:
                continue

            running = running.model_copy(
                update={"quantity": running.quantity - entry.quantity}
            )

            unit_cost = running.avg_purchase_price
            unit_expense = running.avg_expense_per_unit
            if entry.lot_id is not None:
                if entry.lot_id not in lot_cache:
                    lot_cache[entry.lot_id] = await self._inventory.get_lot(entry.lot_id)
                lot = lot_cache[entry.lot_id]
                if lot is not None:
                    unit_cost = lot.unit_cost
                    unit_expense = lot.unit_expense

            figures = sale_figures(entry.unit_price, entry.quantity, unit_cost, unit_expense)
            if (
                entry.profit != figures.profit
                or entry.profit_rate != figures.profit_rate
                or entry.expenses != figures.expenses
            ):
                originals.append(entry)
                changed.append(
                    entry.model_copy(
                        update={
                            "profit": figures.profit,
                            "profit_rate": figures.profit_rate,
                            "expenses": figures.expenses,
                        }
                    )
                )

        holds = await self._checkout.list_holding_items(inventory_id)
        held = sum(item.quantity for item in holds)
        final_quantity = running.quantity - held

        if final_quantity < 0:
            logger.warning(
                "replay_rejected",
                inventory_id=inventory_id,
                operation=operation,
                resulting_quantity=final_quantity,
            )
            raise WouldGoNegativeError(
                inventory_id=inventory_id,
                resulting_quantity=final_quantity,
                operation=operation,
            )

        aggregate = running.model_copy(
            update={"quantity": final_quantity, "updated_at": datetime.now(UTC)}
        )
        return ReplayPlan(
            inventory_id=inventory_id,
            aggregate=aggregate,
            changed_entries=changed,
            entries_replayed=len(entries),
            held_quantity=held,
            previous_aggregate=current,
            previous_entries=originals,
        )

    async def apply(self, plan: ReplayPlan) -> InventoryAggregate:
        """Write a plan's aggregate and restated sales."""
        if plan.changed_entries:
            await self._ledger.update_entries(plan.changed_entries)
        aggregate = await self._inventory.update_aggregate(plan.aggregate)

        logger.info(
            "replay_applied",
            inventory_id=plan.inventory_id,
            quantity=aggregate.quantity,
            avg_purchase_price=aggregate.avg_purchase_price,
            entries=plan.entries_replayed,
            restated=len(plan.changed_entries),
        )
        return aggregate

    async def revert(self, plan: ReplayPlan) -> None:
        """Write back what apply() overwrote."""
        if plan.previous_entries:
            await self._ledger.update_entries(plan.previous_entries)
        if plan.previous_aggregate is not None:
            await self._inventory.update_aggregate(plan.previous_aggregate)
        logger.info("replay_reverted", inventory_id=plan.inventory_id)

    async def reconcile(self, inventory_id: int) -> InventoryAggregate:
        """Rebuild an aggregate from its unchanged ledger."""
        plan = await self.plan(inventory_id)
        return await self.apply(plan)
