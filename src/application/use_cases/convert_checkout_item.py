"""Convert Checkout Item Use Case: move withdrawn units into another condition."""

from dataclasses import dataclass
from datetime import date

from src.application.dto.requests import ConvertItemRequest
from src.application.dto.responses import (
    CheckoutItemResponse,
    CheckoutResolutionResponse,
    InventoryResponse,
    LedgerEntryResponse,
)
from src.application.use_cases.base import CheckoutUseCase
from src.config import get_logger
from src.core.entities.checkout import CheckoutItem, CheckoutStatus
from src.core.entities.inventory import InventoryAggregate, Lot
from src.core.entities.ledger import (
    HistoryAction,
    HistoryEntry,
    LedgerEntry,
    TransactionType,
)
from src.core.exceptions import InventoryNotFoundError, ValidationError
from src.core.services import CompensationPlan, apply_purchase, expense_per_unit

logger = get_logger(__name__)


@dataclass
class ConvertResult:
    item: CheckoutItem
    remaining_item: CheckoutItem | None
    entry: LedgerEntry
    source: InventoryAggregate
    target: InventoryAggregate
    lot: Lot | None = None


class ConvertCheckoutItemUseCase(CheckoutUseCase):
    """
    Convert all or part of a pending item into a new condition.

    Grading is the typical case: raw cards go out, graded cards come back.
    The units enter the target aggregate (same catalog item, new condition)
    as a purchase at the item's cost snapshot, with its per-unit expense
    plus the conversion expenses. The source aggregate is left as is; the
    converted item keeps holding those units off its shelf.
    """

    async def execute(self, item_id: int, request: ConvertItemRequest) -> ConvertResult:
        """Execute convert use case."""
        new_condition = request.new_condition.strip()
        if not new_condition:
            raise ValidationError("new_condition", "must not be empty", request.new_condition)

        item, folder = await self._load_item(item_id)
        logger.info(
            "convert_started",
            item_id=item_id,
            inventory_id=item.inventory_id,
            new_condition=new_condition,
            resolve_quantity=request.resolve_quantity,
        )

        inv_store = await self._get_inventory_store()
        ledger = await self._get_ledger_store()
        resolver = await self._get_resolver()

        source = await resolver.load_aggregate(item.inventory_id)
        if source.condition == new_condition:
            raise ValidationError(
                "new_condition", "must differ from the current condition", new_condition
            )
        catalog_item = await resolver.load_catalog_item(source.catalog_item_id)

        target, _ = await inv_store.get_or_create_aggregate(
            source.catalog_item_id, new_condition
        )
        target_id: int = target.id  # type: ignore[assignment]

        async with self._hold(item.inventory_id, target_id, folder=item.folder_id):
            item, folder = await self._load_item(item_id)
            self._require_pending(item)
            quantity = self._resolve_quantity(item, request.resolve_quantity)

            source = await resolver.load_aggregate(item.inventory_id)
            before = await inv_store.get_aggregate(target_id)
            if before is None:
                raise InventoryNotFoundError(target_id)

            expenses = item.unit_expense * quantity + request.convert_expenses
            after = apply_purchase(before, quantity, item.unit_cost, expenses)
            transaction_date = request.transaction_date or date.today()
            label = f"Checkout conversion: {source.condition} -> {new_condition}"

            async with CompensationPlan(
                "convert", inventory_id=item.inventory_id, target_id=target_id
            ) as plan:
                entry = await plan.run(
                    "add_entry",
                    lambda: ledger.add_entry(
                        LedgerEntry(
                            inventory_id=target_id,
                            type=TransactionType.PURCHASE,
                            quantity=quantity,
                            unit_price=item.unit_cost,
                            expenses=expenses,
                            transaction_date=transaction_date,
                            is_checkout=True,
                            notes=(
                                f"{label} ({request.notes})"
                                if request.notes
                                else f"{label} ({folder.name})"
                            ),
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
                                inventory_id=target_id,
                                quantity=quantity,
                                remaining_qty=quantity,
                                unit_cost=item.unit_cost,
                                expenses=expenses,
                                unit_expense=expense_per_unit(expenses, quantity),
                                purchase_date=transaction_date,
                                ledger_entry_id=entry.id,
                                notes=label,
                            )
                        ),
                        lambda created_lot: inv_store.delete_lot(created_lot.id),
                    )
                    await ledger.set_entry_lot(entry.id, lot.id)  # type: ignore[arg-type]
                    entry = entry.model_copy(update={"lot_id": lot.id})

                target = await plan.run(
                    "update_target",
                    lambda: inv_store.update_aggregate(after),
                    lambda _: inv_store.update_aggregate(before),
                )

                await plan.run(
                    "record_history",
                    lambda: self._record_history(
                        HistoryEntry(
                            inventory_id=target_id,
                            action_type=HistoryAction.PURCHASE,
                            quantity_change=quantity,
                            quantity_before=before.quantity,
                            quantity_after=target.quantity,
                            ledger_entry_id=entry.id,
                            reason=label,
                            notes=request.notes,
                        )
                    ),
                    self._undo_history,
                )

                resolved, remaining = await self._resolve_item(
                    plan,
                    item,
                    quantity,
                    status=CheckoutStatus.CONVERTED,
                    converted_condition=new_condition,
                    converted_expenses=request.convert_expenses,
                    ledger_entry_id=entry.id,
                    resolution_notes=request.notes,
                )

        logger.info(
            "convert_complete",
            item_id=resolved.id,
            entry_id=entry.id,
            source_id=item.inventory_id,
            target_id=target_id,
            converted=quantity,
            target_quantity=target.quantity,
            lot_number=lot.lot_number if lot else None,
        )

        return ConvertResult(
            item=resolved,
            remaining_item=remaining,
            entry=entry,
            source=source,
            target=target,
            lot=lot,
        )

    def to_response(self, result: ConvertResult) -> CheckoutResolutionResponse:
        """Convert result to API response."""
        return CheckoutResolutionResponse(
            item=CheckoutItemResponse.from_entity(result.item),
            remaining_item=(
                CheckoutItemResponse.from_entity(result.remaining_item)
                if result.remaining_item
                else None
            ),
            entry=LedgerEntryResponse.from_entity(result.entry),
            inventory=InventoryResponse.from_entity(result.source),
            target_inventory=InventoryResponse.from_entity(result.target),
        )
