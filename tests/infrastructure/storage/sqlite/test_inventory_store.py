"""Tests for SQLiteInventoryStore against a migrated database."""

from datetime import date

import pytest

from src.core.entities.inventory import Lot
from src.core.exceptions import (
    DatabaseError,
    InsufficientStockError,
    InventoryNotFoundError,
    LotInsufficientError,
)


@pytest.fixture
def store(stores):
    return stores["inventory_store"]


async def _stocked(store, catalog_item_id: int, quantity: int = 5):
    aggregate, _ = await store.get_or_create_aggregate(catalog_item_id, "NM")
    return await store.update_aggregate(
        aggregate.model_copy(
            update={"quantity": quantity, "avg_purchase_price": 120, "total_purchased": quantity}
        )
    )


def _lot(inventory_id: int, number: str = "L-20240615-001", **overrides) -> Lot:
    data = {
        "lot_number": number,
        "inventory_id": inventory_id,
        "quantity": 4,
        "remaining_qty": 4,
        "unit_cost": 90,
        "expenses": 20,
        "unit_expense": 5,
        "purchase_date": date(2024, 6, 15),
    }
    data.update(overrides)
    return Lot(**data)


class TestAggregates:
    async def test_get_or_create_is_idempotent(self, store, average_item):
        first, created = await store.get_or_create_aggregate(average_item.id, "NM")
        second, created_again = await store.get_or_create_aggregate(average_item.id, "NM")

        assert created is True
        assert created_again is False
        assert first.id == second.id
        assert first.quantity == 0

    async def test_conditions_are_separate_aggregates(self, store, average_item):
        nm, _ = await store.get_or_create_aggregate(average_item.id, "NM")
        psa, _ = await store.get_or_create_aggregate(average_item.id, "PSA10")

        assert nm.id != psa.id
        assert (await store.get_aggregate_by_key(average_item.id, "PSA10")).id == psa.id

    async def test_update_round_trips_cost_fields(self, store, average_item):
        aggregate, _ = await store.get_or_create_aggregate(average_item.id, "NM")
        await store.update_aggregate(
            aggregate.model_copy(
                update={
                    "quantity": 3,
                    "avg_purchase_price": 133,
                    "total_purchased": 3,
                    "total_purchase_cost": 400,
                    "total_expenses": 30,
                    "avg_expense_per_unit": 10,
                }
            )
        )

        loaded = await store.get_aggregate(aggregate.id)

        assert loaded.quantity == 3
        assert loaded.avg_purchase_price == 133
        assert loaded.total_purchase_cost == 400
        assert loaded.avg_expense_per_unit == 10
        assert loaded.market_price is None

    async def test_update_unknown_aggregate(self, store, average_item):
        aggregate, _ = await store.get_or_create_aggregate(average_item.id, "NM")

        with pytest.raises(InventoryNotFoundError):
            await store.update_aggregate(aggregate.model_copy(update={"id": 999}))

    async def test_market_price_is_not_touched_by_update(self, store, average_item):
        aggregate = await _stocked(store, average_item.id)
        await store.set_market_price(aggregate.id, 250)

        await store.update_aggregate(aggregate.model_copy(update={"quantity": 1}))

        assert (await store.get_aggregate(aggregate.id)).market_price == 250

    async def test_list_in_stock_only(self, store, average_item):
        await _stocked(store, average_item.id)
        await store.get_or_create_aggregate(average_item.id, "LP")

        everything = await store.list_aggregates(catalog_item_id=average_item.id)
        in_stock = await store.list_aggregates(in_stock_only=True)

        assert len(everything) == 2
        assert [a.condition for a in in_stock] == ["NM"]

    async def test_valuation_prefers_market_price(self, store, average_item):
        await _stocked(store, average_item.id)
        graded, _ = await store.get_or_create_aggregate(average_item.id, "LP")
        await store.update_aggregate(
            graded.model_copy(update={"quantity": 2, "avg_purchase_price": 100})
        )
        await store.set_market_price(graded.id, 150)
        await store.get_or_create_aggregate(average_item.id, "PSA10")

        valuation = await store.get_valuation()

        assert valuation.total_units == 7
        assert valuation.total_kinds == 3
        assert valuation.total_cost == 800
        assert valuation.estimated_value == 900
        assert valuation.estimated_profit == 100

    async def test_valuation_of_empty_store(self, store, ledger_db):
        valuation = await store.get_valuation()

        assert valuation.total_units == 0
        assert valuation.estimated_value == 0

    async def test_set_market_price_unknown_aggregate(self, store, ledger_db):
        with pytest.raises(InventoryNotFoundError):
            await store.set_market_price(42, 100)


class TestAdjustQuantity:
    async def test_adjust(self, store, average_item):
        aggregate = await _stocked(store, average_item.id)

        result = await store.adjust_quantity(aggregate.id, -2)

        assert result.quantity == 3
        assert result.avg_purchase_price == 120

    async def test_refuses_negative_result(self, store, average_item):
        aggregate = await _stocked(store, average_item.id, quantity=1)

        with pytest.raises(InsufficientStockError) as exc_info:
            await store.adjust_quantity(aggregate.id, -2)

        assert exc_info.value.details["available"] == 1
        assert (await store.get_aggregate(aggregate.id)).quantity == 1

    async def test_unknown_aggregate(self, store, ledger_db):
        with pytest.raises(InventoryNotFoundError):
            await store.adjust_quantity(42, 1)


class TestLots:
    async def test_create_and_get(self, store, lot_item):
        aggregate = await _stocked(store, lot_item.id)

        lot = await store.create_lot(_lot(aggregate.id))
        loaded = await store.get_lot(lot.id)

        assert loaded.lot_number == "L-20240615-001"
        assert loaded.purchase_date == date(2024, 6, 15)
        assert loaded.unit_expense == 5
        assert loaded.is_untouched

    async def test_duplicate_lot_number(self, store, lot_item):
        aggregate = await _stocked(store, lot_item.id)
        await store.create_lot(_lot(aggregate.id))

        with pytest.raises(DatabaseError):
            await store.create_lot(_lot(aggregate.id))

    async def test_restore_under_original_id(self, store, lot_item):
        aggregate = await _stocked(store, lot_item.id)
        lot = await store.create_lot(_lot(aggregate.id))
        await store.delete_lot(lot.id)

        restored = await store.create_lot(lot)

        assert restored.id == lot.id
        assert (await store.get_lot(lot.id)).lot_number == lot.lot_number

    async def test_adjust_remaining_refuses_negative(self, store, lot_item):
        aggregate = await _stocked(store, lot_item.id)
        lot = await store.create_lot(_lot(aggregate.id))

        lot = await store.adjust_lot_remaining(lot.id, -3)
        assert lot.remaining_qty == 1

        with pytest.raises(LotInsufficientError) as exc_info:
            await store.adjust_lot_remaining(lot.id, -2)
        assert exc_info.value.details["remaining"] == 1

    async def test_list_lots_with_remaining(self, store, lot_item):
        aggregate = await _stocked(store, lot_item.id)
        older = await store.create_lot(_lot(aggregate.id))
        newer = await store.create_lot(
            _lot(aggregate.id, "L-20240616-001", purchase_date=date(2024, 6, 16))
        )
        await store.adjust_lot_remaining(older.id, -4)

        assert [lot.id for lot in await store.list_lots(aggregate.id)] == [newer.id, older.id]
        assert [lot.id for lot in await store.list_lots(aggregate.id, has_remaining=True)] == [
            newer.id
        ]

    async def test_latest_lot_number(self, store, lot_item):
        aggregate = await _stocked(store, lot_item.id)
        await store.create_lot(_lot(aggregate.id, "L-20240615-001"))
        await store.create_lot(_lot(aggregate.id, "L-20240615-002"))
        await store.create_lot(_lot(aggregate.id, "L-20240616-001"))

        assert await store.get_latest_lot_number("L-20240615-") == "L-20240615-002"
        assert await store.get_latest_lot_number("L-20240101-") is None
