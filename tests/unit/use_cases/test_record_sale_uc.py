"""Tests for RecordSaleUseCase."""

from unittest.mock import AsyncMock

import pytest

from src.application.dto.requests import RecordSaleRequest
from src.application.use_cases.record_sale import RecordSaleUseCase
from src.core.entities.catalog import CatalogItem, CostingPolicy
from src.core.entities.inventory import InventoryAggregate, Lot
from src.core.entities.ledger import HistoryAction, TransactionType
from src.core.exceptions import InsufficientStockError, LotRequiredError
from src.core.services.locks import KeyedLock


@pytest.fixture
def aggregate():
    return InventoryAggregate(
        id=1,
        catalog_item_id=10,
        condition="A",
        quantity=4,
        avg_purchase_price=150,
        avg_expense_per_unit=10,
        total_purchased=4,
    )


@pytest.fixture
def lot():
    return Lot(
        id=3,
        lot_number="L-20240101-001",
        inventory_id=1,
        quantity=2,
        remaining_qty=2,
        unit_cost=90,
        unit_expense=5,
    )


@pytest.fixture
def mock_inventory_store(aggregate, lot):
    store = AsyncMock()
    store.get_aggregate.return_value = aggregate
    store.get_lot.return_value = lot
    store.adjust_quantity.side_effect = lambda _id, delta: aggregate.model_copy(
        update={"quantity": aggregate.quantity + delta}
    )
    store.adjust_lot_remaining.side_effect = lambda _id, delta: lot.model_copy(
        update={"remaining_qty": lot.remaining_qty + delta}
    )
    return store


@pytest.fixture
def mock_ledger_store():
    store = AsyncMock()
    store.add_entry.side_effect = lambda e: e.model_copy(update={"id": 11})
    store.add_history.side_effect = lambda h: h.model_copy(update={"id": 21})
    return store


@pytest.fixture
def mock_catalog():
    catalog = AsyncMock()
    catalog.get_item.return_value = CatalogItem(id=10, name="Card")
    return catalog


@pytest.fixture
def use_case(mock_inventory_store, mock_ledger_store, mock_catalog):
    return RecordSaleUseCase(
        inventory_store=mock_inventory_store,
        ledger_store=mock_ledger_store,
        checkout_store=AsyncMock(),
        catalog=mock_catalog,
        locks=KeyedLock(),
    )


class TestRecordSaleUseCase:
    async def test_average_costed_sale(self, use_case, mock_ledger_store, mock_inventory_store):
        result = await use_case.execute(
            RecordSaleRequest(inventory_id=1, quantity=2, unit_price=200)
        )

        entry = result.entry
        assert entry.type == TransactionType.SALE
        assert entry.profit == 100
        assert entry.profit_rate == 33.33
        assert entry.expenses == 20
        assert entry.lot_id is None
        assert result.aggregate.quantity == 2
        mock_inventory_store.adjust_lot_remaining.assert_not_awaited()

        history = mock_ledger_store.add_history.call_args[0][0]
        assert history.action_type == HistoryAction.SALE
        assert history.quantity_change == -2
        assert history.quantity_before == 4
        assert history.quantity_after == 2

    async def test_lot_costed_sale(self, use_case, mock_catalog, mock_inventory_store):
        mock_catalog.get_item.return_value = CatalogItem(
            id=10, name="Box", costing_policy=CostingPolicy.LOT
        )

        result = await use_case.execute(
            RecordSaleRequest(inventory_id=1, quantity=2, unit_price=100, lot_id=3)
        )

        assert result.entry.profit == 20
        assert result.entry.expenses == 10
        assert result.entry.lot_id == 3
        assert result.lot.remaining_qty == 0
        mock_inventory_store.adjust_lot_remaining.assert_awaited_once_with(3, -2)

    async def test_insufficient_stock_writes_nothing(
        self, use_case, mock_inventory_store, mock_ledger_store
    ):
        with pytest.raises(InsufficientStockError):
            await use_case.execute(
                RecordSaleRequest(inventory_id=1, quantity=5, unit_price=200)
            )

        mock_inventory_store.adjust_quantity.assert_not_awaited()
        mock_ledger_store.add_entry.assert_not_awaited()

    async def test_lot_required(self, use_case, mock_catalog, mock_ledger_store):
        mock_catalog.get_item.return_value = CatalogItem(
            id=10, name="Box", costing_policy=CostingPolicy.LOT
        )

        with pytest.raises(LotRequiredError):
            await use_case.execute(
                RecordSaleRequest(inventory_id=1, quantity=1, unit_price=100)
            )

        mock_ledger_store.add_entry.assert_not_awaited()

    async def test_failed_entry_restores_stock_and_lot(
        self, use_case, mock_catalog, mock_inventory_store, mock_ledger_store
    ):
        mock_catalog.get_item.return_value = CatalogItem(
            id=10, name="Box", costing_policy=CostingPolicy.LOT
        )
        mock_ledger_store.add_entry.side_effect = RuntimeError("locked")

        with pytest.raises(RuntimeError):
            await use_case.execute(
                RecordSaleRequest(inventory_id=1, quantity=1, unit_price=100, lot_id=3)
            )

        assert mock_inventory_store.adjust_quantity.await_args_list[-1].args == (1, 1)
        assert mock_inventory_store.adjust_lot_remaining.await_args_list[-1].args == (3, 1)
