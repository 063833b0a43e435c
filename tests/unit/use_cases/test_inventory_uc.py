"""Tests for the inventory read and pricing use cases."""

import asyncio
from datetime import date
from unittest.mock import AsyncMock

import pytest

from src.application.dto.requests import SetMarketPriceRequest
from src.application.use_cases.inventory_stats import InventoryStatsUseCase
from src.application.use_cases.set_market_price import SetMarketPriceUseCase
from src.core.entities.inventory import InventoryAggregate, InventoryValuation
from src.core.entities.ledger import LedgerTotals
from src.core.exceptions import InventoryNotFoundError
from src.core.services.locks import KeyedLock


@pytest.fixture
def locks():
    return KeyedLock()


@pytest.fixture
def mock_inventory_store():
    store = AsyncMock()
    store.get_valuation.return_value = InventoryValuation(
        total_units=4, total_kinds=2, total_cost=400, estimated_value=520
    )
    store.set_market_price.side_effect = lambda inventory_id, price: InventoryAggregate(
        id=inventory_id,
        catalog_item_id=10,
        condition="A",
        quantity=4,
        avg_purchase_price=100,
        market_price=price,
    )
    return store


@pytest.fixture
def mock_ledger_store():
    store = AsyncMock()
    store.get_totals.side_effect = lambda day: LedgerTotals(
        day=day,
        purchase_total=200,
        purchase_expenses=8,
        sale_total=150,
        sale_profit=50,
        all_time_expenses=30,
    )
    return store


@pytest.fixture
def stores(mock_inventory_store, mock_ledger_store, locks):
    return {
        "inventory_store": mock_inventory_store,
        "ledger_store": mock_ledger_store,
        "checkout_store": AsyncMock(),
        "catalog": AsyncMock(),
        "locks": locks,
        "folder_locks": KeyedLock(),
    }


class TestInventoryStats:
    async def test_combines_valuation_and_day_totals(self, stores, mock_ledger_store):
        use_case = InventoryStatsUseCase(**stores)

        result = await use_case.execute(date(2024, 6, 15))
        response = use_case.to_response(result)

        mock_ledger_store.get_totals.assert_awaited_once_with(date(2024, 6, 15))
        assert response.day == date(2024, 6, 15)
        assert response.total_units == 4
        assert response.total_kinds == 2
        assert response.estimated_profit == 120
        assert response.total_expenses == 30
        assert response.day_purchase == 200
        assert response.day_sale == 150
        assert response.day_profit == 50
        assert response.day_expenses == 8

    async def test_defaults_to_today(self, stores, mock_ledger_store):
        result = await InventoryStatsUseCase(**stores).execute()

        assert result.totals.day == date.today()
        mock_ledger_store.get_totals.assert_awaited_once_with(date.today())

    async def test_does_not_wait_on_aggregate_locks(self, stores, locks):
        use_case = InventoryStatsUseCase(**stores)

        async with locks.hold(1, 2):
            async with asyncio.timeout(1):
                result = await use_case.execute(date(2024, 6, 15))

        assert result.valuation.estimated_value == 520


class TestSetMarketPrice:
    async def test_sets_price(self, stores, mock_inventory_store):
        use_case = SetMarketPriceUseCase(**stores)

        aggregate = await use_case.execute(1, SetMarketPriceRequest(market_price=130))
        response = use_case.to_response(aggregate)

        mock_inventory_store.set_market_price.assert_awaited_once_with(1, 130)
        assert response.market_price == 130
        assert response.quantity == 4

    async def test_clears_price(self, stores, mock_inventory_store):
        aggregate = await SetMarketPriceUseCase(**stores).execute(
            1, SetMarketPriceRequest(market_price=None)
        )

        mock_inventory_store.set_market_price.assert_awaited_once_with(1, None)
        assert aggregate.market_price is None

    async def test_unknown_aggregate(self, stores, mock_inventory_store):
        mock_inventory_store.set_market_price.side_effect = InventoryNotFoundError(99)

        with pytest.raises(InventoryNotFoundError):
            await SetMarketPriceUseCase(**stores).execute(
                99, SetMarketPriceRequest(market_price=10)
            )

    async def test_waits_for_aggregate_lock(self, stores, locks, mock_inventory_store):
        use_case = SetMarketPriceUseCase(**stores)

        async with locks.hold(1):
            task = asyncio.create_task(
                use_case.execute(1, SetMarketPriceRequest(market_price=130))
            )
            await asyncio.sleep(0.01)
            assert not task.done()
            mock_inventory_store.set_market_price.assert_not_awaited()

        await task
        mock_inventory_store.set_market_price.assert_awaited_once()
