"""Tests for the checkout item use cases with mocked stores."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.application.dto.requests import (
    ConvertItemRequest,
    ReturnItemRequest,
    SellItemRequest,
    WithdrawRequest,
)
from src.application.use_cases.cancel_checkout_item import CancelCheckoutItemUseCase
from src.application.use_cases.convert_checkout_item import ConvertCheckoutItemUseCase
from src.application.use_cases.return_checkout_item import ReturnCheckoutItemUseCase
from src.application.use_cases.sell_checkout_item import SellCheckoutItemUseCase
from src.application.use_cases.undo_checkout_item import UndoCheckoutItemUseCase
from src.application.use_cases.withdraw_to_folder import WithdrawToFolderUseCase
from src.core.entities.catalog import CatalogItem
from src.core.entities.checkout import (
    CheckoutFolder,
    CheckoutItem,
    CheckoutStatus,
    FolderStatus,
)
from src.core.entities.inventory import InventoryAggregate
from src.core.entities.ledger import HistoryAction
from src.core.exceptions import (
    AlreadyResolvedError,
    FolderClosedError,
    InsufficientStockError,
    InsufficientStockForUndoError,
    NotResolvedError,
    ValidationError,
)
from src.core.services.locks import KeyedLock


@pytest.fixture
def aggregate():
    return InventoryAggregate(
        id=1,
        catalog_item_id=10,
        condition="A",
        quantity=6,
        avg_purchase_price=150,
        avg_expense_per_unit=10,
        total_purchased=6,
    )


@pytest.fixture
def folder():
    return CheckoutFolder(id=1, name="Auction June")


@pytest.fixture
def pending_item():
    return CheckoutItem(
        id=7,
        folder_id=1,
        inventory_id=1,
        quantity=4,
        unit_cost=150,
        unit_expense=10,
    )


@pytest.fixture
def mock_inventory_store(aggregate):
    store = AsyncMock()
    store.get_aggregate.return_value = aggregate
    store.get_or_create_aggregate.return_value = (
        InventoryAggregate(id=2, catalog_item_id=10, condition="PSA10"),
        True,
    )
    store.update_aggregate.side_effect = lambda agg: agg
    store.adjust_quantity.side_effect = lambda _id, delta: aggregate.model_copy(
        update={"quantity": aggregate.quantity + delta}
    )
    return store


@pytest.fixture
def mock_ledger_store():
    store = AsyncMock()
    store.add_entry.side_effect = lambda e: e.model_copy(update={"id": 11})
    store.add_history.side_effect = lambda h: h.model_copy(update={"id": 21})
    return store


@pytest.fixture
def mock_checkout_store(folder, pending_item):
    store = AsyncMock()
    store.get_folder.return_value = folder
    store.get_item.return_value = pending_item
    store.create_item.side_effect = lambda item: item.model_copy(update={"id": 8})
    store.update_item.side_effect = lambda item: item
    return store


@pytest.fixture
def mock_catalog():
    catalog = AsyncMock()
    catalog.get_item.return_value = CatalogItem(id=10, name="Card")
    return catalog


@pytest.fixture
def stores(mock_inventory_store, mock_ledger_store, mock_checkout_store, mock_catalog):
    return {
        "inventory_store": mock_inventory_store,
        "ledger_store": mock_ledger_store,
        "checkout_store": mock_checkout_store,
        "catalog": mock_catalog,
        "locks": KeyedLock(),
    }


class TestWithdraw:
    async def test_snapshots_cost_and_decrements(self, stores, mock_ledger_store):
        use_case = WithdrawToFolderUseCase(**stores)

        result = await use_case.execute(
            WithdrawRequest(folder_id=1, inventory_id=1, quantity=4)
        )

        assert result.item.id == 8
        assert result.item.unit_cost == 150
        assert result.item.unit_expense == 10
        assert result.item.status == CheckoutStatus.PENDING
        assert result.aggregate.quantity == 2
        mock_ledger_store.add_entry.assert_not_awaited()

        history = mock_ledger_store.add_history.call_args[0][0]
        assert history.action_type == HistoryAction.ADJUSTMENT
        assert history.quantity_change == -4
        assert history.reason == "Checkout: Auction June"

    async def test_closed_folder(self, stores, mock_checkout_store, folder):
        mock_checkout_store.get_folder.return_value = folder.model_copy(
            update={"status": FolderStatus.CLOSED}
        )
        use_case = WithdrawToFolderUseCase(**stores)

        with pytest.raises(FolderClosedError):
            await use_case.execute(WithdrawRequest(folder_id=1, inventory_id=1, quantity=1))

    async def test_insufficient_stock(self, stores, mock_inventory_store, mock_checkout_store):
        use_case = WithdrawToFolderUseCase(**stores)

        with pytest.raises(InsufficientStockError):
            await use_case.execute(WithdrawRequest(folder_id=1, inventory_id=1, quantity=7))

        mock_inventory_store.adjust_quantity.assert_not_awaited()
        mock_checkout_store.create_item.assert_not_awaited()

    async def test_item_creation_failure_restores_stock(
        self, stores, mock_inventory_store, mock_checkout_store
    ):
        mock_checkout_store.create_item.side_effect = RuntimeError("boom")
        use_case = WithdrawToFolderUseCase(**stores)

        with pytest.raises(RuntimeError):
            await use_case.execute(WithdrawRequest(folder_id=1, inventory_id=1, quantity=2))

        assert mock_inventory_store.adjust_quantity.await_args_list[-1].args == (1, 2)


class TestReturn:
    async def test_partial_return_splits_item(
        self, stores, mock_checkout_store, mock_inventory_store, mock_ledger_store
    ):
        """Returning 1 of 4 leaves 3 pending and 1 returned."""
        use_case = ReturnCheckoutItemUseCase(**stores)

        result = await use_case.execute(7, ReturnItemRequest(resolve_quantity=1))

        assert result.remaining_item.id == 7
        assert result.remaining_item.quantity == 3
        assert result.remaining_item.status == CheckoutStatus.PENDING
        assert result.item.id == 8
        assert result.item.quantity == 1
        assert result.item.status == CheckoutStatus.RETURNED
        mock_inventory_store.adjust_quantity.assert_awaited_once_with(1, 1)

        history = mock_ledger_store.add_history.call_args[0][0]
        assert history.action_type == HistoryAction.RETURN
        assert history.quantity_change == 1

    async def test_out_of_range_quantity(self, stores):
        use_case = ReturnCheckoutItemUseCase(**stores)

        with pytest.raises(ValidationError):
            await use_case.execute(7, ReturnItemRequest(resolve_quantity=5))

    async def test_already_resolved(self, stores, mock_checkout_store, pending_item):
        mock_checkout_store.get_item.return_value = pending_item.model_copy(
            update={"status": CheckoutStatus.SOLD}
        )
        use_case = ReturnCheckoutItemUseCase(**stores)

        with pytest.raises(AlreadyResolvedError):
            await use_case.execute(7)


class TestSell:
    async def test_full_sale_uses_snapshot(
        self, stores, mock_ledger_store, mock_inventory_store, mock_checkout_store
    ):
        use_case = SellCheckoutItemUseCase(**stores)

        result = await use_case.execute(
            7, SellItemRequest(sale_unit_price=200, sale_expenses=15)
        )

        entry = result.entry
        assert entry.is_checkout is True
        assert entry.quantity == 4
        assert entry.profit == 200
        assert entry.expenses == 55
        assert result.item.status == CheckoutStatus.SOLD
        assert result.item.ledger_entry_id == 11
        assert result.item.sale_profit == 200
        assert result.remaining_item is None
        mock_inventory_store.adjust_quantity.assert_not_awaited()
        mock_checkout_store.create_item.assert_not_awaited()

        history = mock_ledger_store.add_history.call_args[0][0]
        assert history.action_type == HistoryAction.SALE
        assert history.quantity_change == 0

    async def test_failed_item_update_removes_entry(
        self, stores, mock_checkout_store, mock_ledger_store
    ):
        mock_checkout_store.update_item.side_effect = RuntimeError("boom")
        use_case = SellCheckoutItemUseCase(**stores)

        with pytest.raises(RuntimeError):
            await use_case.execute(7, SellItemRequest(sale_unit_price=200))

        mock_ledger_store.delete_history.assert_awaited_once_with(21)
        mock_ledger_store.delete_entry.assert_awaited_once_with(11)


class TestConvert:
    async def test_same_condition_rejected(self, stores):
        use_case = ConvertCheckoutItemUseCase(**stores)

        with pytest.raises(ValidationError):
            await use_case.execute(7, ConvertItemRequest(new_condition=" A "))

    async def test_blank_condition_rejected(self, stores, mock_checkout_store):
        use_case = ConvertCheckoutItemUseCase(**stores)

        with pytest.raises(ValidationError):
            await use_case.execute(7, ConvertItemRequest(new_condition="  "))

        mock_checkout_store.get_item.assert_not_awaited()

    async def test_purchase_into_target(self, stores, mock_inventory_store, aggregate):
        target = InventoryAggregate(id=2, catalog_item_id=10, condition="PSA10")
        mock_inventory_store.get_aggregate.side_effect = lambda inv_id: (
            target if inv_id == 2 else aggregate
        )
        use_case = ConvertCheckoutItemUseCase(**stores)

        result = await use_case.execute(
            7, ConvertItemRequest(new_condition="PSA10", convert_expenses=60)
        )

        entry = result.entry
        assert entry.inventory_id == 2
        assert entry.is_checkout is True
        assert entry.unit_price == 150
        assert entry.expenses == 100
        assert result.target.quantity == 4
        assert result.target.avg_purchase_price == 150
        assert result.target.avg_expense_per_unit == 25
        assert result.item.status == CheckoutStatus.CONVERTED
        assert result.item.converted_condition == "PSA10"


class TestUndo:
    async def test_pending_item_rejected(self, stores):
        use_case = UndoCheckoutItemUseCase(**stores)

        with pytest.raises(NotResolvedError):
            await use_case.execute(7)

    async def test_undo_return_needs_stock(
        self, stores, mock_checkout_store, mock_inventory_store, pending_item, aggregate
    ):
        mock_checkout_store.get_item.return_value = pending_item.model_copy(
            update={"status": CheckoutStatus.RETURNED}
        )
        mock_inventory_store.get_aggregate.return_value = aggregate.model_copy(
            update={"quantity": 3}
        )
        use_case = UndoCheckoutItemUseCase(**stores)

        with pytest.raises(InsufficientStockForUndoError):
            await use_case.execute(7)

        mock_checkout_store.update_item.assert_not_awaited()

    async def test_undo_return(
        self, stores, mock_checkout_store, mock_inventory_store, pending_item
    ):
        mock_checkout_store.get_item.return_value = pending_item.model_copy(
            update={"status": CheckoutStatus.RETURNED}
        )
        use_case = UndoCheckoutItemUseCase(**stores)

        result = await use_case.execute(7)

        assert result.item.status == CheckoutStatus.PENDING
        assert result.item.resolved_at is None
        mock_inventory_store.adjust_quantity.assert_awaited_once_with(1, -4)


class TestCancel:
    async def test_cancel_restores_stock(
        self, stores, mock_checkout_store, mock_inventory_store, mock_ledger_store
    ):
        use_case = CancelCheckoutItemUseCase(**stores)

        result = await use_case.execute(7)

        assert result.item_id == 7
        assert result.aggregate.quantity == 10
        mock_checkout_store.delete_item.assert_awaited_once_with(7)
        history = mock_ledger_store.add_history.call_args[0][0]
        assert history.quantity_change == 4

    async def test_cancel_resolved_item(self, stores, mock_checkout_store, pending_item):
        mock_checkout_store.get_item.return_value = pending_item.model_copy(
            update={"status": CheckoutStatus.RETURNED}
        )
        use_case = CancelCheckoutItemUseCase(**stores)

        with pytest.raises(AlreadyResolvedError):
            await use_case.execute(7)


class TestClosedFolder:
    """Every item action is refused once the folder is closed."""

    @pytest.fixture(autouse=True)
    def closed_folder(self, mock_checkout_store, folder):
        mock_checkout_store.get_folder.return_value = folder.model_copy(
            update={"status": FolderStatus.CLOSED}
        )

    @pytest.fixture
    def sold_item(self, mock_checkout_store, pending_item):
        item = pending_item.model_copy(
            update={"status": CheckoutStatus.SOLD, "ledger_entry_id": 11}
        )
        mock_checkout_store.get_item.return_value = item
        return item

    async def test_undo_rejected(
        self, stores, sold_item, mock_ledger_store, mock_inventory_store
    ):
        with pytest.raises(FolderClosedError):
            await UndoCheckoutItemUseCase(**stores).execute(sold_item.id)

        mock_ledger_store.delete_entry.assert_not_awaited()
        mock_inventory_store.adjust_quantity.assert_not_awaited()

    async def test_return_rejected(self, stores, mock_inventory_store):
        with pytest.raises(FolderClosedError):
            await ReturnCheckoutItemUseCase(**stores).execute(7, ReturnItemRequest())

        mock_inventory_store.adjust_quantity.assert_not_awaited()

    async def test_sell_rejected(self, stores, mock_ledger_store):
        with pytest.raises(FolderClosedError):
            await SellCheckoutItemUseCase(**stores).execute(
                7, SellItemRequest(sale_unit_price=200)
            )

        mock_ledger_store.add_entry.assert_not_awaited()

    async def test_withdraw_waits_for_folder_lock(
        self, stores, mock_checkout_store, mock_inventory_store, folder
    ):
        """A withdraw queued behind a close sees the folder as closed."""
        mock_checkout_store.get_folder.return_value = folder
        folder_locks = KeyedLock()
        use_case = WithdrawToFolderUseCase(**stores, folder_locks=folder_locks)

        async with folder_locks.hold(folder.id):
            task = asyncio.create_task(
                use_case.execute(WithdrawRequest(folder_id=1, inventory_id=1, quantity=1))
            )
            await asyncio.sleep(0)
            assert not task.done()
            mock_checkout_store.get_folder.return_value = folder.model_copy(
                update={"status": FolderStatus.CLOSED}
            )

        with pytest.raises(FolderClosedError):
            await task

        mock_inventory_store.adjust_quantity.assert_not_awaited()
