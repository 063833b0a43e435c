"""Tests for SQLiteCheckoutStore and SQLiteCatalogRegistry."""

import pytest

from src.core.entities.catalog import CostingPolicy
from src.core.entities.checkout import (
    CheckoutFolder,
    CheckoutItem,
    CheckoutStatus,
    FolderStatus,
)
from src.core.exceptions import CheckoutItemNotFoundError, FolderNotFoundError


@pytest.fixture
def checkout(stores):
    return stores["checkout_store"]


@pytest.fixture
async def aggregate(stores, average_item):
    aggregate, _ = await stores["inventory_store"].get_or_create_aggregate(
        average_item.id, "NM"
    )
    return aggregate


@pytest.fixture
async def folder(checkout):
    return await checkout.create_folder(CheckoutFolder(name="Card Show", description="Booth 12"))


def _item(folder_id: int, inventory_id: int, **overrides) -> CheckoutItem:
    data = {
        "folder_id": folder_id,
        "inventory_id": inventory_id,
        "quantity": 2,
        "unit_cost": 150,
        "unit_expense": 10,
    }
    data.update(overrides)
    return CheckoutItem(**data)


class TestCatalogRegistry:
    async def test_register_and_get(self, stores, lot_item):
        loaded = await stores["catalog"].get_item(lot_item.id)

        assert loaded.name == "Sealed Booster Box"
        assert loaded.costing_policy == CostingPolicy.LOT

    async def test_unknown_item(self, stores):
        assert await stores["catalog"].get_item(404) is None


class TestFolders:
    async def test_create_and_get(self, checkout, folder):
        loaded = await checkout.get_folder(folder.id)

        assert loaded.name == "Card Show"
        assert loaded.description == "Booth 12"
        assert loaded.status == FolderStatus.OPEN
        assert loaded.closed_at is None

    async def test_update_status(self, checkout, folder):
        await checkout.update_folder(folder.model_copy(update={"status": FolderStatus.CLOSED}))

        closed = await checkout.list_folders(FolderStatus.CLOSED)
        open_folders = await checkout.list_folders(FolderStatus.OPEN)

        assert [f.id for f in closed] == [folder.id]
        assert open_folders == []

    async def test_update_unknown_folder(self, checkout, folder):
        with pytest.raises(FolderNotFoundError):
            await checkout.update_folder(folder.model_copy(update={"id": 999}))

    async def test_delete_cascades_items(self, checkout, folder, aggregate):
        item = await checkout.create_item(
            _item(folder.id, aggregate.id, status=CheckoutStatus.RETURNED)
        )

        await checkout.delete_folder(folder.id)

        assert await checkout.get_folder(folder.id) is None
        assert await checkout.get_item(item.id) is None


class TestItems:
    async def test_create_and_update(self, checkout, folder, aggregate):
        item = await checkout.create_item(_item(folder.id, aggregate.id))

        await checkout.update_item(
            item.model_copy(
                update={
                    "status": CheckoutStatus.SOLD,
                    "sale_unit_price": 200,
                    "sale_profit": 80,
                }
            )
        )
        loaded = await checkout.get_item(item.id)

        assert loaded.status == CheckoutStatus.SOLD
        assert loaded.sale_unit_price == 200
        assert loaded.sale_profit == 80
        assert loaded.unit_cost == 150

    async def test_update_unknown_item(self, checkout, folder, aggregate):
        with pytest.raises(CheckoutItemNotFoundError):
            await checkout.update_item(_item(folder.id, aggregate.id, id=999))

    async def test_restore_under_original_id(self, checkout, folder, aggregate):
        item = await checkout.create_item(_item(folder.id, aggregate.id))
        await checkout.delete_item(item.id)

        restored = await checkout.create_item(item)

        assert restored.id == item.id
        assert (await checkout.get_item(item.id)).quantity == 2

    async def test_holding_items_exclude_returned(self, checkout, folder, aggregate):
        pending = await checkout.create_item(_item(folder.id, aggregate.id))
        sold = await checkout.create_item(
            _item(folder.id, aggregate.id, status=CheckoutStatus.SOLD)
        )
        converted = await checkout.create_item(
            _item(folder.id, aggregate.id, status=CheckoutStatus.CONVERTED)
        )
        await checkout.create_item(
            _item(folder.id, aggregate.id, status=CheckoutStatus.RETURNED)
        )

        holding = await checkout.list_holding_items(aggregate.id)

        assert [i.id for i in holding] == [pending.id, sold.id, converted.id]
        assert await checkout.count_pending(folder.id) == 1
        assert len(await checkout.list_items(folder.id)) == 4

    async def test_stats(self, checkout, folder, aggregate):
        await checkout.create_item(_item(folder.id, aggregate.id, quantity=3))
        await checkout.create_item(
            _item(folder.id, aggregate.id, status=CheckoutStatus.SOLD)
        )
        await checkout.create_folder(CheckoutFolder(name="Archive", status=FolderStatus.CLOSED))

        stats = await checkout.get_stats()

        assert stats.locked_amount == 450
        assert stats.locked_expenses == 30
        assert stats.total_locked_value == 480
        assert stats.pending_items == 1
        assert stats.open_folders == 1
