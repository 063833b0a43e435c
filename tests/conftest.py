"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import pytest_asyncio

from src.core.entities.catalog import CatalogItem, CostingPolicy
from src.core.services.locks import reset_inventory_locks
from src.infrastructure.storage.sqlite.catalog_store import SQLiteCatalogRegistry
from src.infrastructure.storage.sqlite.checkout_store import SQLiteCheckoutStore
from src.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore
from src.infrastructure.storage.sqlite.ledger_store import SQLiteLedgerStore
from src.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture(autouse=True)
def fresh_locks():
    """Every test starts with an empty lock registry."""
    reset_inventory_locks()
    yield
    reset_inventory_locks()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Temporary database path."""
    return tmp_path / "stockbook_test.db"


@pytest_asyncio.fixture
async def ledger_db(db_path: Path) -> AsyncGenerator[Path, None]:
    """
    Migrated database with the global pool pointed at it.

    The pool holds a single connection, so a store call that nested a
    second acquire would hang the test instead of passing silently.
    """
    import src.infrastructure.storage.sqlite.connection as conn_module

    await initialize_database(db_path, create_backup_before=False)

    conn_module._pool = None
    mock_settings = MagicMock()
    mock_settings.storage.db_path = db_path
    mock_settings.storage.pool_size = 1
    mock_settings.storage.busy_timeout = 5000
    mock_settings.storage.acquire_timeout = 5.0

    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield db_path
        finally:
            await conn_module.close_pool()


@pytest.fixture
def stores(ledger_db) -> dict:
    """Fresh SQLite store instances over the test database."""
    return {
        "inventory_store": SQLiteInventoryStore(),
        "ledger_store": SQLiteLedgerStore(),
        "checkout_store": SQLiteCheckoutStore(),
        "catalog": SQLiteCatalogRegistry(),
    }


@pytest_asyncio.fixture
async def average_item(stores) -> CatalogItem:
    """A registered catalog item costed by weighted average."""
    return await stores["catalog"].register_item(
        CatalogItem(name="Charizard Base Set", category="cards")
    )


@pytest_asyncio.fixture
async def lot_item(stores) -> CatalogItem:
    """A registered catalog item costed by lot."""
    return await stores["catalog"].register_item(
        CatalogItem(
            name="Sealed Booster Box",
            category="sealed",
            costing_policy=CostingPolicy.LOT,
        )
    )
