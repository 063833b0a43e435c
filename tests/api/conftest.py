"""API test fixtures: the app wired to use cases over a temporary database."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.api import dependencies as deps
from src.api.main import app
from src.application.use_cases import (
    CancelCheckoutItemUseCase,
    ConvertCheckoutItemUseCase,
    DeleteLedgerEntryUseCase,
    EditLedgerEntryUseCase,
    InventoryStatsUseCase,
    ManageFolderUseCase,
    ReconcileInventoryUseCase,
    RecordPurchaseUseCase,
    RecordSaleUseCase,
    ReturnCheckoutItemUseCase,
    SellCheckoutItemUseCase,
    SetMarketPriceUseCase,
    UndoCheckoutItemUseCase,
    WithdrawToFolderUseCase,
)

USE_CASES = {
    deps.get_record_purchase_use_case: RecordPurchaseUseCase,
    deps.get_record_sale_use_case: RecordSaleUseCase,
    deps.get_edit_entry_use_case: EditLedgerEntryUseCase,
    deps.get_delete_entry_use_case: DeleteLedgerEntryUseCase,
    deps.get_reconcile_use_case: ReconcileInventoryUseCase,
    deps.get_market_price_use_case: SetMarketPriceUseCase,
    deps.get_inventory_stats_use_case: InventoryStatsUseCase,
    deps.get_withdraw_use_case: WithdrawToFolderUseCase,
    deps.get_return_use_case: ReturnCheckoutItemUseCase,
    deps.get_sell_use_case: SellCheckoutItemUseCase,
    deps.get_convert_use_case: ConvertCheckoutItemUseCase,
    deps.get_undo_use_case: UndoCheckoutItemUseCase,
    deps.get_cancel_use_case: CancelCheckoutItemUseCase,
    deps.get_folder_use_case: ManageFolderUseCase,
}


def _provide(use_case_cls, stores):
    return lambda: use_case_cls(**stores)


@pytest_asyncio.fixture
async def client(stores):
    """AsyncClient whose endpoints run against the test database."""
    for provider, use_case_cls in USE_CASES.items():
        app.dependency_overrides[provider] = _provide(use_case_cls, stores)
    app.dependency_overrides[deps.get_inv_store] = lambda: stores["inventory_store"]
    app.dependency_overrides[deps.get_ledger] = lambda: stores["ledger_store"]

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def api_prefix() -> str:
    return "/api"
