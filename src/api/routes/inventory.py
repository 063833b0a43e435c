"""Inventory aggregate endpoints."""

from datetime import date

from fastapi import APIRouter, Depends

from src.api.dependencies import (
    get_inv_store,
    get_inventory_stats_use_case,
    get_ledger,
    get_market_price_use_case,
    get_reconcile_use_case,
)
from src.application.dto.requests import SetMarketPriceRequest
from src.application.dto.responses import (
    ErrorResponse,
    HistoryResponse,
    InventoryListResponse,
    InventoryResponse,
    InventoryStatsResponse,
    LedgerEntryResponse,
    LotResponse,
)
from src.application.use_cases import (
    InventoryStatsUseCase,
    ReconcileInventoryUseCase,
    SetMarketPriceUseCase,
)
from src.core.exceptions import InventoryNotFoundError
from src.infrastructure.storage.sqlite import SQLiteInventoryStore, SQLiteLedgerStore

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.get("", response_model=InventoryListResponse)
async def list_inventory(
    catalog_item_id: int | None = None,
    in_stock_only: bool = False,
    limit: int = 100,
    offset: int = 0,
    store: SQLiteInventoryStore = Depends(get_inv_store),
) -> InventoryListResponse:
    """List aggregates with their stock value at average cost."""
    aggregates = await store.list_aggregates(
        catalog_item_id=catalog_item_id,
        in_stock_only=in_stock_only,
        limit=limit,
        offset=offset,
    )
    return InventoryListResponse(
        items=[InventoryResponse.from_entity(a) for a in aggregates],
        total=len(aggregates),
        total_value=sum(a.total_value for a in aggregates),
    )


@router.get("/stats", response_model=InventoryStatsResponse)
async def inventory_stats(
    day: date | None = None,
    use_case: InventoryStatsUseCase = Depends(get_inventory_stats_use_case),
) -> InventoryStatsResponse:
    """Stock valuation (market price, else average cost) and the trading of one day."""
    result = await use_case.execute(day)
    return use_case.to_response(result)


@router.get(
    "/{inventory_id}",
    response_model=InventoryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_inventory(
    inventory_id: int,
    store: SQLiteInventoryStore = Depends(get_inv_store),
) -> InventoryResponse:
    aggregate = await store.get_aggregate(inventory_id)
    if aggregate is None:
        raise InventoryNotFoundError(inventory_id)
    return InventoryResponse.from_entity(aggregate)


@router.get("/{inventory_id}/lots", response_model=list[LotResponse])
async def list_lots(
    inventory_id: int,
    has_remaining: bool = False,
    store: SQLiteInventoryStore = Depends(get_inv_store),
) -> list[LotResponse]:
    """Lots of an aggregate, newest first."""
    lots = await store.list_lots(inventory_id, has_remaining=has_remaining)
    return [LotResponse.from_entity(lot) for lot in lots]


@router.get("/{inventory_id}/transactions", response_model=list[LedgerEntryResponse])
async def list_transactions(
    inventory_id: int,
    ledger: SQLiteLedgerStore = Depends(get_ledger),
) -> list[LedgerEntryResponse]:
    """Ledger entries of an aggregate in replay order."""
    entries = await ledger.list_entries(inventory_id)
    return [LedgerEntryResponse.from_entity(e) for e in entries]


@router.get("/{inventory_id}/history", response_model=list[HistoryResponse])
async def list_history(
    inventory_id: int,
    limit: int = 100,
    offset: int = 0,
    ledger: SQLiteLedgerStore = Depends(get_ledger),
) -> list[HistoryResponse]:
    """Quantity change log, newest first."""
    history = await ledger.list_history(inventory_id, limit=limit, offset=offset)
    return [HistoryResponse.from_entity(h) for h in history]


@router.post(
    "/{inventory_id}/reconcile",
    response_model=InventoryResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def reconcile_inventory(
    inventory_id: int,
    use_case: ReconcileInventoryUseCase = Depends(get_reconcile_use_case),
) -> InventoryResponse:
    """Rebuild quantity and costs from the ledger."""
    aggregate = await use_case.execute(inventory_id)
    return use_case.to_response(aggregate)


@router.patch(
    "/{inventory_id}/market-price",
    response_model=InventoryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def set_market_price(
    inventory_id: int,
    request: SetMarketPriceRequest,
    use_case: SetMarketPriceUseCase = Depends(get_market_price_use_case),
) -> InventoryResponse:
    """Record a market price; null clears it."""
    aggregate = await use_case.execute(inventory_id, request)
    return use_case.to_response(aggregate)
