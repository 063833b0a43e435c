"""Ledger transaction endpoints: purchases, sales, corrections."""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import (
    get_delete_entry_use_case,
    get_edit_entry_use_case,
    get_ledger,
    get_record_purchase_use_case,
    get_record_sale_use_case,
)
from src.application.dto.requests import (
    DeleteLedgerEntryRequest,
    EditLedgerEntryRequest,
    RecordPurchaseRequest,
    RecordSaleRequest,
)
from src.application.dto.responses import (
    ErrorResponse,
    LedgerChangeResponse,
    LedgerEntryResponse,
    PurchaseResponse,
    SaleResponse,
)
from src.application.use_cases import (
    DeleteLedgerEntryUseCase,
    EditLedgerEntryUseCase,
    RecordPurchaseUseCase,
    RecordSaleUseCase,
)
from src.core.exceptions import LedgerEntryNotFoundError
from src.infrastructure.storage.sqlite import SQLiteLedgerStore

router = APIRouter(prefix="/api/transactions", tags=["transactions"])

_CONFLICT = {409: {"model": ErrorResponse}}
_NOT_FOUND = {404: {"model": ErrorResponse}}


@router.post(
    "/purchase",
    response_model=PurchaseResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_NOT_FOUND, 422: {"model": ErrorResponse}},
)
async def record_purchase(
    request: RecordPurchaseRequest,
    use_case: RecordPurchaseUseCase = Depends(get_record_purchase_use_case),
) -> PurchaseResponse:
    """Record a purchase; creates the aggregate (and a lot) as needed."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/sale",
    response_model=SaleResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_NOT_FOUND, **_CONFLICT},
)
async def record_sale(
    request: RecordSaleRequest,
    use_case: RecordSaleUseCase = Depends(get_record_sale_use_case),
) -> SaleResponse:
    """Record a direct sale costed by average or by lot."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get(
    "/{entry_id}",
    response_model=LedgerEntryResponse,
    responses=_NOT_FOUND,
)
async def get_transaction(
    entry_id: int,
    ledger: SQLiteLedgerStore = Depends(get_ledger),
) -> LedgerEntryResponse:
    entry = await ledger.get_entry(entry_id)
    if entry is None:
        raise LedgerEntryNotFoundError(entry_id)
    return LedgerEntryResponse.from_entity(entry)


@router.put(
    "/{entry_id}",
    response_model=LedgerChangeResponse,
    responses={**_NOT_FOUND, **_CONFLICT},
)
async def edit_transaction(
    entry_id: int,
    request: EditLedgerEntryRequest,
    use_case: EditLedgerEntryUseCase = Depends(get_edit_entry_use_case),
) -> LedgerChangeResponse:
    """Correct an entry; the aggregate is rebuilt from the ledger."""
    result = await use_case.execute(entry_id, request)
    return use_case.to_response(result)


@router.delete(
    "/{entry_id}",
    response_model=LedgerChangeResponse,
    responses={**_NOT_FOUND, **_CONFLICT},
)
async def delete_transaction(
    entry_id: int,
    reason: str | None = None,
    use_case: DeleteLedgerEntryUseCase = Depends(get_delete_entry_use_case),
) -> LedgerChangeResponse:
    """Delete an entry; the aggregate is rebuilt from the ledger."""
    result = await use_case.execute(entry_id, DeleteLedgerEntryRequest(reason=reason))
    return use_case.to_response(result)
