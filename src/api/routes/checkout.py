"""Checkout folder and item endpoints."""

from fastapi import APIRouter, Depends, Query, status
from starlette.responses import Response

from src.api.dependencies import (
    get_cancel_use_case,
    get_convert_use_case,
    get_folder_use_case,
    get_return_use_case,
    get_sell_use_case,
    get_undo_use_case,
    get_withdraw_use_case,
)
from src.application.dto.requests import (
    ConvertItemRequest,
    CreateFolderRequest,
    ReturnItemRequest,
    SellItemRequest,
    UndoItemRequest,
    WithdrawRequest,
)
from src.application.dto.responses import (
    CheckoutFolderResponse,
    CheckoutResolutionResponse,
    CheckoutStatsResponse,
    ErrorResponse,
    FolderListResponse,
    FolderSummaryResponse,
)
from src.application.use_cases import (
    CancelCheckoutItemUseCase,
    ConvertCheckoutItemUseCase,
    ManageFolderUseCase,
    ReturnCheckoutItemUseCase,
    SellCheckoutItemUseCase,
    UndoCheckoutItemUseCase,
    WithdrawToFolderUseCase,
)
from src.core.entities.checkout import FolderStatus

router = APIRouter(prefix="/api/checkout", tags=["checkout"])

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


# --- Folders ---


@router.get("/folders", response_model=FolderListResponse)
async def list_folders(
    status_filter: FolderStatus | None = Query(default=None, alias="status"),
    use_case: ManageFolderUseCase = Depends(get_folder_use_case),
) -> FolderListResponse:
    folders = await use_case.list_folders(status_filter)
    return use_case.list_response(folders)


@router.post(
    "/folders",
    response_model=CheckoutFolderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_folder(
    request: CreateFolderRequest,
    use_case: ManageFolderUseCase = Depends(get_folder_use_case),
) -> CheckoutFolderResponse:
    folder = await use_case.create(request)
    return use_case.folder_response(folder)


@router.get(
    "/folders/{folder_id}",
    response_model=FolderSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_folder(
    folder_id: int,
    use_case: ManageFolderUseCase = Depends(get_folder_use_case),
) -> FolderSummaryResponse:
    """Folder with its items and the amount locked in pending ones."""
    summary = await use_case.get(folder_id)
    return use_case.summary_response(summary)


@router.post(
    "/folders/{folder_id}/close",
    response_model=CheckoutFolderResponse,
    responses=_ERRORS,
)
async def close_folder(
    folder_id: int,
    use_case: ManageFolderUseCase = Depends(get_folder_use_case),
) -> CheckoutFolderResponse:
    folder = await use_case.close(folder_id)
    return use_case.folder_response(folder)


@router.post(
    "/folders/{folder_id}/reopen",
    response_model=CheckoutFolderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def reopen_folder(
    folder_id: int,
    use_case: ManageFolderUseCase = Depends(get_folder_use_case),
) -> CheckoutFolderResponse:
    folder = await use_case.reopen(folder_id)
    return use_case.folder_response(folder)


@router.delete(
    "/folders/{folder_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=_ERRORS,
)
async def delete_folder(
    folder_id: int,
    use_case: ManageFolderUseCase = Depends(get_folder_use_case),
) -> Response:
    await use_case.delete(folder_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/stats", response_model=CheckoutStatsResponse)
async def checkout_stats(
    use_case: ManageFolderUseCase = Depends(get_folder_use_case),
) -> CheckoutStatsResponse:
    """Money tied up in pending checkouts."""
    stats = await use_case.stats()
    return use_case.stats_response(stats)


# --- Items ---


@router.post(
    "/items",
    response_model=CheckoutResolutionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
async def withdraw(
    request: WithdrawRequest,
    use_case: WithdrawToFolderUseCase = Depends(get_withdraw_use_case),
) -> CheckoutResolutionResponse:
    """Take units off the shelf into a folder."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/items/{item_id}/return",
    response_model=CheckoutResolutionResponse,
    responses=_ERRORS,
)
async def return_item(
    item_id: int,
    request: ReturnItemRequest | None = None,
    use_case: ReturnCheckoutItemUseCase = Depends(get_return_use_case),
) -> CheckoutResolutionResponse:
    result = await use_case.execute(item_id, request)
    return use_case.to_response(result)


@router.post(
    "/items/{item_id}/sell",
    response_model=CheckoutResolutionResponse,
    responses=_ERRORS,
)
async def sell_item(
    item_id: int,
    request: SellItemRequest,
    use_case: SellCheckoutItemUseCase = Depends(get_sell_use_case),
) -> CheckoutResolutionResponse:
    result = await use_case.execute(item_id, request)
    return use_case.to_response(result)


@router.post(
    "/items/{item_id}/convert",
    response_model=CheckoutResolutionResponse,
    responses=_ERRORS,
)
async def convert_item(
    item_id: int,
    request: ConvertItemRequest,
    use_case: ConvertCheckoutItemUseCase = Depends(get_convert_use_case),
) -> CheckoutResolutionResponse:
    result = await use_case.execute(item_id, request)
    return use_case.to_response(result)


@router.post(
    "/items/{item_id}/undo",
    response_model=CheckoutResolutionResponse,
    responses=_ERRORS,
)
async def undo_item(
    item_id: int,
    request: UndoItemRequest | None = None,
    use_case: UndoCheckoutItemUseCase = Depends(get_undo_use_case),
) -> CheckoutResolutionResponse:
    """Put a returned, sold or converted item back to pending."""
    result = await use_case.execute(item_id, request)
    return use_case.to_response(result)


@router.delete(
    "/items/{item_id}",
    response_model=CheckoutResolutionResponse,
    responses=_ERRORS,
)
async def cancel_item(
    item_id: int,
    use_case: CancelCheckoutItemUseCase = Depends(get_cancel_use_case),
) -> CheckoutResolutionResponse:
    """Delete a pending item and restore its stock."""
    result = await use_case.execute(item_id)
    return use_case.to_response(result)
