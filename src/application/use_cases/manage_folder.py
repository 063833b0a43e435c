"""Manage Folder Use Case: checkout folder lifecycle and summaries."""

from datetime import UTC, datetime

from src.application.dto.requests import CreateFolderRequest
from src.application.dto.responses import (
    CheckoutFolderResponse,
    CheckoutItemResponse,
    CheckoutStatsResponse,
    FolderListResponse,
    FolderSummaryResponse,
)
from src.application.use_cases.base import LedgerUseCase
from src.config import get_logger
from src.core.entities.checkout import (
    CheckoutFolder,
    CheckoutStats,
    CheckoutStatus,
    FolderStatus,
    FolderSummary,
)
from src.core.exceptions import (
    FolderHasLinkedItemsError,
    FolderNotFoundError,
    PendingItemsExistError,
    ValidationError,
)

logger = get_logger(__name__)


class ManageFolderUseCase(LedgerUseCase):
    """
    Create, close, reopen, delete and inspect checkout folders.

    A folder with pending items can be neither closed nor deleted.
    Sold and converted items back ledger entries and keep their folder
    alive until undone; returned items are removed with the folder.
    """

    async def _load(self, folder_id: int) -> CheckoutFolder:
        store = await self._get_checkout_store()
        folder = await store.get_folder(folder_id)
        if folder is None:
            raise FolderNotFoundError(folder_id)
        return folder

    async def create(self, request: CreateFolderRequest) -> CheckoutFolder:
        name = request.name.strip()
        if not name:
            raise ValidationError("name", "folder name must not be empty", request.name)

        store = await self._get_checkout_store()
        folder = await store.create_folder(
            CheckoutFolder(name=name, description=request.description)
        )
        logger.info("folder_created", folder_id=folder.id, name=folder.name)
        return folder

    async def close(self, folder_id: int) -> CheckoutFolder:
        store = await self._get_checkout_store()
        async with self._hold(folder=folder_id):
            folder = await self._load(folder_id)
            pending = await store.count_pending(folder_id)
            if pending:
                raise PendingItemsExistError(folder_id, pending)

            now = datetime.now(UTC)
            folder = await store.update_folder(
                folder.model_copy(
                    update={"status": FolderStatus.CLOSED, "closed_at": now, "updated_at": now}
                )
            )
        logger.info("folder_closed", folder_id=folder_id)
        return folder

    async def reopen(self, folder_id: int) -> CheckoutFolder:
        store = await self._get_checkout_store()
        async with self._hold(folder=folder_id):
            folder = await self._load(folder_id)
            folder = await store.update_folder(
                folder.model_copy(
                    update={
                        "status": FolderStatus.OPEN,
                        "closed_at": None,
                        "updated_at": datetime.now(UTC),
                    }
                )
            )
        logger.info("folder_reopened", folder_id=folder_id)
        return folder

    async def delete(self, folder_id: int) -> None:
        store = await self._get_checkout_store()
        async with self._hold(folder=folder_id):
            await self._load(folder_id)
            pending = await store.count_pending(folder_id)
            if pending:
                raise PendingItemsExistError(folder_id, pending)

            linked = sum(
                1
                for item in await store.list_items(folder_id)
                if item.status in (CheckoutStatus.SOLD, CheckoutStatus.CONVERTED)
            )
            if linked:
                raise FolderHasLinkedItemsError(folder_id, linked)

            await store.delete_folder(folder_id)
        logger.info("folder_deleted", folder_id=folder_id)

    async def get(self, folder_id: int) -> FolderSummary:
        """Folder with its items, item and pending counts, and locked amount."""
        store = await self._get_checkout_store()
        folder = await self._load(folder_id)
        items = await store.list_items(folder_id)
        return FolderSummary(folder=folder, items=items)

    async def list_folders(self, status: FolderStatus | None = None) -> list[CheckoutFolder]:
        store = await self._get_checkout_store()
        return await store.list_folders(status)

    async def stats(self) -> CheckoutStats:
        store = await self._get_checkout_store()
        return await store.get_stats()

    @staticmethod
    def folder_response(folder: CheckoutFolder) -> CheckoutFolderResponse:
        return CheckoutFolderResponse.from_entity(folder)

    @staticmethod
    def summary_response(summary: FolderSummary) -> FolderSummaryResponse:
        return FolderSummaryResponse(
            folder=CheckoutFolderResponse.from_entity(summary.folder),
            items=[CheckoutItemResponse.from_entity(i) for i in summary.items],
            item_count=summary.item_count,
            pending_count=summary.pending_count,
            locked_amount=summary.locked_amount,
        )

    @staticmethod
    def list_response(folders: list[CheckoutFolder]) -> FolderListResponse:
        return FolderListResponse(
            folders=[CheckoutFolderResponse.from_entity(f) for f in folders],
            total=len(folders),
        )

    @staticmethod
    def stats_response(stats: CheckoutStats) -> CheckoutStatsResponse:
        return CheckoutStatsResponse.from_entity(stats)
