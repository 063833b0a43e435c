"""Abstract interface for checkout folder and item storage."""

from abc import ABC, abstractmethod

from src.core.entities.checkout import (
    CheckoutFolder,
    CheckoutItem,
    CheckoutStats,
    FolderStatus,
)


class ICheckoutStore(ABC):
    """Interface for checkout folder and item persistence."""

    @abstractmethod
    async def create_folder(self, folder: CheckoutFolder) -> CheckoutFolder:
        """Create a folder."""
        pass

    @abstractmethod
    async def get_folder(self, folder_id: int) -> CheckoutFolder | None:
        """Get folder by ID."""
        pass

    @abstractmethod
    async def update_folder(self, folder: CheckoutFolder) -> CheckoutFolder:
        """Update name, description, status and closed_at."""
        pass

    @abstractmethod
    async def delete_folder(self, folder_id: int) -> None:
        """Delete a folder and its (resolved) items."""
        pass

    @abstractmethod
    async def list_folders(
        self, status: FolderStatus | None = None
    ) -> list[CheckoutFolder]:
        """List folders, newest first."""
        pass

    @abstractmethod
    async def create_item(self, item: CheckoutItem) -> CheckoutItem:
        """Create a checkout item."""
        pass

    @abstractmethod
    async def get_item(self, item_id: int) -> CheckoutItem | None:
        """Get checkout item by ID."""
        pass

    @abstractmethod
    async def update_item(self, item: CheckoutItem) -> CheckoutItem:
        """Update quantity, status and resolution fields."""
        pass

    @abstractmethod
    async def delete_item(self, item_id: int) -> None:
        """Delete a checkout item."""
        pass

    @abstractmethod
    async def list_items(self, folder_id: int) -> list[CheckoutItem]:
        """Items of a folder, newest first."""
        pass

    @abstractmethod
    async def list_holding_items(self, inventory_id: int) -> list[CheckoutItem]:
        """Items of an aggregate still holding stock (pending, sold, converted)."""
        pass

    @abstractmethod
    async def count_pending(self, folder_id: int) -> int:
        """Number of pending items in a folder."""
        pass

    @abstractmethod
    async def get_stats(self) -> CheckoutStats:
        """Totals over all pending items and open folders."""
        pass
