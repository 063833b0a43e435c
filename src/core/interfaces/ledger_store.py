"""Abstract interface for the transaction ledger and the history log."""

from abc import ABC, abstractmethod
from datetime import date

from src.core.entities.ledger import HistoryEntry, LedgerEntry, LedgerTotals


class ILedgerStore(ABC):
    """Interface for ledger entry and history persistence."""

    @abstractmethod
    async def add_entry(self, entry: LedgerEntry) -> LedgerEntry:
        """Append a ledger entry; an entry carrying an id is restored under it."""
        pass

    @abstractmethod
    async def get_entry(self, entry_id: int) -> LedgerEntry | None:
        """Get ledger entry by ID."""
        pass

    @abstractmethod
    async def update_entry(self, entry: LedgerEntry) -> LedgerEntry:
        """Overwrite the editable and derived fields of an entry."""
        pass

    @abstractmethod
    async def update_entries(self, entries: list[LedgerEntry]) -> None:
        """Overwrite several entries in one write (used by reconciliation)."""
        pass

    @abstractmethod
    async def set_entry_lot(self, entry_id: int, lot_id: int | None) -> None:
        """Link an entry to a lot."""
        pass

    @abstractmethod
    async def delete_entry(self, entry_id: int) -> None:
        """Delete a ledger entry."""
        pass

    @abstractmethod
    async def list_entries(self, inventory_id: int) -> list[LedgerEntry]:
        """All entries of an aggregate in replay order (date, then creation)."""
        pass

    @abstractmethod
    async def get_totals(self, day: date) -> LedgerTotals:
        """Purchase and sale totals of one transaction date."""
        pass

    @abstractmethod
    async def add_history(self, history: HistoryEntry) -> HistoryEntry:
        """Append a history record."""
        pass

    @abstractmethod
    async def delete_history(self, history_id: int) -> None:
        """Remove a history record (compensation only)."""
        pass

    @abstractmethod
    async def delete_history_for_entry(self, ledger_entry_id: int) -> list[HistoryEntry]:
        """Remove and return the history records linked to a ledger entry."""
        pass

    @abstractmethod
    async def list_history(
        self, inventory_id: int, limit: int = 100, offset: int = 0
    ) -> list[HistoryEntry]:
        """History of an aggregate, newest first."""
        pass
