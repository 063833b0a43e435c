"""SQLite implementation of the transaction ledger and history log."""

from datetime import UTC, date, datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.ledger import (
    HistoryAction,
    HistoryEntry,
    LedgerEntry,
    LedgerTotals,
    TransactionType,
)
from src.core.exceptions import LedgerEntryNotFoundError
from src.core.interfaces.ledger_store import ILedgerStore
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)

_UPDATE_ENTRY_SQL = """
    UPDATE ledger_entries SET
        quantity = ?,
        unit_price = ?,
        total_price = ?,
        expenses = ?,
        profit = ?,
        profit_rate = ?,
        transaction_date = ?,
        lot_id = ?,
        notes = ?
    WHERE id = ?
"""


def _update_params(entry: LedgerEntry) -> tuple:
    return (
        entry.quantity,
        entry.unit_price,
        entry.quantity * entry.unit_price,
        entry.expenses,
        entry.profit,
        entry.profit_rate,
        entry.transaction_date.isoformat(),
        entry.lot_id,
        entry.notes,
        entry.id,
    )


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None


class SQLiteLedgerStore(ILedgerStore):
    """SQLite implementation of ledger entry and history storage."""

    async def add_entry(self, entry: LedgerEntry) -> LedgerEntry:
        """Append a ledger entry; an entry carrying an id is restored under it."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO ledger_entries (
                    id, inventory_id, type, quantity, unit_price, total_price,
                    expenses, profit, profit_rate, transaction_date, lot_id,
                    is_checkout, notes, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    entry.inventory_id,
                    entry.type.value,
                    entry.quantity,
                    entry.unit_price,
                    entry.total_price,
                    entry.expenses,
                    entry.profit,
                    entry.profit_rate,
                    entry.transaction_date.isoformat(),
                    entry.lot_id,
                    int(entry.is_checkout),
                    entry.notes,
                    entry.created_at.isoformat(),
                ),
            )
            entry = entry.model_copy(update={"id": cursor.lastrowid})
            logger.info(
                "ledger_entry_added",
                entry_id=entry.id,
                inventory_id=entry.inventory_id,
                type=entry.type.value,
                qty=entry.quantity,
            )
            return entry

    async def get_entry(self, entry_id: int) -> LedgerEntry | None:
        """Get ledger entry by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM ledger_entries WHERE id = ?", (entry_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_entry(row)

    async def update_entry(self, entry: LedgerEntry) -> LedgerEntry:
        """Overwrite the editable and derived fields of an entry."""
        async with get_transaction() as conn:
            cursor = await conn.execute(_UPDATE_ENTRY_SQL, _update_params(entry))
            if cursor.rowcount == 0:
                raise LedgerEntryNotFoundError(entry.id)  # type: ignore[arg-type]
            logger.info("ledger_entry_updated", entry_id=entry.id)
            return entry.model_copy(
                update={"total_price": entry.quantity * entry.unit_price}
            )

    async def update_entries(self, entries: list[LedgerEntry]) -> None:
        """Overwrite several entries in one transaction."""
        if not entries:
            return
        async with get_transaction(immediate=True) as conn:
            await conn.executemany(
                _UPDATE_ENTRY_SQL, [_update_params(e) for e in entries]
            )
            logger.info("ledger_entries_updated", count=len(entries))

    async def set_entry_lot(self, entry_id: int, lot_id: int | None) -> None:
        """Link an entry to a lot."""
        async with get_transaction() as conn:
            await conn.execute(
                "UPDATE ledger_entries SET lot_id = ? WHERE id = ?",
                (lot_id, entry_id),
            )

    async def delete_entry(self, entry_id: int) -> None:
        """Delete a ledger entry."""
        async with get_transaction() as conn:
            await conn.execute("DELETE FROM ledger_entries WHERE id = ?", (entry_id,))
            logger.info("ledger_entry_deleted", entry_id=entry_id)

    async def list_entries(self, inventory_id: int) -> list[LedgerEntry]:
        """All entries of an aggregate in replay order (date, then creation)."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM ledger_entries
                WHERE inventory_id = ?
                ORDER BY transaction_date ASC, id ASC
                """,
                (inventory_id,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]

    async def get_totals(self, day: date) -> LedgerTotals:
        """Purchase and sale totals of one transaction date, checkout sales included."""
        purchase = TransactionType.PURCHASE.value
        sale = TransactionType.SALE.value
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT
                    COALESCE(SUM(CASE WHEN type = ? THEN total_price END), 0) AS purchase_total,
                    COALESCE(SUM(CASE WHEN type = ? THEN expenses END), 0) AS purchase_expenses,
                    COALESCE(SUM(CASE WHEN type = ? THEN total_price END), 0) AS sale_total,
                    COALESCE(SUM(CASE WHEN type = ? THEN profit END), 0) AS sale_profit
                FROM ledger_entries
                WHERE transaction_date = ?
                """,
                (purchase, purchase, sale, sale, day.isoformat()),
            )
            row = await cursor.fetchone()
            cursor = await conn.execute(
                "SELECT COALESCE(SUM(expenses), 0) FROM ledger_entries WHERE type = ?",
                (purchase,),
            )
            all_time = await cursor.fetchone()

        return LedgerTotals(
            day=day,
            purchase_total=row["purchase_total"],
            purchase_expenses=row["purchase_expenses"],
            sale_total=row["sale_total"],
            sale_profit=row["sale_profit"],
            all_time_expenses=all_time[0],
        )

    # -- History ------------------------------------------------------------

    async def add_history(self, history: HistoryEntry) -> HistoryEntry:
        """Append a history record; a record carrying an id is restored under it."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO history (
                    id, inventory_id, action_type, quantity_change,
                    quantity_before, quantity_after, ledger_entry_id,
                    reason, notes, is_modified, modified_at, modified_reason,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    history.id,
                    history.inventory_id,
                    history.action_type.value,
                    history.quantity_change,
                    history.quantity_before,
                    history.quantity_after,
                    history.ledger_entry_id,
                    history.reason,
                    history.notes,
                    int(history.is_modified),
                    history.modified_at.isoformat() if history.modified_at else None,
                    history.modified_reason,
                    history.created_at.isoformat(),
                ),
            )
            history = history.model_copy(update={"id": cursor.lastrowid})
            logger.debug(
                "history_recorded",
                history_id=history.id,
                inventory_id=history.inventory_id,
                action=history.action_type.value,
                change=history.quantity_change,
            )
            return history

    async def delete_history(self, history_id: int) -> None:
        """Remove a history record (compensation only)."""
        async with get_transaction() as conn:
            await conn.execute("DELETE FROM history WHERE id = ?", (history_id,))

    async def delete_history_for_entry(self, ledger_entry_id: int) -> list[HistoryEntry]:
        """Remove and return the history records linked to a ledger entry."""
        async with get_transaction(immediate=True) as conn:
            cursor = await conn.execute(
                "SELECT * FROM history WHERE ledger_entry_id = ? ORDER BY id",
                (ledger_entry_id,),
            )
            rows = await cursor.fetchall()
            await conn.execute(
                "DELETE FROM history WHERE ledger_entry_id = ?", (ledger_entry_id,)
            )
            return [self._row_to_history(row) for row in rows]

    async def list_history(
        self, inventory_id: int, limit: int = 100, offset: int = 0
    ) -> list[HistoryEntry]:
        """History of an aggregate, newest first."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM history
                WHERE inventory_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                (inventory_id, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_history(row) for row in rows]

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> LedgerEntry:
        """Convert a database row to a LedgerEntry entity."""
        transaction_date = date.today()
        if row["transaction_date"]:
            try:
                transaction_date = date.fromisoformat(row["transaction_date"])
            except (ValueError, TypeError):
                pass

        return LedgerEntry(
            id=row["id"],
            inventory_id=row["inventory_id"],
            type=TransactionType(row["type"]),
            quantity=row["quantity"],
            unit_price=row["unit_price"],
            expenses=row["expenses"],
            profit=row["profit"],
            profit_rate=row["profit_rate"],
            transaction_date=transaction_date,
            lot_id=row["lot_id"],
            is_checkout=bool(row["is_checkout"]),
            notes=row["notes"],
            created_at=_parse_datetime(row["created_at"]) or datetime.now(UTC),
        )

    @staticmethod
    def _row_to_history(row: aiosqlite.Row) -> HistoryEntry:
        """Convert a database row to a HistoryEntry entity."""
        return HistoryEntry(
            id=row["id"],
            inventory_id=row["inventory_id"],
            action_type=HistoryAction(row["action_type"]),
            quantity_change=row["quantity_change"],
            quantity_before=row["quantity_before"],
            quantity_after=row["quantity_after"],
            ledger_entry_id=row["ledger_entry_id"],
            reason=row["reason"],
            notes=row["notes"],
            is_modified=bool(row["is_modified"]),
            modified_at=_parse_datetime(row["modified_at"]),
            modified_reason=row["modified_reason"],
            created_at=_parse_datetime(row["created_at"]) or datetime.now(UTC),
        )
