"""SQLite implementation of checkout folder and item storage."""

from datetime import UTC, datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.checkout import (
    CheckoutFolder,
    CheckoutItem,
    CheckoutStats,
    CheckoutStatus,
    FolderStatus,
)
from src.core.exceptions import CheckoutItemNotFoundError, FolderNotFoundError
from src.core.interfaces.checkout_store import ICheckoutStore
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None


class SQLiteCheckoutStore(ICheckoutStore):
    """SQLite implementation of checkout folder and item storage."""

    async def create_folder(self, folder: CheckoutFolder) -> CheckoutFolder:
        """Create a folder."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO checkout_folders (
                    name, description, status, closed_at, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    folder.name,
                    folder.description,
                    folder.status.value,
                    _iso(folder.closed_at),
                    folder.created_at.isoformat(),
                    folder.updated_at.isoformat(),
                ),
            )
            folder = folder.model_copy(update={"id": cursor.lastrowid})
            logger.info("checkout_folder_created", folder_id=folder.id, name=folder.name)
            return folder

    async def get_folder(self, folder_id: int) -> CheckoutFolder | None:
        """Get folder by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM checkout_folders WHERE id = ?", (folder_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_folder(row)

    async def update_folder(self, folder: CheckoutFolder) -> CheckoutFolder:
        """Update name, description, status and closed_at."""
        folder = folder.model_copy(update={"updated_at": datetime.now(UTC)})
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE checkout_folders SET
                    name = ?, description = ?, status = ?, closed_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    folder.name,
                    folder.description,
                    folder.status.value,
                    _iso(folder.closed_at),
                    folder.updated_at.isoformat(),
                    folder.id,
                ),
            )
            if cursor.rowcount == 0:
                raise FolderNotFoundError(folder.id)  # type: ignore[arg-type]
            logger.info(
                "checkout_folder_updated",
                folder_id=folder.id,
                status=folder.status.value,
            )
            return folder

    async def delete_folder(self, folder_id: int) -> None:
        """Delete a folder and its (resolved) items."""
        async with get_transaction() as conn:
            await conn.execute("DELETE FROM checkout_folders WHERE id = ?", (folder_id,))
            logger.info("checkout_folder_deleted", folder_id=folder_id)

    async def list_folders(
        self, status: FolderStatus | None = None
    ) -> list[CheckoutFolder]:
        """List folders, newest first."""
        query = "SELECT * FROM checkout_folders"
        params: tuple = ()
        if status is not None:
            query += " WHERE status = ?"
            params = (status.value,)
        query += " ORDER BY created_at DESC, id DESC"
        async with get_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [self._row_to_folder(row) for row in rows]

    # -- Items --------------------------------------------------------------

    async def create_item(self, item: CheckoutItem) -> CheckoutItem:
        """Create a checkout item (restored under its id if it has one)."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO checkout_items (
                    id, folder_id, inventory_id, lot_id, quantity, unit_cost,
                    unit_expense, status, resolved_at, resolution_notes,
                    sale_unit_price, sale_expenses, sale_profit,
                    converted_condition, converted_expenses, ledger_entry_id,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.id,
                    item.folder_id,
                    item.inventory_id,
                    item.lot_id,
                    item.quantity,
                    item.unit_cost,
                    item.unit_expense,
                    item.status.value,
                    _iso(item.resolved_at),
                    item.resolution_notes,
                    item.sale_unit_price,
                    item.sale_expenses,
                    item.sale_profit,
                    item.converted_condition,
                    item.converted_expenses,
                    item.ledger_entry_id,
                    item.created_at.isoformat(),
                    item.updated_at.isoformat(),
                ),
            )
            item = item.model_copy(update={"id": cursor.lastrowid})
            logger.info(
                "checkout_item_created",
                item_id=item.id,
                folder_id=item.folder_id,
                inventory_id=item.inventory_id,
                status=item.status.value,
                qty=item.quantity,
            )
            return item

    async def get_item(self, item_id: int) -> CheckoutItem | None:
        """Get checkout item by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM checkout_items WHERE id = ?", (item_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_item(row)

    async def update_item(self, item: CheckoutItem) -> CheckoutItem:
        """Update quantity, status and resolution fields."""
        item = item.model_copy(update={"updated_at": datetime.now(UTC)})
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE checkout_items SET
                    quantity = ?,
                    status = ?,
                    resolved_at = ?,
                    resolution_notes = ?,
                    sale_unit_price = ?,
                    sale_expenses = ?,
                    sale_profit = ?,
                    converted_condition = ?,
                    converted_expenses = ?,
                    ledger_entry_id = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    item.quantity,
                    item.status.value,
                    _iso(item.resolved_at),
                    item.resolution_notes,
                    item.sale_unit_price,
                    item.sale_expenses,
                    item.sale_profit,
                    item.converted_condition,
                    item.converted_expenses,
                    item.ledger_entry_id,
                    item.updated_at.isoformat(),
                    item.id,
                ),
            )
            if cursor.rowcount == 0:
                raise CheckoutItemNotFoundError(item.id)  # type: ignore[arg-type]
            logger.info(
                "checkout_item_updated",
                item_id=item.id,
                status=item.status.value,
                qty=item.quantity,
            )
            return item

    async def delete_item(self, item_id: int) -> None:
        """Delete a checkout item."""
        async with get_transaction() as conn:
            await conn.execute("DELETE FROM checkout_items WHERE id = ?", (item_id,))
            logger.info("checkout_item_deleted", item_id=item_id)

    async def list_items(self, folder_id: int) -> list[CheckoutItem]:
        """Items of a folder, newest first."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM checkout_items
                WHERE folder_id = ?
                ORDER BY created_at DESC, id DESC
                """,
                (folder_id,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_item(row) for row in rows]

    async def list_holding_items(self, inventory_id: int) -> list[CheckoutItem]:
        """Items of an aggregate still holding stock (pending, sold, converted)."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM checkout_items
                WHERE inventory_id = ? AND status IN (?, ?, ?)
                ORDER BY id
                """,
                (
                    inventory_id,
                    CheckoutStatus.PENDING.value,
                    CheckoutStatus.SOLD.value,
                    CheckoutStatus.CONVERTED.value,
                ),
            )
            rows = await cursor.fetchall()
            return [self._row_to_item(row) for row in rows]

    async def count_pending(self, folder_id: int) -> int:
        """Number of pending items in a folder."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM checkout_items WHERE folder_id = ? AND status = ?",
                (folder_id, CheckoutStatus.PENDING.value),
            )
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def get_stats(self) -> CheckoutStats:
        """Totals over all pending items and open folders."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT
                    COALESCE(SUM(unit_cost * quantity), 0) AS locked_amount,
                    COALESCE(SUM(unit_expense * quantity), 0) AS locked_expenses,
                    COUNT(*) AS pending_items
                FROM checkout_items
                WHERE status = ?
                """,
                (CheckoutStatus.PENDING.value,),
            )
            totals = await cursor.fetchone()
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM checkout_folders WHERE status = ?",
                (FolderStatus.OPEN.value,),
            )
            folders = await cursor.fetchone()

        return CheckoutStats(
            locked_amount=totals["locked_amount"],
            locked_expenses=totals["locked_expenses"],
            pending_items=totals["pending_items"],
            open_folders=folders[0] if folders else 0,
        )

    @staticmethod
    def _row_to_folder(row: aiosqlite.Row) -> CheckoutFolder:
        """Convert a database row to a CheckoutFolder entity."""
        now = datetime.now(UTC)
        return CheckoutFolder(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            status=FolderStatus(row["status"]),
            closed_at=_parse_datetime(row["closed_at"]),
            created_at=_parse_datetime(row["created_at"]) or now,
            updated_at=_parse_datetime(row["updated_at"]) or now,
        )

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> CheckoutItem:
        """Convert a database row to a CheckoutItem entity."""
        now = datetime.now(UTC)
        return CheckoutItem(
            id=row["id"],
            folder_id=row["folder_id"],
            inventory_id=row["inventory_id"],
            lot_id=row["lot_id"],
            quantity=row["quantity"],
            unit_cost=row["unit_cost"],
            unit_expense=row["unit_expense"],
            status=CheckoutStatus(row["status"]),
            resolved_at=_parse_datetime(row["resolved_at"]),
            resolution_notes=row["resolution_notes"],
            sale_unit_price=row["sale_unit_price"],
            sale_expenses=row["sale_expenses"],
            sale_profit=row["sale_profit"],
            converted_condition=row["converted_condition"],
            converted_expenses=row["converted_expenses"],
            ledger_entry_id=row["ledger_entry_id"],
            created_at=_parse_datetime(row["created_at"]) or now,
            updated_at=_parse_datetime(row["updated_at"]) or now,
        )
