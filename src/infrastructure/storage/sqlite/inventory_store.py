"""SQLite implementation of inventory aggregate and lot storage."""

from datetime import UTC, date, datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.inventory import InventoryAggregate, InventoryValuation, Lot
from src.core.exceptions import (
    DatabaseError,
    InsufficientStockError,
    InventoryNotFoundError,
    LotInsufficientError,
    LotNotFoundError,
)
from src.core.interfaces.inventory_store import IInventoryStore
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


def _parse_datetime(value: str | None) -> datetime:
    if value:
        try:
            return datetime.fromisoformat(value)
        except (ValueError, TypeError):
            pass
    return datetime.now(UTC)


class SQLiteInventoryStore(IInventoryStore):
    """SQLite implementation of inventory aggregate and lot storage."""

    async def get_or_create_aggregate(
        self, catalog_item_id: int, condition: str
    ) -> tuple[InventoryAggregate, bool]:
        """Get the aggregate for (item, condition), creating an empty one if absent."""
        now = datetime.now(UTC).isoformat()
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT OR IGNORE INTO inventory (
                    catalog_item_id, condition, created_at, updated_at
                ) VALUES (?, ?, ?, ?)
                """,
                (catalog_item_id, condition, now, now),
            )
            created = cursor.rowcount == 1
            cursor = await conn.execute(
                "SELECT * FROM inventory WHERE catalog_item_id = ? AND condition = ?",
                (catalog_item_id, condition),
            )
            row = await cursor.fetchone()

        aggregate = self._row_to_aggregate(row)
        if created:
            logger.info(
                "inventory_aggregate_created",
                inventory_id=aggregate.id,
                catalog_item_id=catalog_item_id,
                condition=condition,
            )
        return aggregate, created

    async def get_aggregate(self, inventory_id: int) -> InventoryAggregate | None:
        """Get aggregate by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM inventory WHERE id = ?", (inventory_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_aggregate(row)

    async def get_aggregate_by_key(
        self, catalog_item_id: int, condition: str
    ) -> InventoryAggregate | None:
        """Get aggregate by (catalog item, condition)."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM inventory WHERE catalog_item_id = ? AND condition = ?",
                (catalog_item_id, condition),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_aggregate(row)

    async def update_aggregate(self, aggregate: InventoryAggregate) -> InventoryAggregate:
        """Overwrite quantity and every derived cost field."""
        aggregate = aggregate.model_copy(update={"updated_at": datetime.now(UTC)})
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE inventory SET
                    quantity = ?,
                    avg_purchase_price = ?,
                    total_purchased = ?,
                    total_purchase_cost = ?,
                    total_expenses = ?,
                    avg_expense_per_unit = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    aggregate.quantity,
                    aggregate.avg_purchase_price,
                    aggregate.total_purchased,
                    aggregate.total_purchase_cost,
                    aggregate.total_expenses,
                    aggregate.avg_expense_per_unit,
                    aggregate.updated_at.isoformat(),
                    aggregate.id,
                ),
            )
            if cursor.rowcount == 0:
                raise InventoryNotFoundError(aggregate.id)  # type: ignore[arg-type]
            logger.info(
                "inventory_aggregate_updated",
                inventory_id=aggregate.id,
                quantity=aggregate.quantity,
                avg_purchase_price=aggregate.avg_purchase_price,
            )
            return aggregate

    async def adjust_quantity(self, inventory_id: int, delta: int) -> InventoryAggregate:
        """Add delta to quantity; the WHERE clause refuses a negative result."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE inventory SET quantity = quantity + ?, updated_at = ?
                WHERE id = ? AND quantity + ? >= 0
                """,
                (delta, datetime.now(UTC).isoformat(), inventory_id, delta),
            )
            updated = cursor.rowcount == 1
            cursor = await conn.execute(
                "SELECT * FROM inventory WHERE id = ?", (inventory_id,)
            )
            row = await cursor.fetchone()

        if row is None:
            raise InventoryNotFoundError(inventory_id)
        if not updated:
            raise InsufficientStockError(
                inventory_id=inventory_id,
                requested=-delta,
                available=row["quantity"],
            )
        logger.info(
            "inventory_quantity_adjusted",
            inventory_id=inventory_id,
            delta=delta,
            quantity=row["quantity"],
        )
        return self._row_to_aggregate(row)

    async def set_market_price(
        self, inventory_id: int, market_price: int | None
    ) -> InventoryAggregate:
        """Record an externally supplied market price."""
        async with get_transaction() as conn:
            await conn.execute(
                "UPDATE inventory SET market_price = ?, updated_at = ? WHERE id = ?",
                (market_price, datetime.now(UTC).isoformat(), inventory_id),
            )
            cursor = await conn.execute(
                "SELECT * FROM inventory WHERE id = ?", (inventory_id,)
            )
            row = await cursor.fetchone()
        if row is None:
            raise InventoryNotFoundError(inventory_id)
        logger.info(
            "inventory_market_price_set",
            inventory_id=inventory_id,
            market_price=market_price,
        )
        return self._row_to_aggregate(row)

    async def list_aggregates(
        self,
        catalog_item_id: int | None = None,
        in_stock_only: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryAggregate]:
        """List aggregates with optional filters and pagination."""
        conditions = []
        params: list = []
        if catalog_item_id is not None:
            conditions.append("catalog_item_id = ?")
            params.append(catalog_item_id)
        if in_stock_only:
            conditions.append("quantity > 0")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM inventory
                {where}
                ORDER BY catalog_item_id, condition
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_aggregate(row) for row in rows]

    async def get_valuation(self) -> InventoryValuation:
        """Stock totals; aggregates without a market price count at average cost."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT
                    COALESCE(SUM(quantity), 0) AS total_units,
                    COUNT(*) AS total_kinds,
                    COALESCE(SUM(quantity * avg_purchase_price), 0) AS total_cost,
                    COALESCE(
                        SUM(quantity * COALESCE(market_price, avg_purchase_price)), 0
                    ) AS estimated_value
                FROM inventory
                """
            )
            row = await cursor.fetchone()

        return InventoryValuation(
            total_units=row["total_units"],
            total_kinds=row["total_kinds"],
            total_cost=row["total_cost"],
            estimated_value=row["estimated_value"],
        )

    # -- Lots ---------------------------------------------------------------

    async def create_lot(self, lot: Lot) -> Lot:
        """Create a lot (restored under its id if it has one).

        Raises DatabaseError on a lot_number conflict.
        """
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO lots (
                        id, lot_number, inventory_id, quantity, remaining_qty,
                        unit_cost, expenses, unit_expense, purchase_date,
                        ledger_entry_id, notes, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        lot.id,
                        lot.lot_number,
                        lot.inventory_id,
                        lot.quantity,
                        lot.remaining_qty,
                        lot.unit_cost,
                        lot.expenses,
                        lot.unit_expense,
                        lot.purchase_date.isoformat(),
                        lot.ledger_entry_id,
                        lot.notes,
                        lot.created_at.isoformat(),
                    ),
                )
                lot = lot.model_copy(update={"id": cursor.lastrowid})
        except aiosqlite.IntegrityError as e:
            raise DatabaseError("create_lot", str(e)) from e

        logger.info(
            "lot_created",
            lot_id=lot.id,
            lot_number=lot.lot_number,
            inventory_id=lot.inventory_id,
            quantity=lot.quantity,
        )
        return lot

    async def get_lot(self, lot_id: int) -> Lot | None:
        """Get lot by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM lots WHERE id = ?", (lot_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_lot(row)

    async def get_lot_by_entry(self, ledger_entry_id: int) -> Lot | None:
        """Get the lot created by a purchase entry."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM lots WHERE ledger_entry_id = ?", (ledger_entry_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_lot(row)

    async def update_lot(self, lot: Lot) -> Lot:
        """Update quantity, remainder and costs of a lot."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE lots SET
                    quantity = ?,
                    remaining_qty = ?,
                    unit_cost = ?,
                    expenses = ?,
                    unit_expense = ?,
                    purchase_date = ?,
                    ledger_entry_id = ?,
                    notes = ?
                WHERE id = ?
                """,
                (
                    lot.quantity,
                    lot.remaining_qty,
                    lot.unit_cost,
                    lot.expenses,
                    lot.unit_expense,
                    lot.purchase_date.isoformat(),
                    lot.ledger_entry_id,
                    lot.notes,
                    lot.id,
                ),
            )
            if cursor.rowcount == 0:
                raise LotNotFoundError(lot.id)  # type: ignore[arg-type]
            logger.info(
                "lot_updated",
                lot_id=lot.id,
                quantity=lot.quantity,
                remaining_qty=lot.remaining_qty,
            )
            return lot

    async def adjust_lot_remaining(self, lot_id: int, delta: int) -> Lot:
        """Add delta to remaining_qty; the WHERE clause refuses a negative result."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE lots SET remaining_qty = remaining_qty + ?
                WHERE id = ? AND remaining_qty + ? >= 0
                """,
                (delta, lot_id, delta),
            )
            updated = cursor.rowcount == 1
            cursor = await conn.execute("SELECT * FROM lots WHERE id = ?", (lot_id,))
            row = await cursor.fetchone()

        if row is None:
            raise LotNotFoundError(lot_id)
        if not updated:
            raise LotInsufficientError(
                lot_id=lot_id, requested=-delta, remaining=row["remaining_qty"]
            )
        logger.info(
            "lot_remaining_adjusted",
            lot_id=lot_id,
            delta=delta,
            remaining_qty=row["remaining_qty"],
        )
        return self._row_to_lot(row)

    async def delete_lot(self, lot_id: int) -> None:
        """Delete a lot."""
        async with get_transaction() as conn:
            await conn.execute("DELETE FROM lots WHERE id = ?", (lot_id,))
            logger.info("lot_deleted", lot_id=lot_id)

    async def list_lots(
        self, inventory_id: int, has_remaining: bool = False
    ) -> list[Lot]:
        """List lots of an aggregate, newest first."""
        query = "SELECT * FROM lots WHERE inventory_id = ?"
        if has_remaining:
            query += " AND remaining_qty > 0"
        query += " ORDER BY purchase_date DESC, id DESC"
        async with get_connection() as conn:
            cursor = await conn.execute(query, (inventory_id,))
            rows = await cursor.fetchall()
            return [self._row_to_lot(row) for row in rows]

    async def get_latest_lot_number(self, prefix: str) -> str | None:
        """Highest lot number starting with prefix, if any."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT lot_number FROM lots
                WHERE lot_number LIKE ? || '%'
                ORDER BY lot_number DESC
                LIMIT 1
                """,
                (prefix,),
            )
            row = await cursor.fetchone()
            return row["lot_number"] if row else None

    @staticmethod
    def _row_to_aggregate(row: aiosqlite.Row) -> InventoryAggregate:
        """Convert a database row to an InventoryAggregate entity."""
        return InventoryAggregate(
            id=row["id"],
            catalog_item_id=row["catalog_item_id"],
            condition=row["condition"],
            quantity=row["quantity"],
            avg_purchase_price=row["avg_purchase_price"],
            total_purchased=row["total_purchased"],
            total_purchase_cost=row["total_purchase_cost"],
            total_expenses=row["total_expenses"],
            avg_expense_per_unit=row["avg_expense_per_unit"],
            market_price=row["market_price"],
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
        )

    @staticmethod
    def _row_to_lot(row: aiosqlite.Row) -> Lot:
        """Convert a database row to a Lot entity."""
        purchase_date = date.today()
        if row["purchase_date"]:
            try:
                purchase_date = date.fromisoformat(row["purchase_date"])
            except (ValueError, TypeError):
                pass

        return Lot(
            id=row["id"],
            lot_number=row["lot_number"],
            inventory_id=row["inventory_id"],
            quantity=row["quantity"],
            remaining_qty=row["remaining_qty"],
            unit_cost=row["unit_cost"],
            expenses=row["expenses"],
            unit_expense=row["unit_expense"],
            purchase_date=purchase_date,
            ledger_entry_id=row["ledger_entry_id"],
            notes=row["notes"],
            created_at=_parse_datetime(row["created_at"]),
        )
