"""SQLite-backed catalog registry."""

from datetime import UTC, datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.catalog import CatalogItem, CostingPolicy
from src.core.interfaces.catalog import ICatalogRegistry
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


class SQLiteCatalogRegistry(ICatalogRegistry):
    """Reads catalog items and their costing policy from catalog_items."""

    async def get_item(self, item_id: int) -> CatalogItem | None:
        """Get catalog item by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM catalog_items WHERE id = ?", (item_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_item(row)

    async def register_item(self, item: CatalogItem) -> CatalogItem:
        """Register a catalog item."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO catalog_items (name, category, costing_policy, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    item.name,
                    item.category,
                    item.costing_policy.value,
                    item.created_at.isoformat(),
                ),
            )
            item = item.model_copy(update={"id": cursor.lastrowid})
            logger.info(
                "catalog_item_registered",
                item_id=item.id,
                costing_policy=item.costing_policy.value,
            )
            return item

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> CatalogItem:
        """Convert a database row to a CatalogItem entity."""
        created_at = datetime.now(UTC)
        if row["created_at"]:
            try:
                created_at = datetime.fromisoformat(row["created_at"])
            except (ValueError, TypeError):
                pass

        return CatalogItem(
            id=row["id"],
            name=row["name"],
            category=row["category"],
            costing_policy=CostingPolicy(row["costing_policy"]),
            created_at=created_at,
        )
