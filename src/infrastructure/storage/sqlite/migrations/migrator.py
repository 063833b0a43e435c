"""
Database schema migrator with versioned migrations.

Supports:
- Versioned SQL migrations (v001_, v002_, etc.) tracked in schema_migrations
- Backup before migrating, restore when a migration blows up
- Integrity checks: SQLite itself, required tables, lot remainders,
  checkout links and the stock quantity invariant
"""

import asyncio
import hashlib
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from src.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

REQUIRED_TABLES = (
    "catalog_items",
    "inventory",
    "lots",
    "ledger_entries",
    "checkout_folders",
    "checkout_items",
    "history",
    "schema_migrations",
)


@dataclass
class MigrationInfo:
    """Information about a migration file."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        """Parse migration info from a v001_name.sql filename."""
        match = re.match(r"v(\d+)_(.+)\.sql", path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")

        content = path.read_text(encoding="utf-8")
        return cls(
            version=match.group(1),
            name=match.group(2),
            path=path,
            checksum=hashlib.sha256(content.encode()).hexdigest()[:16],
        )


@dataclass
class MigrationResult:
    """Result of a migration operation."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied migration versions mapped to their checksums."""
    try:
        cursor = await conn.execute(
            "SELECT version, checksum FROM schema_migrations ORDER BY version"
        )
        return {row[0]: row[1] for row in await cursor.fetchall()}
    except aiosqlite.OperationalError:
        # Table doesn't exist yet
        return {}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    try:
        cursor = await conn.execute(
            "SELECT version FROM schema_migrations ORDER BY version DESC LIMIT 1"
        )
        row = await cursor.fetchone()
        return row[0] if row else None
    except aiosqlite.OperationalError:
        return None


def discover_migrations() -> list[MigrationInfo]:
    """Migration files in version order; badly named files are skipped."""
    migrations = []
    for path in sorted(MIGRATIONS_DIR.glob("v*.sql")):
        try:
            migrations.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return migrations


def select_pending(
    migrations: list[MigrationInfo], applied: dict[str, str]
) -> list[MigrationInfo]:
    """
    Migrations still to run, in order.

    An applied migration whose file has changed since stops the list there:
    everything after it was written against the schema it promised.
    """
    pending = []
    for migration in migrations:
        checksum = applied.get(migration.version)
        if checksum is None:
            pending.append(migration)
        elif checksum != migration.checksum:
            logger.error(
                "migration_checksum_changed",
                version=migration.version,
                applied=checksum,
                current=migration.checksum,
            )
            break
    return pending


async def apply_migration(
    conn: aiosqlite.Connection,
    migration: MigrationInfo,
) -> MigrationResult:
    """Run one migration script and record it in schema_migrations."""
    logger.info("applying_migration", version=migration.version, name=migration.name)
    start_time = time.time()

    try:
        await conn.executescript(migration.path.read_text(encoding="utf-8"))
        elapsed = int((time.time() - start_time) * 1000)
        await conn.execute(
            """
            INSERT OR REPLACE INTO schema_migrations (version, name, checksum, execution_time_ms)
            VALUES (?, ?, ?, ?)
            """,
            (migration.version, migration.name, migration.checksum, elapsed),
        )
        await conn.commit()

        # A migration must leave every foreign key satisfied
        cursor = await conn.execute("PRAGMA foreign_key_check")
        violations = await cursor.fetchall()
        if violations:
            raise RuntimeError(f"{len(violations)} foreign key violation(s) after migration")

    except Exception as e:
        await conn.rollback()
        logger.error(
            "migration_failed",
            version=migration.version,
            name=migration.name,
            error=str(e),
        )
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=False,
            execution_time_ms=int((time.time() - start_time) * 1000),
            error=str(e),
        )

    execution_time = int((time.time() - start_time) * 1000)
    logger.info(
        "migration_applied",
        version=migration.version,
        name=migration.name,
        execution_time_ms=execution_time,
    )
    return MigrationResult(
        version=migration.version,
        name=migration.name,
        success=True,
        execution_time_ms=execution_time,
    )


def create_backup(db_path: Path) -> Path:
    """Copy the database next to itself before migrating."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{timestamp}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    shutil.copy2(backup_path, db_path)
    logger.info("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Apply all pending migrations.

    Stops at the first failed migration. The backup (taken only when the
    database already exists) is removed once every migration succeeded and
    restored if migrating raised.

    Args:
        db_path: Path to database file (default from settings)
        create_backup_before: Whether to backup before migrations

    Returns:
        One result per migration attempted; empty when already up to date
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("initializing_database", db_path=str(db_path))

    backup_path = None
    if create_backup_before and db_path.exists():
        backup_path = create_backup(db_path)

    results: list[MigrationResult] = []

    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")

            pending = select_pending(discover_migrations(), await get_applied_migrations(conn))
            if not pending:
                logger.info("database_up_to_date", version=await get_current_version(conn))

            for migration in pending:
                result = await apply_migration(conn, migration)
                results.append(result)
                if not result.success:
                    logger.error("migration_failed_stopping", version=migration.version)
                    break

        if backup_path and all(r.success for r in results):
            backup_path.unlink()
            logger.info("backup_cleaned_up")

    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        if backup_path and backup_path.exists():
            restore_backup(db_path, backup_path)
        raise

    return results


async def get_migration_status(db_path: Path | None = None) -> dict:
    """Current version plus applied and pending migration versions."""
    db_path = db_path or get_settings().storage.db_path

    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": [],
        }

    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)
        discovered = discover_migrations()
        return {
            "exists": True,
            "current_version": await get_current_version(conn),
            "applied_migrations": list(applied),
            "pending_migrations": [m.version for m in discovered if m.version not in applied],
            "total_migrations": len(discovered),
        }


async def _check_lot_remainders(conn: aiosqlite.Connection) -> dict:
    """Lots never hold more than they were bought with."""
    cursor = await conn.execute(
        "SELECT id FROM lots WHERE remaining_qty > quantity OR remaining_qty < 0"
    )
    bad_lots = [row[0] for row in await cursor.fetchall()]
    return {
        "check": "lot_remainders",
        "status": "PASS" if not bad_lots else "FAIL",
        "lot_ids": bad_lots,
    }


async def _check_checkout_links(conn: aiosqlite.Connection) -> dict:
    """Sold and converted items point at the ledger entry they produced."""
    cursor = await conn.execute(
        """
        SELECT id FROM checkout_items
        WHERE status IN ('sold', 'converted') AND ledger_entry_id IS NULL
        """
    )
    unlinked = [row[0] for row in await cursor.fetchall()]
    return {
        "check": "checkout_links",
        "status": "PASS" if not unlinked else "FAIL",
        "item_ids": unlinked,
    }


async def _check_quantity_invariant(conn: aiosqlite.Connection) -> dict:
    """quantity = purchased - direct sales - units held by checkouts."""
    cursor = await conn.execute(
        """
        SELECT i.id, i.quantity,
            COALESCE((SELECT SUM(quantity) FROM ledger_entries
                      WHERE inventory_id = i.id AND type = 'purchase'), 0)
          - COALESCE((SELECT SUM(quantity) FROM ledger_entries
                      WHERE inventory_id = i.id AND type = 'sale'
                        AND is_checkout = 0), 0)
          - COALESCE((SELECT SUM(quantity) FROM checkout_items
                      WHERE inventory_id = i.id
                        AND status IN ('pending', 'sold', 'converted')), 0)
            AS expected
        FROM inventory i
        """
    )
    drifted = [
        {"inventory_id": row[0], "quantity": row[1], "expected": row[2]}
        for row in await cursor.fetchall()
        if row[1] != row[2]
    ]
    return {
        "check": "quantity_invariant",
        "status": "PASS" if not drifted else "FAIL",
        "drifted": drifted,
    }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """
    Check the database and the stock it records.

    The stock checks only run once every required table exists.

    Returns:
        One dict per check with "check", "status" (PASS/FAIL) and details
    """
    db_path = db_path or get_settings().storage.db_path
    checks = []

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA foreign_key_check")
        fk_violations = await cursor.fetchall()
        checks.append({
            "check": "foreign_keys",
            "status": "PASS" if not fk_violations else "FAIL",
            "violations": len(fk_violations),
        })

        cursor = await conn.execute("PRAGMA integrity_check")
        integrity = await cursor.fetchone()
        checks.append({
            "check": "integrity",
            "status": "PASS" if integrity[0] == "ok" else "FAIL",
            "result": integrity[0],
        })

        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        existing_tables = {row[0] for row in await cursor.fetchall()}
        missing = [t for t in REQUIRED_TABLES if t not in existing_tables]
        checks.append({
            "check": "required_tables",
            "status": "PASS" if not missing else "FAIL",
            "missing": missing,
        })
        if missing:
            return checks

        for check in (_check_lot_remainders, _check_checkout_links, _check_quantity_invariant):
            checks.append(await check(conn))

    failed = [c["check"] for c in checks if c["status"] != "PASS"]
    if failed:
        logger.warning("integrity_check_failed", db_path=str(db_path), failed=failed)
    return checks


def main() -> None:
    """CLI entry point: migrate, or report status / integrity."""
    import argparse

    parser = argparse.ArgumentParser(description="Stockbook database migrator")
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    parser.add_argument("--status", action="store_true", help="Show migration status")
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Verify schema integrity and the stock quantity invariant",
    )
    parser.add_argument("--no-backup", action="store_true", help="Skip backup before migrations")
    args = parser.parse_args()

    async def run() -> int:
        if args.status:
            status = await get_migration_status(args.db_path)
            print(f"Database exists: {status['exists']}")
            print(f"Current version: {status.get('current_version') or 'N/A'}")
            print(f"Applied migrations: {status.get('applied_migrations', [])}")
            print(f"Pending migrations: {status.get('pending_migrations', [])}")
            return 0

        if args.verify:
            checks = await verify_schema_integrity(args.db_path)
            for check in checks:
                print(f"[{check['status']}] {check['check']}")
                if check["status"] != "PASS":
                    for key, value in check.items():
                        if key not in ("check", "status"):
                            print(f"       {key}: {value}")
            return 0 if all(c["status"] == "PASS" for c in checks) else 1

        results = await initialize_database(
            args.db_path,
            create_backup_before=not args.no_backup,
        )
        for result in results:
            status = "SUCCESS" if result.success else "FAILED"
            print(f"[{status}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
            if result.error:
                print(f"         Error: {result.error}")
        return 0 if all(r.success for r in results) else 1

    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
