"""Unit tests for database migrator."""

from pathlib import Path
from unittest.mock import patch

import aiosqlite
import pytest

from src.infrastructure.storage.sqlite.migrations.migrator import (
    REQUIRED_TABLES,
    MigrationInfo,
    create_backup,
    discover_migrations,
    get_applied_migrations,
    get_current_version,
    get_migration_status,
    initialize_database,
    restore_backup,
    select_pending,
    verify_schema_integrity,
)

MIGRATOR = "src.infrastructure.storage.sqlite.migrations.migrator"

MINIMAL_MIGRATION = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        version TEXT PRIMARY KEY,
        name TEXT,
        checksum TEXT,
        applied_at TEXT DEFAULT (datetime('now')),
        execution_time_ms INTEGER
    );
"""


async def _seed_stock(db_path: Path, quantity: int) -> None:
    """One aggregate with a purchase of 5, a direct sale of 1 and a pending hold of 2."""
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute(
            "INSERT INTO catalog_items (id, name, created_at) VALUES (1, 'Card', '2024-01-01')"
        )
        await conn.execute(
            """
            INSERT INTO inventory (id, catalog_item_id, condition, quantity,
                                   created_at, updated_at)
            VALUES (1, 1, 'NM', ?, '2024-01-01', '2024-01-01')
            """,
            (quantity,),
        )
        await conn.executemany(
            """
            INSERT INTO ledger_entries (inventory_id, type, quantity, unit_price,
                                        total_price, transaction_date, is_checkout,
                                        created_at)
            VALUES (1, ?, ?, 100, ?, '2024-01-01', ?, '2024-01-01')
            """,
            [("purchase", 5, 500, 0), ("sale", 1, 100, 0), ("sale", 9, 900, 1)],
        )
        await conn.execute(
            """
            INSERT INTO checkout_folders (id, name, created_at, updated_at)
            VALUES (1, 'Show', '2024-01-01', '2024-01-01')
            """
        )
        await conn.execute(
            """
            INSERT INTO checkout_items (folder_id, inventory_id, quantity, status,
                                        created_at, updated_at)
            VALUES (1, 1, 2, 'pending', '2024-01-01', '2024-01-01')
            """
        )
        await conn.commit()


class TestMigrationInfo:
    """Tests for MigrationInfo dataclass."""

    def test_from_file_parses_filename(self, tmp_path: Path):
        """from_file() parses version, name and a 16-char checksum."""
        migration_file = tmp_path / "v001_ledger_schema.sql"
        migration_file.write_text("SELECT 1;")

        info = MigrationInfo.from_file(migration_file)

        assert info.version == "001"
        assert info.name == "ledger_schema"
        assert info.path == migration_file
        assert len(info.checksum) == 16

    def test_different_content_different_checksum(self, tmp_path: Path):
        file1 = tmp_path / "v001_a.sql"
        file1.write_text("SELECT 1;")
        file2 = tmp_path / "v002_b.sql"
        file2.write_text("SELECT 2;")

        assert MigrationInfo.from_file(file1).checksum != MigrationInfo.from_file(file2).checksum

    def test_invalid_filename_raises(self, tmp_path: Path):
        invalid_file = tmp_path / "invalid_migration.sql"
        invalid_file.write_text("SELECT 1;")

        with pytest.raises(ValueError, match="Invalid migration filename"):
            MigrationInfo.from_file(invalid_file)


class TestAppliedMigrations:
    """Tests for get_applied_migrations() and get_current_version()."""

    async def test_empty_when_no_table(self, tmp_path: Path):
        async with aiosqlite.connect(tmp_path / "test.db") as conn:
            assert await get_applied_migrations(conn) == {}
            assert await get_current_version(conn) is None

    async def test_reads_applied_versions(self, tmp_path: Path):
        async with aiosqlite.connect(tmp_path / "test.db") as conn:
            await conn.execute(MINIMAL_MIGRATION)
            await conn.executemany(
                "INSERT INTO schema_migrations (version, checksum) VALUES (?, ?)",
                [("001", "abc"), ("002", "def")],
            )
            await conn.commit()

            assert await get_applied_migrations(conn) == {"001": "abc", "002": "def"}
            assert await get_current_version(conn) == "002"


class TestDiscoverMigrations:
    """Tests for discover_migrations()."""

    def test_ships_ledger_schema(self):
        """The packaged migrations start with the ledger schema."""
        migrations = discover_migrations()

        assert migrations[0].version == "001"
        assert migrations[0].name == "ledger_schema"

    def test_sorted_and_skips_invalid(self, tmp_path: Path):
        (tmp_path / "v002_second.sql").write_text("SELECT 2;")
        (tmp_path / "v001_first.sql").write_text("SELECT 1;")
        (tmp_path / "vx_invalid.sql").write_text("SELECT 3;")
        (tmp_path / "readme.txt").write_text("Not a migration")

        with patch(f"{MIGRATOR}.MIGRATIONS_DIR", tmp_path):
            result = discover_migrations()

        assert [m.version for m in result] == ["001", "002"]


class TestSelectPending:
    """Tests for select_pending()."""

    def _migrations(self, tmp_path: Path) -> list[MigrationInfo]:
        for version in ("001", "002", "003"):
            (tmp_path / f"v{version}_step.sql").write_text(f"SELECT {version};")
        return [MigrationInfo.from_file(p) for p in sorted(tmp_path.glob("v*.sql"))]

    def test_skips_applied(self, tmp_path: Path):
        migrations = self._migrations(tmp_path)
        applied = {"001": migrations[0].checksum}

        assert [m.version for m in select_pending(migrations, applied)] == ["002", "003"]

    def test_changed_migration_stops_the_list(self, tmp_path: Path):
        """Nothing after an edited, already-applied migration is run."""
        migrations = self._migrations(tmp_path)
        applied = {"001": migrations[0].checksum, "002": "edited"}

        assert select_pending(migrations, applied) == []


class TestBackup:
    """Tests for create_backup() and restore_backup()."""

    def test_backup_and_restore(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        db_path.write_text("original content")

        backup_path = create_backup(db_path)
        assert ".backup_" in backup_path.name

        db_path.write_text("corrupted")
        restore_backup(db_path, backup_path)

        assert db_path.read_text() == "original content"


class TestInitializeDatabase:
    """Tests for initialize_database()."""

    async def test_applies_ledger_schema(self, temp_db_path: Path):
        results = await initialize_database(temp_db_path, create_backup_before=False)

        assert [r.version for r in results] == ["001"]
        assert all(r.success for r in results)

        async with aiosqlite.connect(temp_db_path) as conn:
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in await cursor.fetchall()}
        assert set(REQUIRED_TABLES) <= tables

    async def test_skips_already_applied(self, temp_db_path: Path):
        await initialize_database(temp_db_path, create_backup_before=False)
        results = await initialize_database(temp_db_path, create_backup_before=False)

        assert results == []

    async def test_backup_cleaned_up_on_success(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("CREATE TABLE existing (id INTEGER)")
            await conn.commit()

        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "v001_init.sql").write_text(MINIMAL_MIGRATION)

        with patch(f"{MIGRATOR}.MIGRATIONS_DIR", migrations_dir):
            await initialize_database(db_path, create_backup_before=True)

        assert list(tmp_path.glob("*.backup_*.db")) == []

    async def test_failed_migration_stops(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "v001_init.sql").write_text(MINIMAL_MIGRATION)
        (migrations_dir / "v002_broken.sql").write_text("CREATE TABLE (;")
        (migrations_dir / "v003_never.sql").write_text("SELECT 1;")

        with patch(f"{MIGRATOR}.MIGRATIONS_DIR", migrations_dir):
            results = await initialize_database(db_path, create_backup_before=False)

        assert [r.success for r in results] == [True, False]
        assert results[1].error is not None


class TestGetMigrationStatus:
    """Tests for get_migration_status()."""

    async def test_missing_database(self, tmp_path: Path):
        result = await get_migration_status(tmp_path / "nonexistent.db")

        assert result["exists"] is False
        assert result["current_version"] is None

    async def test_up_to_date(self, initialized_db: Path):
        result = await get_migration_status(initialized_db)

        assert result["exists"] is True
        assert result["current_version"] == "001"
        assert result["pending_migrations"] == []


class TestVerifySchemaIntegrity:
    """Tests for verify_schema_integrity()."""

    async def test_fresh_schema_passes(self, initialized_db: Path):
        checks = await verify_schema_integrity(initialized_db)

        assert {c["check"]: c["status"] for c in checks} == {
            "foreign_keys": "PASS",
            "integrity": "PASS",
            "required_tables": "PASS",
            "lot_remainders": "PASS",
            "checkout_links": "PASS",
            "quantity_invariant": "PASS",
        }

    async def test_consistent_stock_passes(self, initialized_db: Path):
        """5 purchased - 1 sold - 2 held = 2; checkout sales are not subtracted."""
        await _seed_stock(initialized_db, quantity=2)

        checks = await verify_schema_integrity(initialized_db)

        invariant = next(c for c in checks if c["check"] == "quantity_invariant")
        assert invariant["status"] == "PASS"

    async def test_drifted_stock_fails(self, initialized_db: Path):
        await _seed_stock(initialized_db, quantity=4)

        checks = await verify_schema_integrity(initialized_db)

        invariant = next(c for c in checks if c["check"] == "quantity_invariant")
        assert invariant["status"] == "FAIL"
        assert invariant["drifted"] == [{"inventory_id": 1, "quantity": 4, "expected": 2}]

    async def test_missing_tables_stop_early(self, tmp_path: Path):
        db_path = tmp_path / "bare.db"
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute(MINIMAL_MIGRATION)
            await conn.commit()

        checks = await verify_schema_integrity(db_path)

        tables_check = next(c for c in checks if c["check"] == "required_tables")
        assert tables_check["status"] == "FAIL"
        assert "ledger_entries" in tables_check["missing"]
        assert all(c["check"] != "quantity_invariant" for c in checks)

    async def test_unlinked_sold_item_fails(self, initialized_db: Path):
        await _seed_stock(initialized_db, quantity=2)
        async with aiosqlite.connect(initialized_db) as conn:
            await conn.execute("UPDATE checkout_items SET status = 'sold'")
            await conn.commit()

        checks = await verify_schema_integrity(initialized_db)

        links = next(c for c in checks if c["check"] == "checkout_links")
        assert links["status"] == "FAIL"
        assert links["item_ids"] == [1]
