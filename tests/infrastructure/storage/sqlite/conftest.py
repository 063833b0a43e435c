"""Pytest fixtures for SQLite storage tests."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def initialized_db(temp_db_path: Path) -> AsyncGenerator[Path, None]:
    """Create a temporary database with the full ledger schema applied."""
    await initialize_database(temp_db_path, create_backup_before=False)
    yield temp_db_path


@pytest.fixture
def mock_settings(temp_db_path: Path) -> MagicMock:
    """Settings mock pointing storage at the temporary database."""
    settings = MagicMock()
    settings.storage.db_path = temp_db_path
    settings.storage.pool_size = 2
    settings.storage.busy_timeout = 5000
    settings.storage.acquire_timeout = 5.0
    return settings
