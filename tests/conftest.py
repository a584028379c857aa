"""Shared fixtures for the legacy migration tests."""

import shutil
from pathlib import Path

import pytest

from legacy_migration.database import get_engine
from legacy_migration.models.migration import MigrationConfig, MigrationLog

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_dump_path(tmp_path: Path) -> Path:
    """A private copy of the sample dump."""
    target = tmp_path / "legacy_dump.sql"
    shutil.copy(FIXTURES_DIR / "legacy_dump.sql", target)
    return target


@pytest.fixture
def write_dump(tmp_path: Path):
    """Write dump text to a file and return its path."""
    def _write(text: str, name: str = "dump.sql") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'destination.db'}"


@pytest.fixture
def engine(database_url: str):
    engine = get_engine(database_url)
    yield engine
    engine.dispose()


@pytest.fixture
def config(sample_dump_path: Path, database_url: str) -> MigrationConfig:
    return MigrationConfig(
        dump_path=str(sample_dump_path),
        database_url=database_url,
    )


@pytest.fixture
def log() -> MigrationLog:
    return MigrationLog()
