"""
Pytest configuration and shared fixtures.

Sample pages live in tests/pages.py; call-counting fakes in tests/fakes.py.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from glossword.db import CacheStore, PermanentDelete, TrashDirectory
from glossword.pipeline.types import RawDocument
from glossword.settings import Settings
from tests.fakes import CountingExtractor, FakeConverter, SpyStore
from tests.pages import DEFINITION_PAGE, ETYMOLOGY_PAGE, SUGGESTIONS_PAGE


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests that need the real pandoc binary (deselect with '-m \"not integration\"')",
    )


# ============================================================================
# SAMPLE PAGES
# ============================================================================


@pytest.fixture
def definition_doc() -> RawDocument:
    return RawDocument(html=DEFINITION_PAGE, source_url="https://www.thefreedictionary.com/lighthouse")


@pytest.fixture
def etymology_doc() -> RawDocument:
    return RawDocument(html=ETYMOLOGY_PAGE, source_url="https://www.etymonline.com/word/forest")


@pytest.fixture
def suggestions_doc() -> RawDocument:
    return RawDocument(html=SUGGESTIONS_PAGE, source_url="https://www.thefreedictionary.com/lighthose")


# ============================================================================
# STORE AND SETTINGS FIXTURES
# ============================================================================


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path for isolated testing.

    Uses pytest's tmp_path which is automatically cleaned up after tests.
    """
    return tmp_path / "cache" / "entries.sqlite3"


@pytest.fixture
def store(temp_db_path: Path) -> CacheStore:
    return CacheStore(temp_db_path, deletion=PermanentDelete())


@pytest.fixture
def trash_store(tmp_path: Path, temp_db_path: Path) -> CacheStore:
    return CacheStore(temp_db_path, deletion=TrashDirectory(tmp_path / "trash"))


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(data_dir=tmp_path / "data")


# ============================================================================
# FAKE COLLABORATORS
# ============================================================================


@pytest.fixture
def spy_store(store: CacheStore) -> SpyStore:
    return SpyStore(store)


@pytest.fixture
def fake_converter() -> FakeConverter:
    return FakeConverter()


@pytest.fixture
def counting_extractor() -> CountingExtractor:
    return CountingExtractor()
