"""Shared pytest fixtures for all tests."""

import pytest

from shareserver.database import init_database
from shareserver.repositories.share_repository import ShareRepository


@pytest.fixture
def test_db(monkeypatch, tmp_path):
    """
    Create a temporary metadata database for each test.
    """
    db_path = tmp_path / "test.db"
    monkeypatch.setattr("shareserver.database.DATABASE_PATH", str(db_path))
    monkeypatch.setattr("shareserver.config.DATABASE_PATH", str(db_path))
    init_database()
    return db_path


@pytest.fixture
def share_dir(monkeypatch, tmp_path):
    """
    Point share storage at a temporary directory.

    Returns:
        Path to the temporary shares root
    """
    shares = tmp_path / "shares"
    monkeypatch.setattr("filestore.share_storage.SHARES_DIR", shares)
    return shares


@pytest.fixture
def small_chunks(monkeypatch):
    """
    Use 5 byte chunks and a 100 byte default share limit.
    """
    monkeypatch.setattr("shareserver.config.CHUNK_SIZE", 5)
    monkeypatch.setattr("shareserver.config.MAX_SHARE_SIZE", 100)


@pytest.fixture
def share(test_db, share_dir, small_chunks):
    """
    An open share with no files.
    """
    return ShareRepository.create_share("test-share")
