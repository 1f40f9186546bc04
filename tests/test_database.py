"""
Tests for database.py - SQLite cache storage.
"""

import pytest
from sqlalchemy import inspect

from companycheck.database import SqliteStorage, init_database
from companycheck.storage import StorageError


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, tmp_path):
        db_path = tmp_path / "test.db"
        assert not db_path.exists()

        init_database(db_path)

        assert db_path.exists()

    def test_init_creates_tables(self, tmp_path):
        db_path = tmp_path / "test.db"
        engine = init_database(db_path)

        assert inspect(engine).has_table("cache_entries")
        assert SqliteStorage(db_path).keys() == []

    def test_init_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "test.db"
        assert not db_path.parent.exists()

        init_database(db_path)

        assert db_path.exists()


class TestSqliteStorage:
    """Test key/value operations on the SQLite backend."""

    @pytest.fixture
    def storage(self, tmp_path):
        return SqliteStorage(tmp_path / "cache.db")

    def test_lazy_creation(self, tmp_path):
        db_path = tmp_path / "lazy.db"
        storage = SqliteStorage(db_path)
        assert not db_path.exists()
        assert storage.get_item("k") is None
        assert db_path.exists()

    def test_set_get(self, storage):
        storage.set_item("k", '{"data": 1}')
        assert storage.get_item("k") == '{"data": 1}'

    def test_overwrite(self, storage):
        storage.set_item("k", "old")
        storage.set_item("k", "new")
        assert storage.get_item("k") == "new"
        assert storage.keys() == ["k"]

    def test_remove(self, storage):
        storage.set_item("a", "1")
        storage.set_item("b", "2")
        storage.remove_item("a")
        assert storage.get_item("a") is None
        assert storage.keys() == ["b"]

    def test_remove_missing_key(self, storage):
        storage.remove_item("nope")
        assert storage.keys() == []

    def test_persists_across_instances(self, tmp_path):
        db_path = tmp_path / "cache.db"
        SqliteStorage(db_path).set_item("k", "v")

        assert SqliteStorage(db_path).get_item("k") == "v"

    def test_unopenable_database_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        storage = SqliteStorage(blocker / "cache.db")
        with pytest.raises(StorageError):
            storage.get_item("k")
