import pytest

from database.db_manager import DatabaseManager
from utils.errors import InternalError, InvalidInputError


def _count_banks(db) -> int:
    with db.unit_of_work() as conn:
        return conn.execute("SELECT COUNT(*) FROM banks").fetchone()[0]


class TestUnitOfWork:
    """Tests for commit, rollback and nesting."""

    def test_commits_on_success(self, db):
        with db.unit_of_work() as conn:
            conn.execute("INSERT INTO banks(name) VALUES ('Fio')")
        assert _count_banks(db) == 1

    def test_rolls_back_on_error(self, db):
        with pytest.raises(InvalidInputError):
            with db.unit_of_work() as conn:
                conn.execute("INSERT INTO banks(name) VALUES ('Fio')")
                raise InvalidInputError("stop")
        assert _count_banks(db) == 0

    def test_nested_failure_rolls_back_outer_work(self, db):
        with pytest.raises(ValueError):
            with db.unit_of_work() as conn:
                conn.execute("INSERT INTO banks(name) VALUES ('Outer')")
                with db.unit_of_work() as inner:
                    inner.execute("INSERT INTO banks(name) VALUES ('Inner')")
                raise ValueError("late failure")
        assert _count_banks(db) == 0

    def test_initialize_is_idempotent(self, db):
        db.initialize()
        with db.unit_of_work() as conn:
            count = conn.execute("SELECT COUNT(*) FROM categories WHERE is_system = 1").fetchone()[0]
        assert count == 3


class TestSettings:
    """Tests for the key/value settings table."""

    def test_defaults_are_seeded(self, db):
        assert db.get_setting("default_currency") == "CZK"

    def test_missing_key_returns_default(self, db):
        assert db.get_setting("nope", "fallback") == "fallback"

    def test_set_overwrites(self, db):
        db.set_setting("appearance_mode", "dark")
        assert db.get_setting("appearance_mode") == "dark"


class TestLifecycle:
    """Tests for the store's open/closed state."""

    def test_closed_store_raises(self):
        db = DatabaseManager(":memory:")
        db.initialize()
        db.close()
        with pytest.raises(InternalError):
            db.get_setting("default_currency")

    def test_file_store_persists(self, tmp_path):
        path = str(tmp_path / "ledger.db")
        first = DatabaseManager(path)
        first.initialize()
        first.set_setting("default_currency", "EUR")
        first.close()

        second = DatabaseManager(path)
        second.initialize()
        try:
            assert second.get_setting("default_currency") == "EUR"
        finally:
            second.close()
