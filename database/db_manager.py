import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from utils.constants import DB_FILE, DEFAULT_CATEGORIES, DEFAULT_SETTINGS
from utils.errors import (
    DatabaseError, InternalError, InvalidInputError, LedgerError, StorageIOError,
)

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the single store connection and the lock that serializes access to it.

    Every read or write goes through unit_of_work(); DAOs never commit.
    """

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._depth = 0
        self._closed = False

    def get_connection(self) -> sqlite3.Connection:
        if self._closed:
            raise InternalError("Database is closed.")
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.execute("PRAGMA journal_mode = WAL")
            logger.debug(f"Opened database {self.db_path}")
        return self._conn

    @contextmanager
    def unit_of_work(self) -> Iterator[sqlite3.Connection]:
        """Hold the store lock; commit on outermost exit, roll back on any exception.

        Re-entrant: nested scopes on the same thread join the outer one.
        """
        with self._lock:
            conn = self.get_connection()
            self._depth += 1
            try:
                yield conn
            except Exception as e:
                if self._depth == 1:
                    conn.rollback()
                    if isinstance(e, LedgerError):
                        logger.warning(f"Rolled back unit of work: {e}")
                    else:
                        logger.error(f"Rolled back unit of work: {e}", exc_info=True)
                if isinstance(e, sqlite3.Error):
                    raise DatabaseError(str(e)) from e
                raise
            else:
                if self._depth == 1:
                    try:
                        conn.commit()
                    except sqlite3.Error as e:
                        conn.rollback()
                        raise DatabaseError(str(e)) from e
            finally:
                self._depth -= 1

    def initialize(self):
        """Create schema and seed defaults."""
        with self.unit_of_work() as conn:
            self._create_schema(conn)
            self._migrate_schema(conn)
            self._seed_defaults(conn)
        logger.info(f"Database ready at {self.db_path}")

    def _migrate_schema(self, conn: sqlite3.Connection):
        """Idempotent ALTER TABLE for columns added after initial release."""
        cols = {row[1] for row in conn.execute("PRAGMA table_info(accounts)").fetchall()}
        added = {
            "credit_limit": "REAL",
            "is_premium": "INTEGER NOT NULL DEFAULT 0",
            "premium_min_flow": "REAL",
        }
        for name, decl in added.items():
            if name not in cols:
                logger.debug(f"Adding accounts.{name}")
                conn.execute(f"ALTER TABLE accounts ADD COLUMN {name} {decl}")

        cols = {row[1] for row in conn.execute("PRAGMA table_info(fixed_expenses)").fetchall()}
        if "account_id" not in cols:
            logger.debug("Adding fixed_expenses.account_id")
            conn.execute(
                "ALTER TABLE fixed_expenses ADD COLUMN account_id INTEGER "
                "REFERENCES accounts(id) ON DELETE SET NULL"
            )

    def _create_schema(self, conn: sqlite3.Connection):
        # executescript() would COMMIT the surrounding unit of work, so run statements one by one
        for statement in _SCHEMA.split(";"):
            if statement.strip():
                conn.execute(statement)

    def _seed_defaults(self, conn: sqlite3.Connection):
        for key, value in DEFAULT_SETTINGS:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

        for cat in DEFAULT_CATEGORIES:
            conn.execute(
                """INSERT OR IGNORE INTO categories(name, category_type, color_hex, is_system)
                   VALUES (?, ?, ?, ?)""",
                (cat["name"], cat["category_type"], cat["color_hex"], cat["is_system"]),
            )

    def get_setting(self, key: str, default: str = "") -> str:
        with self.unit_of_work() as conn:
            row = conn.execute(
                "SELECT value FROM app_settings WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str):
        with self.unit_of_work() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    # ── raw file copy ─────────────────────────────────────────────────────────

    def export_to(self, dest_path: str):
        """Copy the whole live database into dest_path (SQLite online backup)."""
        with self.unit_of_work() as conn:
            conn.commit()
            try:
                dest = sqlite3.connect(dest_path)
            except sqlite3.Error as e:
                raise StorageIOError(f"Cannot open {dest_path}: {e}") from e
            try:
                conn.backup(dest)
            except sqlite3.Error as e:
                raise StorageIOError(f"Cannot write {dest_path}: {e}") from e
            finally:
                dest.close()
        logger.info(f"Exported database to {dest_path}")

    def import_from(self, src_path: str) -> str | None:
        """Replace the live database with the contents of src_path.

        The current contents are first saved to '<db>.backup' (file-backed
        stores only); returns that path.
        """
        src_file = Path(src_path)
        if not src_file.is_file():
            raise StorageIOError(f"{src_path} does not exist.")

        try:
            src = sqlite3.connect(str(src_file))
        except sqlite3.Error as e:
            raise StorageIOError(f"Cannot open {src_path}: {e}") from e
        try:
            try:
                found = src.execute(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name='accounts'"
                ).fetchone()
            except sqlite3.DatabaseError as e:
                raise InvalidInputError(f"{src_path} is not a ledger database: {e}") from e
            if not found:
                raise InvalidInputError(f"{src_path} is not a ledger database.")

            with self.unit_of_work() as conn:
                conn.commit()
                backup_path = None
                if self.db_path != ":memory:":
                    backup_path = f"{self.db_path}.backup"
                    safety = sqlite3.connect(backup_path)
                    try:
                        conn.backup(safety)
                    except sqlite3.Error as e:
                        raise StorageIOError(f"Cannot write {backup_path}: {e}") from e
                    finally:
                        safety.close()
                src.backup(conn)
                self._create_schema(conn)
                self._migrate_schema(conn)
                self._seed_defaults(conn)
        finally:
            src.close()
        logger.info(f"Imported database from {src_path} (previous copy: {backup_path})")
        return backup_path

    def close(self):
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
            self._closed = True


_SCHEMA = """
    CREATE TABLE IF NOT EXISTS household_members (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        name        TEXT NOT NULL,
        color       TEXT NOT NULL DEFAULT '#3B82F6',
        avatar      TEXT,
        created_at  TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE TABLE IF NOT EXISTS banks (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        name        TEXT NOT NULL UNIQUE,
        color       TEXT NOT NULL DEFAULT '#10B981',
        notes       TEXT,
        active      INTEGER NOT NULL DEFAULT 1,
        created_at  TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE TABLE IF NOT EXISTS accounts (
        id               INTEGER PRIMARY KEY AUTOINCREMENT,
        name             TEXT NOT NULL,
        account_type     TEXT NOT NULL DEFAULT 'checking',
        bank_id          INTEGER REFERENCES banks(id) ON DELETE SET NULL,
        owner_member_id  INTEGER REFERENCES household_members(id) ON DELETE SET NULL,
        account_number   TEXT,
        currency         TEXT NOT NULL DEFAULT 'CZK',
        initial_balance  REAL NOT NULL DEFAULT 0.0,
        current_balance  REAL NOT NULL DEFAULT 0.0,
        color            TEXT,
        credit_limit     REAL,
        is_premium       INTEGER NOT NULL DEFAULT 0,
        premium_min_flow REAL,
        active           INTEGER NOT NULL DEFAULT 1,
        created_at       TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE INDEX IF NOT EXISTS idx_accounts_bank   ON accounts(bank_id);
    CREATE INDEX IF NOT EXISTS idx_accounts_active ON accounts(active);

    CREATE TABLE IF NOT EXISTS categories (
        id             INTEGER PRIMARY KEY AUTOINCREMENT,
        name           TEXT NOT NULL UNIQUE,
        category_type  TEXT NOT NULL CHECK(category_type IN ('income','expense','both')),
        color_hex      TEXT NOT NULL DEFAULT '#6B7280',
        is_system      INTEGER NOT NULL DEFAULT 0
    );

    CREATE TABLE IF NOT EXISTS flow_groups (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        name        TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        color       TEXT NOT NULL DEFAULT '#F59E0B',
        created_at  TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE TABLE IF NOT EXISTS recurring_payments (
        id                  INTEGER PRIMARY KEY AUTOINCREMENT,
        name                TEXT NOT NULL,
        amount              REAL NOT NULL,
        currency            TEXT NOT NULL DEFAULT 'CZK',
        frequency           TEXT NOT NULL,
        frequency_value     INTEGER NOT NULL DEFAULT 1,
        day_of_period       INTEGER,
        account_id          INTEGER NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
        category_id         INTEGER REFERENCES categories(id) ON DELETE SET NULL,
        description         TEXT NOT NULL DEFAULT '',
        active              INTEGER NOT NULL DEFAULT 1,
        next_execution_date TEXT,
        last_execution_date TEXT,
        created_at          TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at          TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE INDEX IF NOT EXISTS idx_recurring_next_date ON recurring_payments(next_execution_date);

    CREATE TABLE IF NOT EXISTS transactions (
        id                   INTEGER PRIMARY KEY AUTOINCREMENT,
        date                 TEXT NOT NULL,
        amount               REAL NOT NULL CHECK(amount >= 0),
        currency             TEXT NOT NULL DEFAULT 'CZK',
        type                 TEXT NOT NULL CHECK(type IN ('expense','income','transfer')),
        from_account_id      INTEGER REFERENCES accounts(id) ON DELETE SET NULL,
        to_account_id        INTEGER REFERENCES accounts(id) ON DELETE SET NULL,
        category_id          INTEGER REFERENCES categories(id) ON DELETE SET NULL,
        description          TEXT NOT NULL DEFAULT '',
        notes                TEXT NOT NULL DEFAULT '',
        status               TEXT NOT NULL DEFAULT 'completed'
                             CHECK(status IN ('completed','planned')),
        recurring_payment_id INTEGER REFERENCES recurring_payments(id) ON DELETE SET NULL,
        flow_group_id        INTEGER REFERENCES flow_groups(id) ON DELETE SET NULL,
        created_at           TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at           TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE INDEX IF NOT EXISTS idx_transactions_date     ON transactions(date);
    CREATE INDEX IF NOT EXISTS idx_transactions_from     ON transactions(from_account_id);
    CREATE INDEX IF NOT EXISTS idx_transactions_to       ON transactions(to_account_id);
    CREATE INDEX IF NOT EXISTS idx_transactions_category ON transactions(category_id);

    CREATE TABLE IF NOT EXISTS savings_goals (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        name            TEXT NOT NULL,
        target_amount   REAL NOT NULL CHECK(target_amount > 0),
        current_amount  REAL NOT NULL DEFAULT 0.0,
        currency        TEXT NOT NULL DEFAULT 'CZK',
        account_id      INTEGER REFERENCES accounts(id) ON DELETE SET NULL,
        deadline        TEXT,
        active          INTEGER NOT NULL DEFAULT 1,
        created_at      TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at      TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE TABLE IF NOT EXISTS goal_movements (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        goal_id     INTEGER REFERENCES savings_goals(id) ON DELETE SET NULL,
        kind        TEXT NOT NULL CHECK(kind IN ('deposit','withdrawal')),
        amount      REAL NOT NULL CHECK(amount > 0),
        date        TEXT NOT NULL,
        account_id  INTEGER REFERENCES accounts(id) ON DELETE SET NULL,
        created_at  TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE TABLE IF NOT EXISTS member_incomes (
        id           INTEGER PRIMARY KEY AUTOINCREMENT,
        member_id    INTEGER NOT NULL REFERENCES household_members(id) ON DELETE CASCADE,
        name         TEXT NOT NULL,
        amount       REAL NOT NULL,
        frequency    TEXT NOT NULL DEFAULT 'monthly',
        day_of_month INTEGER,
        account_id   INTEGER REFERENCES accounts(id) ON DELETE SET NULL,
        is_active    INTEGER NOT NULL DEFAULT 1,
        created_at   TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at   TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE TABLE IF NOT EXISTS scheduled_transfers (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        name            TEXT NOT NULL,
        from_account_id INTEGER NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
        to_account_id   INTEGER NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
        amount          REAL NOT NULL,
        day_of_month    INTEGER NOT NULL,
        description     TEXT,
        category        TEXT,
        display_order   INTEGER NOT NULL DEFAULT 0,
        is_active       INTEGER NOT NULL DEFAULT 1,
        created_at      TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at      TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE TABLE IF NOT EXISTS fixed_expenses (
        id           INTEGER PRIMARY KEY AUTOINCREMENT,
        name         TEXT NOT NULL,
        amount       REAL NOT NULL,
        category     TEXT NOT NULL,
        frequency    TEXT NOT NULL DEFAULT 'monthly',
        day_of_month INTEGER,
        account_id   INTEGER REFERENCES accounts(id) ON DELETE SET NULL,
        assigned_to  TEXT,
        is_active    INTEGER NOT NULL DEFAULT 1,
        notes        TEXT,
        created_at   TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at   TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE TABLE IF NOT EXISTS budget_categories (
        id            INTEGER PRIMARY KEY AUTOINCREMENT,
        name          TEXT NOT NULL,
        budget_type   TEXT NOT NULL,
        monthly_limit REAL NOT NULL DEFAULT 0.0,
        color         TEXT NOT NULL DEFAULT '#6B7280',
        icon          TEXT,
        assigned_to   TEXT,
        created_at    TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at    TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE TABLE IF NOT EXISTS app_settings (
        key   TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
"""
