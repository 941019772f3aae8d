from typing import Optional
from database.db_manager import DatabaseManager
from models.account import Account, AccountInput


class AccountDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Account:
        return Account(
            id=row["id"],
            name=row["name"],
            account_type=row["account_type"],
            bank_id=row["bank_id"],
            owner_member_id=row["owner_member_id"],
            account_number=row["account_number"],
            currency=row["currency"],
            initial_balance=row["initial_balance"],
            current_balance=row["current_balance"],
            color=row["color"],
            credit_limit=row["credit_limit"],
            is_premium=bool(row["is_premium"]),
            premium_min_flow=row["premium_min_flow"],
            active=bool(row["active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_all(self, active_only: bool = False) -> list[Account]:
        conn = self._db.get_connection()
        sql = "SELECT * FROM accounts"
        if active_only:
            sql += " WHERE active = 1"
        rows = conn.execute(sql + " ORDER BY name, id").fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, account_id: int) -> Optional[Account]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM accounts WHERE id = ?", (account_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_bank(self, bank_id: int) -> list[Account]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM accounts WHERE bank_id = ? ORDER BY name, id", (bank_id,)
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def exists(self, account_id: int) -> bool:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT 1 FROM accounts WHERE id = ?", (account_id,)
        ).fetchone()
        return row is not None

    def create(self, data: AccountInput) -> Account:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO accounts
               (name, account_type, bank_id, owner_member_id, account_number, currency,
                initial_balance, current_balance, color, credit_limit, is_premium,
                premium_min_flow, active)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                data.name, data.account_type, data.bank_id, data.owner_member_id,
                data.account_number, data.currency, data.initial_balance,
                data.initial_balance, data.color, data.credit_limit,
                int(data.is_premium), data.premium_min_flow, int(data.active),
            ),
        )
        return self.get_by_id(cursor.lastrowid)

    def insert_restored(self, data: AccountInput, current_balance: float) -> int:
        """Insert a snapshot account with its stored balance; returns the new id."""
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO accounts
               (name, account_type, bank_id, owner_member_id, account_number, currency,
                initial_balance, current_balance, color, credit_limit, is_premium,
                premium_min_flow, active)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                data.name, data.account_type, data.bank_id, data.owner_member_id,
                data.account_number, data.currency, data.initial_balance,
                current_balance, data.color, data.credit_limit,
                int(data.is_premium), data.premium_min_flow, int(data.active),
            ),
        )
        return cursor.lastrowid

    def update(self, account_id: int, data: AccountInput) -> Optional[Account]:
        """Rewrite descriptive fields; balances are left alone."""
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE accounts
               SET name = ?, account_type = ?, bank_id = ?, owner_member_id = ?,
                   account_number = ?, currency = ?, color = ?, credit_limit = ?,
                   is_premium = ?, premium_min_flow = ?, active = ?,
                   updated_at = datetime('now')
               WHERE id = ?""",
            (
                data.name, data.account_type, data.bank_id, data.owner_member_id,
                data.account_number, data.currency, data.color, data.credit_limit,
                int(data.is_premium), data.premium_min_flow, int(data.active),
                account_id,
            ),
        )
        return self.get_by_id(account_id)

    def soft_delete(self, account_id: int) -> bool:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "UPDATE accounts SET active = 0, updated_at = datetime('now') WHERE id = ?",
            (account_id,),
        )
        return cursor.rowcount > 0

    def delete(self, account_id: int) -> bool:
        """Hard delete; callers re-point or accept the FK actions on dependents first."""
        conn = self._db.get_connection()
        cursor = conn.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
        return cursor.rowcount > 0

    def has_references(self, account_id: int) -> bool:
        """True when ledger rows (transactions, recurring payments, goals) point at the account."""
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT
                 EXISTS(SELECT 1 FROM transactions
                        WHERE from_account_id = :id OR to_account_id = :id)
                 OR EXISTS(SELECT 1 FROM recurring_payments WHERE account_id = :id)
                 OR EXISTS(SELECT 1 FROM savings_goals WHERE account_id = :id)
                 OR EXISTS(SELECT 1 FROM goal_movements WHERE account_id = :id)""",
            {"id": account_id},
        ).fetchone()
        return bool(row[0])

    def reassign_references(self, old_id: int, new_id: int):
        """Point every ledger row referencing old_id at new_id."""
        conn = self._db.get_connection()
        params = {"old": old_id, "new": new_id}
        conn.execute("UPDATE transactions SET from_account_id = :new WHERE from_account_id = :old", params)
        conn.execute("UPDATE transactions SET to_account_id = :new WHERE to_account_id = :old", params)
        conn.execute("UPDATE recurring_payments SET account_id = :new WHERE account_id = :old", params)
        conn.execute("UPDATE savings_goals SET account_id = :new WHERE account_id = :old", params)
        conn.execute("UPDATE goal_movements SET account_id = :new WHERE account_id = :old", params)

    def adjust_balance(self, account_id: int, delta: float) -> bool:
        """Atomic increment of current_balance; False when no such account."""
        conn = self._db.get_connection()
        cursor = conn.execute(
            """UPDATE accounts
               SET current_balance = current_balance + ?, updated_at = datetime('now')
               WHERE id = ?""",
            (delta, account_id),
        )
        return cursor.rowcount > 0

    def set_balance(self, account_id: int, amount: float) -> bool:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """UPDATE accounts
               SET initial_balance = ?, current_balance = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (amount, amount, account_id),
        )
        return cursor.rowcount > 0

    def get_balance(self, account_id: int) -> Optional[float]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT current_balance FROM accounts WHERE id = ?", (account_id,)
        ).fetchone()
        return row["current_balance"] if row else None
