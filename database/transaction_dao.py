from typing import Optional
from database.db_manager import DatabaseManager
from models.transaction import Transaction, TransactionFilters, TransactionInput


class TransactionDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        keys = row.keys()
        return Transaction(
            id=row["id"],
            date=row["date"],
            amount=row["amount"],
            type=row["type"],
            currency=row["currency"],
            from_account_id=row["from_account_id"],
            to_account_id=row["to_account_id"],
            category_id=row["category_id"],
            category_name=row["category_name"] if "category_name" in keys else "",
            from_account_name=row["from_account_name"] if "from_account_name" in keys else "",
            to_account_name=row["to_account_name"] if "to_account_name" in keys else "",
            description=row["description"],
            notes=row["notes"],
            status=row["status"],
            recurring_payment_id=row["recurring_payment_id"],
            flow_group_id=row["flow_group_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _select(self) -> str:
        return """
            SELECT t.*,
                   COALESCE(c.name, '')  AS category_name,
                   COALESCE(fa.name, '') AS from_account_name,
                   COALESCE(ta.name, '') AS to_account_name
            FROM transactions t
            LEFT JOIN categories c ON t.category_id = c.id
            LEFT JOIN accounts fa  ON t.from_account_id = fa.id
            LEFT JOIN accounts ta  ON t.to_account_id = ta.id
        """

    def get_all(self) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " ORDER BY t.date DESC, t.id DESC"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, tx_id: int) -> Optional[Transaction]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE t.id = ?", (tx_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_filtered(self, filters: TransactionFilters) -> list[Transaction]:
        conn = self._db.get_connection()
        sql = self._select() + " WHERE 1=1"
        params: list = []

        if filters.start_date:
            sql += " AND t.date >= ?"
            params.append(filters.start_date)
        if filters.end_date:
            sql += " AND t.date <= ?"
            params.append(filters.end_date)
        if filters.min_amount is not None:
            sql += " AND t.amount >= ?"
            params.append(filters.min_amount)
        if filters.max_amount is not None:
            sql += " AND t.amount <= ?"
            params.append(filters.max_amount)
        if filters.search:
            sql += " AND (t.description LIKE ? OR t.notes LIKE ?)"
            params.extend([f"%{filters.search}%", f"%{filters.search}%"])
        if filters.account_ids:
            placeholders = ",".join("?" * len(filters.account_ids))
            sql += f" AND (t.from_account_id IN ({placeholders}) OR t.to_account_id IN ({placeholders}))"
            params.extend(filters.account_ids)
            params.extend(filters.account_ids)
        if filters.category_ids:
            placeholders = ",".join("?" * len(filters.category_ids))
            sql += f" AND t.category_id IN ({placeholders})"
            params.extend(filters.category_ids)
        if filters.types:
            placeholders = ",".join("?" * len(filters.types))
            sql += f" AND t.type IN ({placeholders})"
            params.extend(filters.types)
        if filters.statuses:
            placeholders = ",".join("?" * len(filters.statuses))
            sql += f" AND t.status IN ({placeholders})"
            params.extend(filters.statuses)

        sql += " ORDER BY t.date DESC, t.id DESC"
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_recurring_payment(self, payment_id: int) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " WHERE t.recurring_payment_id = ? ORDER BY t.date DESC, t.id DESC",
            (payment_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_flow_group(self, group_id: int) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " WHERE t.flow_group_id = ? ORDER BY t.date ASC, t.id ASC",
            (group_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def create(
        self,
        data: TransactionInput,
        currency: str,
        recurring_payment_id: int | None = None,
    ) -> Transaction:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO transactions
               (date, amount, currency, type, from_account_id, to_account_id,
                category_id, description, notes, status, recurring_payment_id)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                data.date, data.amount, currency, data.type, data.from_account_id,
                data.to_account_id, data.category_id, data.description, data.notes,
                data.status, recurring_payment_id,
            ),
        )
        return self.get_by_id(cursor.lastrowid)

    def update(self, tx_id: int, data: TransactionInput, currency: str) -> Optional[Transaction]:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE transactions
               SET date = ?, amount = ?, currency = ?, type = ?, from_account_id = ?,
                   to_account_id = ?, category_id = ?, description = ?, notes = ?,
                   status = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (
                data.date, data.amount, currency, data.type, data.from_account_id,
                data.to_account_id, data.category_id, data.description, data.notes,
                data.status, tx_id,
            ),
        )
        return self.get_by_id(tx_id)

    def set_status(self, tx_id: int, status: str):
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE transactions SET status = ?, updated_at = datetime('now') WHERE id = ?",
            (status, tx_id),
        )

    def set_flow_group(self, tx_id: int, group_id: int | None) -> bool:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "UPDATE transactions SET flow_group_id = ?, updated_at = datetime('now') WHERE id = ?",
            (group_id, tx_id),
        )
        return cursor.rowcount > 0

    def delete(self, tx_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM transactions WHERE id = ?", (tx_id,))

    # ── aggregates ────────────────────────────────────────────────────────────

    def get_posted_effect(self, account_id: int) -> float:
        """Signed sum of every non-planned transaction's effect on one account.

        Mirrors the posting rules: a transfer without a source posts nothing.
        """
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT COALESCE(SUM(
                   CASE
                     WHEN type = 'expense' AND from_account_id = :a THEN -amount
                     WHEN type = 'income'  AND to_account_id   = :a THEN amount
                     WHEN type = 'transfer' AND from_account_id IS NOT NULL THEN
                          (CASE WHEN from_account_id = :a THEN -amount ELSE 0 END)
                        + (CASE WHEN to_account_id   = :a THEN amount  ELSE 0 END)
                     ELSE 0
                   END), 0) AS effect
               FROM transactions
               WHERE status != 'planned'""",
            {"a": account_id},
        ).fetchone()
        return row["effect"]

    def get_totals_for_month(self, month: str) -> dict:
        """Completed income and expense totals across all accounts for the given month."""
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT
                SUM(CASE WHEN type='income'  THEN amount ELSE 0 END) AS income,
                SUM(CASE WHEN type='expense' THEN amount ELSE 0 END) AS expense
               FROM transactions
               WHERE status = 'completed'
                 AND strftime('%Y-%m', date) = ?""",
            (month,),
        ).fetchone()
        return {
            "income":  row["income"]  or 0.0,
            "expense": row["expense"] or 0.0,
        }

    def get_monthly_totals(self, start_month: str, end_month: str) -> list[dict]:
        """Return [{month, income, expense}] for months in [start_month, end_month] that have data."""
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT strftime('%Y-%m', date) AS month,
                      SUM(CASE WHEN type='income'  THEN amount ELSE 0 END) AS income,
                      SUM(CASE WHEN type='expense' THEN amount ELSE 0 END) AS expense
               FROM transactions
               WHERE status = 'completed'
                 AND strftime('%Y-%m', date) BETWEEN ? AND ?
               GROUP BY month
               ORDER BY month ASC""",
            (start_month, end_month),
        ).fetchall()
        return [dict(r) for r in rows]

    def get_expense_by_category(self, month: str) -> list[dict]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT COALESCE(c.name,'Uncategorized') AS category,
                      COALESCE(c.color_hex,'#888888') AS color_hex,
                      SUM(t.amount) AS total
               FROM transactions t
               LEFT JOIN categories c ON t.category_id = c.id
               WHERE t.type = 'expense'
                 AND t.status = 'completed'
                 AND strftime('%Y-%m', t.date) = ?
               GROUP BY t.category_id
               ORDER BY total DESC""",
            (month,),
        ).fetchall()
        return [dict(r) for r in rows]
