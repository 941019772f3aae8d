from typing import Optional
from database.db_manager import DatabaseManager
from models.recurring_payment import RecurringPayment, RecurringPaymentInput


class RecurringDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> RecurringPayment:
        return RecurringPayment(
            id=row["id"],
            name=row["name"],
            amount=row["amount"],
            account_id=row["account_id"],
            frequency=row["frequency"],
            frequency_value=row["frequency_value"],
            day_of_period=row["day_of_period"],
            currency=row["currency"],
            category_id=row["category_id"],
            description=row["description"],
            active=bool(row["active"]),
            next_execution_date=row["next_execution_date"],
            last_execution_date=row["last_execution_date"],
            account_name=row["account_name"] if "account_name" in row.keys() else "",
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _select(self) -> str:
        return """
            SELECT r.*,
                   a.name AS account_name
            FROM recurring_payments r
            JOIN accounts a ON r.account_id = a.id
        """

    def get_all(self) -> list[RecurringPayment]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " ORDER BY r.name, r.id"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, payment_id: int) -> Optional[RecurringPayment]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE r.id = ?", (payment_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_due(self, as_of: str) -> list[RecurringPayment]:
        """Active payments whose next execution date is on or before as_of."""
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + """
            WHERE r.active = 1
              AND r.next_execution_date IS NOT NULL
              AND r.next_execution_date <= ?
            ORDER BY r.next_execution_date ASC, r.id ASC
            """,
            (as_of,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def create(
        self, data: RecurringPaymentInput, currency: str, next_execution_date: str
    ) -> RecurringPayment:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO recurring_payments
               (name, amount, currency, frequency, frequency_value, day_of_period,
                account_id, category_id, description, active, next_execution_date)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                data.name, data.amount, currency, data.frequency, data.frequency_value,
                data.day_of_period, data.account_id, data.category_id, data.description,
                int(data.active), next_execution_date,
            ),
        )
        return self.get_by_id(cursor.lastrowid)

    def update(
        self, payment_id: int, data: RecurringPaymentInput, currency: str
    ) -> Optional[RecurringPayment]:
        """Rewrite descriptive fields; scheduling dates are untouched."""
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE recurring_payments
               SET name = ?, amount = ?, currency = ?, frequency = ?, frequency_value = ?,
                   day_of_period = ?, account_id = ?, category_id = ?, description = ?,
                   active = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (
                data.name, data.amount, currency, data.frequency, data.frequency_value,
                data.day_of_period, data.account_id, data.category_id, data.description,
                int(data.active), payment_id,
            ),
        )
        return self.get_by_id(payment_id)

    def set_schedule(self, payment_id: int, last_execution_date: str | None, next_execution_date: str):
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE recurring_payments
               SET last_execution_date = ?, next_execution_date = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (last_execution_date, next_execution_date, payment_id),
        )

    def delete(self, payment_id: int) -> bool:
        conn = self._db.get_connection()
        cursor = conn.execute("DELETE FROM recurring_payments WHERE id = ?", (payment_id,))
        return cursor.rowcount > 0
