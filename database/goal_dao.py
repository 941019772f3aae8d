from typing import Optional
from database.db_manager import DatabaseManager
from models.goal import GoalMovement, SavingsGoal


class GoalDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> SavingsGoal:
        return SavingsGoal(
            id=row["id"],
            name=row["name"],
            target_amount=row["target_amount"],
            current_amount=row["current_amount"],
            currency=row["currency"],
            account_id=row["account_id"],
            deadline=row["deadline"],
            active=bool(row["active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _row_to_movement(self, row) -> GoalMovement:
        return GoalMovement(
            id=row["id"],
            goal_id=row["goal_id"],
            kind=row["kind"],
            amount=row["amount"],
            date=row["date"],
            account_id=row["account_id"],
            created_at=row["created_at"],
        )

    def get_all(self, active_only: bool = False) -> list[SavingsGoal]:
        conn = self._db.get_connection()
        sql = "SELECT * FROM savings_goals"
        if active_only:
            sql += " WHERE active = 1"
        rows = conn.execute(sql + " ORDER BY deadline IS NULL, deadline, name").fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, goal_id: int) -> Optional[SavingsGoal]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM savings_goals WHERE id = ?", (goal_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        name: str,
        target_amount: float,
        currency: str,
        account_id: int | None = None,
        deadline: str | None = None,
    ) -> SavingsGoal:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO savings_goals(name, target_amount, currency, account_id, deadline)
               VALUES (?, ?, ?, ?, ?)""",
            (name, target_amount, currency, account_id, deadline),
        )
        return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        goal_id: int,
        name: str,
        target_amount: float,
        account_id: int | None,
        deadline: str | None,
        active: bool,
    ) -> Optional[SavingsGoal]:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE savings_goals
               SET name = ?, target_amount = ?, account_id = ?, deadline = ?, active = ?,
                   updated_at = datetime('now')
               WHERE id = ?""",
            (name, target_amount, account_id, deadline, int(active), goal_id),
        )
        return self.get_by_id(goal_id)

    def adjust_amount(self, goal_id: int, delta: float) -> bool:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """UPDATE savings_goals
               SET current_amount = current_amount + ?, updated_at = datetime('now')
               WHERE id = ?""",
            (delta, goal_id),
        )
        return cursor.rowcount > 0

    def delete(self, goal_id: int) -> bool:
        conn = self._db.get_connection()
        return conn.execute(
            "DELETE FROM savings_goals WHERE id = ?", (goal_id,)
        ).rowcount > 0

    def add_movement(
        self, goal_id: int, kind: str, amount: float, date: str, account_id: int | None
    ) -> GoalMovement:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO goal_movements(goal_id, kind, amount, date, account_id)
               VALUES (?, ?, ?, ?, ?)""",
            (goal_id, kind, amount, date, account_id),
        )
        row = conn.execute(
            "SELECT * FROM goal_movements WHERE id = ?", (cursor.lastrowid,)
        ).fetchone()
        return self._row_to_movement(row)

    def get_movements(self, goal_id: int) -> list[GoalMovement]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM goal_movements WHERE goal_id = ? ORDER BY date DESC, id DESC",
            (goal_id,),
        ).fetchall()
        return [self._row_to_movement(r) for r in rows]

    def get_account_effect(self, account_id: int) -> float:
        """Net balance effect of goal movements on an account (deposits debit it)."""
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT COALESCE(SUM(
                   CASE kind WHEN 'deposit' THEN -amount ELSE amount END), 0) AS effect
               FROM goal_movements
               WHERE account_id = ?""",
            (account_id,),
        ).fetchone()
        return row["effect"]
