from typing import Optional
from database.db_manager import DatabaseManager
from models.bank import Bank


class BankDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Bank:
        return Bank(
            id=row["id"],
            name=row["name"],
            color=row["color"],
            notes=row["notes"],
            active=bool(row["active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_all(self) -> list[Bank]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM banks ORDER BY name").fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, bank_id: int) -> Optional[Bank]:
        conn = self._db.get_connection()
        row = conn.execute("SELECT * FROM banks WHERE id = ?", (bank_id,)).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_name(self, name: str) -> Optional[Bank]:
        conn = self._db.get_connection()
        row = conn.execute("SELECT * FROM banks WHERE name = ?", (name,)).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, name: str, color: str, notes: str | None = None, active: bool = True) -> Bank:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "INSERT INTO banks(name, color, notes, active) VALUES (?, ?, ?, ?)",
            (name, color, notes, int(active)),
        )
        return self.get_by_id(cursor.lastrowid)

    def update(self, bank_id: int, name: str, color: str, notes: str | None, active: bool) -> Optional[Bank]:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE banks SET name = ?, color = ?, notes = ?, active = ?,
                   updated_at = datetime('now')
               WHERE id = ?""",
            (name, color, notes, int(active), bank_id),
        )
        return self.get_by_id(bank_id)

    def delete(self, bank_id: int) -> bool:
        conn = self._db.get_connection()
        cursor = conn.execute("DELETE FROM banks WHERE id = ?", (bank_id,))
        return cursor.rowcount > 0

    def delete_all(self) -> int:
        conn = self._db.get_connection()
        return conn.execute("DELETE FROM banks").rowcount
