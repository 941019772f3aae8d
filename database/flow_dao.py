from typing import Optional
from database.db_manager import DatabaseManager
from models.transaction import FlowGroup


class FlowGroupDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> FlowGroup:
        return FlowGroup(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            color=row["color"],
            created_at=row["created_at"],
        )

    def get_all(self) -> list[FlowGroup]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM flow_groups ORDER BY name, id").fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, group_id: int) -> Optional[FlowGroup]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM flow_groups WHERE id = ?", (group_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, name: str, description: str, color: str) -> FlowGroup:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "INSERT INTO flow_groups(name, description, color) VALUES (?, ?, ?)",
            (name, description, color),
        )
        return self.get_by_id(cursor.lastrowid)

    def delete(self, group_id: int) -> bool:
        """Unlink member transactions, then drop the group."""
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE transactions SET flow_group_id = NULL WHERE flow_group_id = ?",
            (group_id,),
        )
        cursor = conn.execute("DELETE FROM flow_groups WHERE id = ?", (group_id,))
        return cursor.rowcount > 0
