from typing import Optional
from database.db_manager import DatabaseManager
from models.category import Category


class CategoryDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            category_type=row["category_type"],
            color_hex=row["color_hex"],
            is_system=bool(row["is_system"]),
        )

    def get_all(self) -> list[Category]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM categories ORDER BY name"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, category_id: int) -> Optional[Category]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM categories WHERE id = ?", (category_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_name(self, name: str) -> Optional[Category]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM categories WHERE name = ?", (name,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_for_transaction_type(self, tx_type: str) -> list[Category]:
        """Categories usable for an income or expense transaction; all for transfers."""
        conn = self._db.get_connection()
        if tx_type in ("income", "expense"):
            rows = conn.execute(
                "SELECT * FROM categories WHERE category_type IN (?, 'both') ORDER BY name",
                (tx_type,),
            ).fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM categories ORDER BY name"
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def create(self, name: str, category_type: str, color_hex: str = "#6B7280") -> Category:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "INSERT INTO categories(name, category_type, color_hex) VALUES (?, ?, ?)",
            (name, category_type, color_hex),
        )
        return self.get_by_id(cursor.lastrowid)

    def update(self, category_id: int, name: str, category_type: str, color_hex: str) -> Category:
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE categories SET name=?, category_type=?, color_hex=? WHERE id=?",
            (name, category_type, color_hex, category_id),
        )
        return self.get_by_id(category_id)

    def delete(self, category_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
