from database.category_dao import CategoryDAO
from database.db_manager import DatabaseManager
from models.category import Category
from utils.constants import CATEGORY_TYPES
from utils.errors import InvalidInputError, NotFoundError


class CategoryService:
    def __init__(self, db: DatabaseManager, category_dao: CategoryDAO):
        self._db = db
        self._dao = category_dao

    def get_all(self) -> list[Category]:
        with self._db.unit_of_work():
            return self._dao.get_all()

    def get_for_transaction_type(self, tx_type: str) -> list[Category]:
        with self._db.unit_of_work():
            return self._dao.get_for_transaction_type(tx_type)

    def create(self, name: str, category_type: str, color_hex: str = "#6B7280") -> Category:
        name = self._validate(name, category_type)
        with self._db.unit_of_work():
            existing = [c.name.lower() for c in self._dao.get_all()]
            if name.lower() in existing:
                raise InvalidInputError(f"A category named '{name}' already exists.")
            return self._dao.create(name, category_type, color_hex)

    def update(self, category_id: int, name: str, category_type: str, color_hex: str) -> Category:
        name = self._validate(name, category_type)
        with self._db.unit_of_work():
            cat = self._protected(category_id, "edited")
            others = [c for c in self._dao.get_all() if c.id != cat.id]
            if any(c.name.lower() == name.lower() for c in others):
                raise InvalidInputError(f"A category named '{name}' already exists.")
            return self._dao.update(category_id, name, category_type, color_hex)

    def delete(self, category_id: int):
        """Transactions in the category become uncategorized."""
        with self._db.unit_of_work():
            self._protected(category_id, "deleted")
            self._dao.delete(category_id)

    def _protected(self, category_id: int, action: str) -> Category:
        cat = self._dao.get_by_id(category_id)
        if cat is None:
            raise NotFoundError("Category", category_id)
        if cat.is_system:
            raise InvalidInputError(f"System categories cannot be {action}.")
        return cat

    @staticmethod
    def _validate(name: str, category_type: str) -> str:
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Category name cannot be empty.")
        if category_type not in CATEGORY_TYPES:
            raise InvalidInputError(f"Invalid category type '{category_type}'.")
        return name
