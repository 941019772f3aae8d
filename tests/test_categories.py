import pytest

from models.transaction import TransactionInput
from utils.errors import InvalidInputError, NotFoundError


class TestCategories:
    """Tests for transaction categories."""

    def test_system_categories_are_seeded(self, category_service):
        names = {c.name for c in category_service.get_all() if c.is_system}
        assert names == {"Income", "Expense", "Transfer"}

    def test_create_and_filter_by_type(self, category_service):
        category_service.create("Groceries", "expense", "#FF0000")
        category_service.create("Bonus", "income")

        expense_names = {c.name for c in category_service.get_for_transaction_type("expense")}
        assert "Groceries" in expense_names
        assert "Transfer" in expense_names
        assert "Bonus" not in expense_names
        assert len(category_service.get_for_transaction_type("transfer")) == 5

    def test_duplicate_name_rejected(self, category_service):
        category_service.create("Groceries", "expense")
        with pytest.raises(InvalidInputError):
            category_service.create("groceries", "both")

    def test_invalid_type_rejected(self, category_service):
        with pytest.raises(InvalidInputError):
            category_service.create("Weird", "refund")

    def test_update(self, category_service):
        cat = category_service.create("Groceries", "expense")
        updated = category_service.update(cat.id, "Food", "both", "#00FF00")
        assert updated.name == "Food"
        assert updated.category_type == "both"

    def test_system_category_is_protected(self, category_service):
        income = [c for c in category_service.get_all() if c.name == "Income"][0]
        with pytest.raises(InvalidInputError):
            category_service.update(income.id, "Salary", "income", "#000000")
        with pytest.raises(InvalidInputError):
            category_service.delete(income.id)

    def test_delete_uncategorizes_transactions(self, category_service, tx_service, make_account):
        account = make_account()
        cat = category_service.create("Groceries", "expense")
        tx = tx_service.create(TransactionInput(
            date="2024-05-01", amount=10.0, type="expense", from_account_id=account.id, category_id=cat.id,
        ))
        category_service.delete(cat.id)
        assert tx_service.get_by_id(tx.id).category_id is None

    def test_delete_unknown(self, category_service):
        with pytest.raises(NotFoundError):
            category_service.delete(999)
