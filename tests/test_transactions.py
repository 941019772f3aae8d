"""
Tests for transaction recording and its effect on account balances.
"""
import pytest

from models.transaction import TransactionFilters, TransactionInput
from utils.errors import DatabaseError, InvalidInputError, NotFoundError


@pytest.fixture
def checking(make_account):
    return make_account("Checking", initial_balance=1000.0)


@pytest.fixture
def savings(make_account):
    return make_account("Savings", initial_balance=200.0, account_type="savings")


class TestCreate:
    """Tests for TransactionService.create."""

    def test_expense_debits_source(self, tx_service, account_service, checking):
        tx = tx_service.create(TransactionInput(
            date="2024-05-10", amount=250.0, type="expense", from_account_id=checking.id,
            description="  Groceries  ",
        ))
        assert tx.id is not None
        assert tx.description == "Groceries"
        assert tx.currency == "CZK"
        assert account_service.get_balance(checking.id) == pytest.approx(750.0)

    def test_income_credits_destination(self, tx_service, account_service, checking):
        tx_service.create(TransactionInput(
            date="2024-05-10", amount=40000.0, type="income", to_account_id=checking.id,
        ))
        assert account_service.get_balance(checking.id) == pytest.approx(41000.0)

    def test_transfer_moves_money(self, tx_service, account_service, checking, savings):
        tx_service.create(TransactionInput(
            date="2024-05-10", amount=300.0, type="transfer",
            from_account_id=checking.id, to_account_id=savings.id,
        ))
        assert account_service.get_balance(checking.id) == pytest.approx(700.0)
        assert account_service.get_balance(savings.id) == pytest.approx(500.0)

    def test_transfer_to_outside_debits_only(self, tx_service, account_service, checking):
        tx_service.create(TransactionInput(
            date="2024-05-10", amount=100.0, type="transfer", from_account_id=checking.id,
        ))
        assert account_service.get_balance(checking.id) == pytest.approx(900.0)

    def test_planned_does_not_post(self, tx_service, account_service, checking):
        tx = tx_service.create(TransactionInput(
            date="2024-06-01", amount=500.0, type="expense",
            from_account_id=checking.id, status="planned",
        ))
        assert tx.is_planned
        assert account_service.get_balance(checking.id) == pytest.approx(1000.0)

    def test_zero_amount_is_accepted(self, tx_service, account_service, checking):
        tx_service.create(TransactionInput(
            date="2024-05-10", amount=0.0, type="expense", from_account_id=checking.id,
        ))
        assert account_service.get_balance(checking.id) == pytest.approx(1000.0)

    def test_explicit_currency_is_uppercased(self, tx_service, checking):
        tx = tx_service.create(TransactionInput(
            date="2024-05-10", amount=10.0, type="expense", currency="eur",
            from_account_id=checking.id,
        ))
        assert tx.currency == "EUR"

    def test_default_currency_follows_setting(self, db, tx_service, checking):
        db.set_setting("default_currency", "USD")
        tx = tx_service.create(TransactionInput(
            date="2024-05-10", amount=10.0, type="expense", from_account_id=checking.id,
        ))
        assert tx.currency == "USD"

    def test_rejects_negative_amount(self, tx_service, checking):
        with pytest.raises(InvalidInputError):
            tx_service.create(TransactionInput(
                date="2024-05-10", amount=-1.0, type="expense", from_account_id=checking.id,
            ))

    def test_rejects_bad_date(self, tx_service, checking):
        with pytest.raises(InvalidInputError):
            tx_service.create(TransactionInput(
                date="10/05/2024", amount=1.0, type="expense", from_account_id=checking.id,
            ))

    def test_rejects_date_with_trailing_text(self, tx_service, checking):
        with pytest.raises(InvalidInputError):
            tx_service.create(TransactionInput(
                date="2024-01-15garbage", amount=1.0, type="expense", from_account_id=checking.id,
            ))

    def test_rejects_unknown_type(self, tx_service, checking):
        with pytest.raises(InvalidInputError):
            tx_service.create(TransactionInput(
                date="2024-05-10", amount=1.0, type="refund", from_account_id=checking.id,
            ))

    def test_rejects_transfer_without_source(self, tx_service, account_service, savings):
        with pytest.raises(InvalidInputError):
            tx_service.create(TransactionInput(
                date="2024-05-10", amount=1.0, type="transfer", to_account_id=savings.id,
            ))
        assert tx_service.get_all() == []
        assert account_service.get_balance(savings.id) == pytest.approx(200.0)

    def test_rejects_transfer_to_same_account(self, tx_service, checking):
        with pytest.raises(InvalidInputError):
            tx_service.create(TransactionInput(
                date="2024-05-10", amount=1.0, type="transfer",
                from_account_id=checking.id, to_account_id=checking.id,
            ))

    def test_unknown_account_rolls_back_row(self, tx_service):
        with pytest.raises(DatabaseError):
            tx_service.create(TransactionInput(
                date="2024-05-10", amount=1.0, type="expense", from_account_id=404,
            ))
        assert tx_service.get_all() == []


class TestDelete:
    """Tests for TransactionService.delete."""

    def test_round_trip_restores_balances(self, tx_service, account_service, checking, savings):
        tx = tx_service.create(TransactionInput(
            date="2024-05-10", amount=300.0, type="transfer",
            from_account_id=checking.id, to_account_id=savings.id,
        ))
        tx_service.delete(tx.id)
        assert account_service.get_balance(checking.id) == pytest.approx(1000.0)
        assert account_service.get_balance(savings.id) == pytest.approx(200.0)
        with pytest.raises(NotFoundError):
            tx_service.get_by_id(tx.id)

    def test_planned_delete_leaves_balance(self, tx_service, account_service, checking):
        tx = tx_service.create(TransactionInput(
            date="2024-06-01", amount=500.0, type="expense",
            from_account_id=checking.id, status="planned",
        ))
        tx_service.delete(tx.id)
        assert account_service.get_balance(checking.id) == pytest.approx(1000.0)

    def test_unknown_id(self, tx_service):
        with pytest.raises(NotFoundError):
            tx_service.delete(12345)


class TestUpdate:
    """Tests for TransactionService.update."""

    def test_update_does_not_rebalance(self, tx_service, account_service, checking):
        tx = tx_service.create(TransactionInput(
            date="2024-05-10", amount=100.0, type="expense", from_account_id=checking.id,
        ))
        updated = tx_service.update(tx.id, TransactionInput(
            date="2024-05-11", amount=400.0, type="expense", from_account_id=checking.id,
            description="corrected",
        ))
        assert updated.amount == 400.0
        assert updated.date == "2024-05-11"
        assert updated.description == "corrected"
        assert account_service.get_balance(checking.id) == pytest.approx(900.0)

    def test_unknown_id(self, tx_service, checking):
        with pytest.raises(NotFoundError):
            tx_service.update(999, TransactionInput(
                date="2024-05-10", amount=1.0, type="expense", from_account_id=checking.id,
            ))


class TestComplete:
    """Tests for turning a planned transaction into a completed one."""

    def test_complete_posts_once(self, tx_service, account_service, checking):
        tx = tx_service.create(TransactionInput(
            date="2024-06-01", amount=500.0, type="expense",
            from_account_id=checking.id, status="planned",
        ))
        done = tx_service.complete(tx.id)
        assert done.status == "completed"
        assert account_service.get_balance(checking.id) == pytest.approx(500.0)

        with pytest.raises(InvalidInputError):
            tx_service.complete(tx.id)
        assert account_service.get_balance(checking.id) == pytest.approx(500.0)


class TestQueries:
    """Tests for ordering and filtering."""

    @pytest.fixture
    def history(self, tx_service, checking, savings):
        rows = [
            ("2024-01-05", 100.0, "expense", checking.id, None, "Rent part"),
            ("2024-01-20", 2500.0, "income", None, checking.id, "Salary"),
            ("2024-02-03", 60.0, "expense", checking.id, None, "Coffee beans"),
            ("2024-02-03", 300.0, "transfer", checking.id, savings.id, "Saving"),
        ]
        return [
            tx_service.create(TransactionInput(
                date=d, amount=a, type=t, from_account_id=f, to_account_id=to, description=desc,
            ))
            for d, a, t, f, to, desc in rows
        ]

    def test_get_all_newest_first(self, tx_service, history):
        ids = [t.id for t in tx_service.get_all()]
        assert ids == [history[3].id, history[2].id, history[1].id, history[0].id]

    def test_account_names_are_joined(self, tx_service, history):
        tx = tx_service.get_by_id(history[3].id)
        assert tx.from_account_name == "Checking"
        assert tx.to_account_name == "Savings"

    def test_filter_by_date_range(self, tx_service, history):
        result = tx_service.get_filtered(TransactionFilters(start_date="2024-02-01", end_date="2024-02-28"))
        assert {t.id for t in result} == {history[2].id, history[3].id}

    def test_filter_by_amount_and_type(self, tx_service, history):
        result = tx_service.get_filtered(TransactionFilters(min_amount=50, max_amount=200, types=["expense"]))
        assert {t.id for t in result} == {history[0].id, history[2].id}

    def test_filter_by_search(self, tx_service, history):
        result = tx_service.get_filtered(TransactionFilters(search="coffee"))
        assert [t.id for t in result] == [history[2].id]

    def test_filter_by_account_matches_either_side(self, tx_service, history, savings):
        result = tx_service.get_filtered(TransactionFilters(account_ids=[savings.id]))
        assert [t.id for t in result] == [history[3].id]

    def test_inverted_range_rejected(self, tx_service):
        with pytest.raises(InvalidInputError):
            tx_service.get_filtered(TransactionFilters(start_date="2024-03-01", end_date="2024-02-01"))


class TestFlowGroups:
    """Tests for grouping related transactions."""

    def test_group_lifecycle(self, tx_service, checking):
        tx = tx_service.create(TransactionInput(
            date="2024-05-10", amount=80.0, type="expense", from_account_id=checking.id,
        ))
        group = tx_service.create_flow_group("  Holiday  ", "Summer trip")
        assert group.name == "Holiday"

        tx_service.add_to_flow_group(tx.id, group.id)
        assert [t.id for t in tx_service.get_flow_group_transactions(group.id)] == [tx.id]

        tx_service.remove_from_flow_group(tx.id)
        assert tx_service.get_flow_group_transactions(group.id) == []

    def test_deleting_group_keeps_transactions(self, tx_service, checking):
        tx = tx_service.create(TransactionInput(
            date="2024-05-10", amount=80.0, type="expense", from_account_id=checking.id,
        ))
        group = tx_service.create_flow_group("Holiday")
        tx_service.add_to_flow_group(tx.id, group.id)
        tx_service.delete_flow_group(group.id)

        assert tx_service.get_by_id(tx.id).flow_group_id is None
        assert tx_service.get_flow_groups() == []

    def test_unknown_group(self, tx_service, checking):
        tx = tx_service.create(TransactionInput(
            date="2024-05-10", amount=80.0, type="expense", from_account_id=checking.id,
        ))
        with pytest.raises(NotFoundError):
            tx_service.add_to_flow_group(tx.id, 77)

    def test_empty_name_rejected(self, tx_service):
        with pytest.raises(InvalidInputError):
            tx_service.create_flow_group("   ")
