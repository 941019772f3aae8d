import pytest

from models.account import AccountInput
from models.transaction import TransactionInput
from services.ledger import inverse_legs, posting_legs
from utils.errors import InvalidInputError, NotFoundError


class TestPostingLegs:
    """Tests for the balance-effect switch."""

    def test_expense_debits_source(self):
        assert posting_legs("expense", 50.0, 1, None) == [(1, -50.0)]

    def test_income_credits_destination(self):
        assert posting_legs("income", 50.0, None, 2) == [(2, 50.0)]

    def test_transfer_debits_then_credits(self):
        assert posting_legs("transfer", 50.0, 1, 2) == [(1, -50.0), (2, 50.0)]

    def test_transfer_without_source_posts_nothing(self):
        assert posting_legs("transfer", 50.0, None, 2) == []

    def test_transfer_without_destination_debits_only(self):
        assert posting_legs("transfer", 50.0, 1, None) == [(1, -50.0)]

    def test_missing_accounts_are_skipped(self):
        assert posting_legs("expense", 50.0, None, 2) == []
        assert posting_legs("income", 50.0, 1, None) == []

    def test_unknown_type_posts_nothing(self):
        assert posting_legs("refund", 50.0, 1, 2) == []

    def test_inverse_flips_signs(self):
        assert inverse_legs([(1, -50.0), (2, 50.0)]) == [(1, 50.0), (2, -50.0)]


class TestAccountBalances:
    """Tests for the balance primitive and account CRUD."""

    def test_create_sets_current_to_initial(self, make_account):
        account = make_account(initial_balance=1200.0)
        assert account.initial_balance == 1200.0
        assert account.current_balance == 1200.0

    def test_adjust_balance_increments(self, make_account, account_service):
        account = make_account(initial_balance=100.0)
        account_service.adjust_balance(account.id, -30.0)
        account_service.adjust_balance(account.id, 5.5)
        assert account_service.get_balance(account.id) == pytest.approx(75.5)

    def test_adjust_balance_allows_negative(self, make_account, account_service):
        account = make_account(initial_balance=10.0)
        account_service.adjust_balance(account.id, -25.0)
        assert account_service.get_balance(account.id) == pytest.approx(-15.0)

    def test_adjust_balance_unknown_account(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.adjust_balance(999, 10.0)

    def test_get_balance_unknown_account(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.get_balance(999)

    def test_set_balance_overwrites_both(self, make_account, account_service):
        account = make_account(initial_balance=100.0)
        account_service.adjust_balance(account.id, -40.0)
        updated = account_service.set_balance(account.id, 500.0)
        assert updated.initial_balance == 500.0
        assert updated.current_balance == 500.0

    def test_update_never_touches_balances(self, make_account, account_service):
        account = make_account(initial_balance=100.0)
        account_service.adjust_balance(account.id, -40.0)
        updated = account_service.update(
            account.id, AccountInput(name="Renamed", initial_balance=9999.0)
        )
        assert updated.name == "Renamed"
        assert updated.initial_balance == 100.0
        assert updated.current_balance == pytest.approx(60.0)

    def test_soft_delete_hides_from_active_list(self, make_account, account_service):
        keep = make_account("Keep")
        gone = make_account("Gone")
        account_service.soft_delete(gone.id)
        active_ids = [a.id for a in account_service.get_all(active_only=True)]
        assert keep.id in active_ids
        assert gone.id not in active_ids
        assert account_service.get_by_id(gone.id).active is False

    def test_rejects_unknown_account_type(self, account_service):
        with pytest.raises(InvalidInputError):
            account_service.create(AccountInput(name="X", account_type="brokerage"))

    def test_rejects_empty_name(self, account_service):
        with pytest.raises(ValueError):
            account_service.create(AccountInput(name="   "))


class TestLedgerVerification:
    """Tests for recomputing balances from history."""

    def test_fresh_store_verifies_clean(self, make_account, ledger):
        make_account(initial_balance=100.0)
        assert ledger.verify() == []

    def test_invariant_after_mixed_activity(self, make_account, tx_service, ledger):
        a = make_account("A", initial_balance=1000.0)
        b = make_account("B", initial_balance=50.0)
        tx_service.create(TransactionInput(date="2024-03-01", amount=120.0, type="expense", from_account_id=a.id))
        tx_service.create(TransactionInput(date="2024-03-02", amount=300.0, type="income", to_account_id=b.id))
        t = tx_service.create(TransactionInput(
            date="2024-03-03", amount=75.0, type="transfer", from_account_id=a.id, to_account_id=b.id,
        ))
        tx_service.create(TransactionInput(
            date="2024-03-04", amount=999.0, type="expense", from_account_id=a.id, status="planned",
        ))
        tx_service.delete(t.id)

        assert ledger.expected_balance(a.id) == pytest.approx(880.0)
        assert ledger.expected_balance(b.id) == pytest.approx(350.0)
        assert ledger.verify() == []

    def test_direct_adjustment_shows_as_drift(self, make_account, account_service, ledger):
        account = make_account(initial_balance=100.0)
        account_service.adjust_balance(account.id, 10.0)
        drift = ledger.verify()
        assert len(drift) == 1
        assert drift[0]["account_id"] == account.id
        assert drift[0]["difference"] == pytest.approx(10.0)

    def test_expected_balance_unknown_account(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.expected_balance(42)
