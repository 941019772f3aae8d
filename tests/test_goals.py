import pytest

from utils.errors import InvalidInputError, NotFoundError


@pytest.fixture
def savings(make_account):
    return make_account("Savings", initial_balance=10000.0, account_type="savings")


class TestGoals:
    """Tests for savings goals and the money they hold."""

    def test_create_defaults(self, goal_service, savings):
        goal = goal_service.create("  Holiday ", 20000.0, account_id=savings.id, deadline="2025-07-01")
        assert goal.name == "Holiday"
        assert goal.current_amount == 0.0
        assert goal.currency == "CZK"
        assert goal.progress == 0.0

    def test_deposit_moves_money_out_of_account(self, goal_service, account_service, ledger, savings):
        goal = goal_service.create("Holiday", 20000.0, account_id=savings.id)
        goal = goal_service.deposit(goal.id, 5000.0, date="2024-02-01")

        assert goal.current_amount == pytest.approx(5000.0)
        assert goal.progress == pytest.approx(0.25)
        assert goal.remaining == pytest.approx(15000.0)
        assert account_service.get_balance(savings.id) == pytest.approx(5000.0)
        assert ledger.verify() == []

    def test_withdraw_returns_money(self, goal_service, account_service, ledger, savings):
        goal = goal_service.create("Holiday", 20000.0, account_id=savings.id)
        goal_service.deposit(goal.id, 5000.0)
        goal = goal_service.withdraw(goal.id, 2000.0)

        assert goal.current_amount == pytest.approx(3000.0)
        assert account_service.get_balance(savings.id) == pytest.approx(7000.0)
        assert [m.kind for m in goal_service.get_movements(goal.id)] == ["withdrawal", "deposit"]
        assert ledger.verify() == []

    def test_cannot_withdraw_more_than_held(self, goal_service, account_service, savings):
        goal = goal_service.create("Holiday", 20000.0, account_id=savings.id)
        goal_service.deposit(goal.id, 100.0)
        with pytest.raises(InvalidInputError):
            goal_service.withdraw(goal.id, 100.01)
        assert account_service.get_balance(savings.id) == pytest.approx(9900.0)

    def test_delete_refunds_remainder(self, goal_service, account_service, ledger, savings):
        goal = goal_service.create("Holiday", 20000.0, account_id=savings.id)
        goal_service.deposit(goal.id, 4000.0)
        goal_service.delete(goal.id)

        assert account_service.get_balance(savings.id) == pytest.approx(10000.0)
        with pytest.raises(NotFoundError):
            goal_service.get_by_id(goal.id)
        assert ledger.verify() == []

    def test_goal_without_account_tracks_amount_only(self, goal_service):
        goal = goal_service.create("Piggy bank", 500.0)
        goal = goal_service.deposit(goal.id, 50.0)
        assert goal.current_amount == pytest.approx(50.0)

    def test_rejects_non_positive_amount(self, goal_service, savings):
        goal = goal_service.create("Holiday", 20000.0, account_id=savings.id)
        with pytest.raises(InvalidInputError):
            goal_service.deposit(goal.id, 0)

    def test_rejects_bad_target(self, goal_service):
        with pytest.raises(InvalidInputError):
            goal_service.create("Holiday", 0)

    def test_unknown_account(self, goal_service):
        with pytest.raises(NotFoundError):
            goal_service.create("Holiday", 100.0, account_id=404)

    def test_update(self, goal_service, savings):
        goal = goal_service.create("Holiday", 20000.0, account_id=savings.id)
        updated = goal_service.update(goal.id, "Summer", 25000.0, account_id=savings.id, active=False)
        assert updated.name == "Summer"
        assert updated.target_amount == 25000.0
        assert updated.active is False
