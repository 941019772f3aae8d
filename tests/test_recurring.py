"""
Tests for recurring payment scheduling and the due-payment sweep.
"""
from datetime import date, timedelta

import pytest

from models.recurring_payment import RecurringPaymentInput
from services.recurring_service import compute_next_date
from utils.date_helpers import format_date, today
from utils.errors import InvalidInputError, NotFoundError


class TestComputeNextDate:
    """Tests for the next-occurrence calculation."""

    def test_daily(self):
        assert compute_next_date("daily", 3, None, date(2024, 1, 30)) == date(2024, 2, 2)

    def test_weekly(self):
        assert compute_next_date("weekly", 2, None, date(2024, 1, 1)) == date(2024, 1, 15)

    def test_monthly_uses_day_of_period(self):
        assert compute_next_date("monthly", 1, 10, date(2024, 1, 15)) == date(2024, 2, 10)

    def test_monthly_clamps_to_28(self):
        assert compute_next_date("monthly", 1, 31, date(2024, 1, 15)) == date(2024, 2, 28)

    def test_monthly_defaults_to_current_day(self):
        assert compute_next_date("monthly", 1, None, date(2024, 3, 12)) == date(2024, 4, 12)

    def test_monthly_crosses_year(self):
        assert compute_next_date("monthly", 2, 5, date(2024, 11, 20)) == date(2025, 1, 5)

    def test_yearly(self):
        assert compute_next_date("yearly", 1, None, date(2023, 6, 1)) == date(2024, 6, 1)

    def test_yearly_from_leap_day_falls_back(self):
        assert compute_next_date("yearly", 1, None, date(2024, 2, 29)) == date(2025, 2, 28)


@pytest.fixture
def checking(make_account):
    return make_account("Checking", initial_balance=5000.0)


def _payment(account_id, **overrides):
    fields = dict(
        name="Rent", amount=1200.0, account_id=account_id, frequency="monthly", day_of_period=5,
    )
    fields.update(overrides)
    return RecurringPaymentInput(**fields)


class TestRecurringCrud:
    """Tests for creating and editing recurring payments."""

    def test_start_date_is_first_execution(self, recurring_service, checking):
        payment = recurring_service.create(_payment(checking.id, start_date="2024-03-05"))
        assert payment.next_execution_date == "2024-03-05"
        assert payment.last_execution_date is None
        assert payment.currency == "CZK"

    def test_without_start_date_schedules_from_today(self, recurring_service, checking):
        payment = recurring_service.create(_payment(checking.id, frequency="daily", day_of_period=None))
        assert payment.next_execution_date == format_date(today() + timedelta(days=1))

    def test_rejects_zero_multiplier(self, recurring_service, checking):
        with pytest.raises(InvalidInputError):
            recurring_service.create(_payment(checking.id, frequency_value=0))

    def test_rejects_day_out_of_range(self, recurring_service, checking):
        with pytest.raises(InvalidInputError):
            recurring_service.create(_payment(checking.id, day_of_period=32))

    def test_rejects_unknown_frequency(self, recurring_service, checking):
        with pytest.raises(InvalidInputError):
            recurring_service.create(_payment(checking.id, frequency="hourly"))

    def test_update_keeps_schedule_when_frequency_unchanged(self, recurring_service, checking):
        payment = recurring_service.create(_payment(checking.id, start_date="2024-03-05"))
        updated = recurring_service.update(payment.id, _payment(checking.id, name="Flat", amount=1300.0))
        assert updated.name == "Flat"
        assert updated.amount == 1300.0
        assert updated.next_execution_date == "2024-03-05"

    def test_update_reschedules_on_frequency_change(self, recurring_service, checking):
        payment = recurring_service.create(_payment(checking.id, start_date="2024-03-05"))
        updated = recurring_service.update(
            payment.id, _payment(checking.id, frequency="weekly", day_of_period=None)
        )
        assert updated.next_execution_date == format_date(today() + timedelta(weeks=1))

    def test_delete(self, recurring_service, checking):
        payment = recurring_service.create(_payment(checking.id, start_date="2024-03-05"))
        recurring_service.delete(payment.id)
        with pytest.raises(NotFoundError):
            recurring_service.get_by_id(payment.id)
        with pytest.raises(NotFoundError):
            recurring_service.delete(payment.id)


class TestSweep:
    """Tests for posting due recurring payments."""

    def test_posts_due_payment_and_advances(
        self, recurring_service, account_service, tx_dao, checking
    ):
        payment = recurring_service.create(_payment(checking.id, start_date="2024-03-05"))
        created = recurring_service.sweep(as_of=date(2024, 3, 5))

        assert len(created) == 1
        tx = created[0]
        assert tx.type == "expense"
        assert tx.status == "completed"
        assert tx.date == "2024-03-05"
        assert tx.amount == 1200.0
        assert tx.from_account_id == checking.id
        assert tx.recurring_payment_id == payment.id
        assert tx.description == "Rent"

        assert account_service.get_balance(checking.id) == pytest.approx(3800.0)
        refreshed = recurring_service.get_by_id(payment.id)
        assert refreshed.last_execution_date == "2024-03-05"
        assert refreshed.next_execution_date == "2024-04-05"
        assert [t.id for t in tx_dao.get_by_recurring_payment(payment.id)] == [tx.id]

    def test_second_sweep_same_day_posts_nothing(self, recurring_service, account_service, checking):
        recurring_service.create(_payment(checking.id, frequency="daily", day_of_period=None,
                                          start_date="2024-03-05"))
        first = recurring_service.sweep(as_of=date(2024, 3, 5))
        second = recurring_service.sweep(as_of=date(2024, 3, 5))
        assert len(first) == 1
        assert second == []
        assert account_service.get_balance(checking.id) == pytest.approx(3800.0)

    def test_not_yet_due_is_skipped(self, recurring_service, checking):
        recurring_service.create(_payment(checking.id, start_date="2024-03-05"))
        assert recurring_service.sweep(as_of=date(2024, 3, 4)) == []

    def test_inactive_is_skipped(self, recurring_service, account_service, checking):
        recurring_service.create(_payment(checking.id, start_date="2024-03-05", active=False))
        assert recurring_service.sweep(as_of=date(2024, 3, 10)) == []
        assert account_service.get_balance(checking.id) == pytest.approx(5000.0)

    def test_overdue_posts_once_and_moves_forward(self, recurring_service, checking):
        payment = recurring_service.create(_payment(checking.id, start_date="2024-01-05"))
        created = recurring_service.sweep(as_of=date(2024, 3, 20))
        assert len(created) == 1
        assert created[0].date == "2024-03-20"
        assert recurring_service.get_by_id(payment.id).next_execution_date == "2024-04-05"

    def test_multiple_payments_in_due_order(self, recurring_service, checking):
        later = recurring_service.create(_payment(checking.id, name="Later", start_date="2024-03-04"))
        earlier = recurring_service.create(_payment(checking.id, name="Earlier", start_date="2024-03-01"))
        created = recurring_service.sweep(as_of=date(2024, 3, 5))
        assert [t.recurring_payment_id for t in created] == [earlier.id, later.id]

    def test_sweep_keeps_ledger_consistent(self, recurring_service, ledger, checking):
        recurring_service.create(_payment(checking.id, start_date="2024-03-05"))
        recurring_service.sweep(as_of=date(2024, 3, 5))
        assert ledger.verify() == []
