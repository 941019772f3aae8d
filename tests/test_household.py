"""
Tests for banks, household members and the monthly plan.
"""
import pytest

from models.account import AccountInput
from models.household import BudgetCategory, FixedExpense, MemberIncome, ScheduledTransfer
from utils.errors import InvalidInputError, NotFoundError


class TestBanks:
    """Tests for bank CRUD."""

    def test_duplicate_name_rejected(self, household_service):
        household_service.create_bank("Fio")
        with pytest.raises(InvalidInputError):
            household_service.create_bank("Fio")

    def test_rename_to_own_name_allowed(self, household_service):
        bank = household_service.create_bank("Fio")
        updated = household_service.update_bank(bank.id, "Fio", "#000000", notes="renamed")
        assert updated.notes == "renamed"

    def test_delete_frees_name_and_unlinks_accounts(self, household_service, account_service):
        bank = household_service.create_bank("Fio")
        account = account_service.create(AccountInput(name="Main", bank_id=bank.id))
        household_service.delete_bank(bank.id)

        assert account_service.get_by_id(account.id).bank_id is None
        assert household_service.create_bank("Fio").name == "Fio"

    def test_delete_unknown(self, household_service):
        with pytest.raises(NotFoundError):
            household_service.delete_bank(5)


class TestMembers:
    """Tests for household members and their incomes."""

    def test_delete_member_removes_incomes(self, household_service):
        anna = household_service.create_member("Anna")
        household_service.create_income(MemberIncome(id=0, member_id=anna.id, name="Salary", amount=100.0))
        household_service.delete_member(anna.id)
        assert household_service.get_incomes() == []

    def test_income_needs_existing_member(self, household_service):
        with pytest.raises(NotFoundError):
            household_service.create_income(MemberIncome(id=0, member_id=42, name="Salary", amount=100.0))

    def test_income_rejects_bad_day(self, household_service):
        anna = household_service.create_member("Anna")
        with pytest.raises(InvalidInputError):
            household_service.create_income(MemberIncome(
                id=0, member_id=anna.id, name="Salary", amount=100.0, day_of_month=0,
            ))

    def test_empty_name_rejected(self, household_service):
        with pytest.raises(InvalidInputError):
            household_service.create_member("  ")


class TestPlan:
    """Tests for standing transfers, fixed expenses and budget categories."""

    def test_transfer_to_same_account_rejected(self, household_service, make_account):
        account = make_account()
        with pytest.raises(InvalidInputError):
            household_service.create_transfer(ScheduledTransfer(
                id=0, name="Loop", from_account_id=account.id, to_account_id=account.id,
                amount=1.0, day_of_month=1,
            ))

    def test_planning_rows_do_not_move_money(self, household_service, account_service, make_account):
        a = make_account("A", initial_balance=100.0)
        b = make_account("B", initial_balance=100.0)
        household_service.create_transfer(ScheduledTransfer(
            id=0, name="Save", from_account_id=a.id, to_account_id=b.id, amount=50.0, day_of_month=2,
        ))
        household_service.create_expense(FixedExpense(
            id=0, name="Rent", amount=80.0, category="Housing", account_id=a.id,
        ))
        assert account_service.get_balance(a.id) == pytest.approx(100.0)
        assert account_service.get_balance(b.id) == pytest.approx(100.0)

    def test_budget_type_validated(self, household_service):
        with pytest.raises(InvalidInputError):
            household_service.create_budget_category(BudgetCategory(
                id=0, name="Fun", budget_type="luxury", monthly_limit=10.0,
            ))

    def test_monthly_plan(self, household_service):
        anna = household_service.create_member("Anna")
        household_service.create_income(MemberIncome(id=0, member_id=anna.id, name="Salary", amount=40000.0))
        household_service.create_income(MemberIncome(
            id=0, member_id=anna.id, name="Bonus", amount=9000.0, frequency="yearly",
        ))
        household_service.create_expense(FixedExpense(id=0, name="Rent", amount=15000.0, category="Housing"))
        household_service.create_expense(FixedExpense(
            id=0, name="Gym", amount=800.0, category="Health", is_active=False,
        ))

        assert household_service.monthly_plan() == {
            "income": 40000.0, "expenses": 15000.0, "free": 25000.0,
        }
