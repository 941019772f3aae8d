import logging

from database.account_dao import AccountDAO
from database.bank_dao import BankDAO
from database.db_manager import DatabaseManager
from database.household_dao import HouseholdDAO
from models.bank import Bank
from models.household import (
    BudgetCategory, FixedExpense, HouseholdMember, MemberIncome, ScheduledTransfer,
)
from utils.constants import BUDGET_TYPES, DEFAULT_BANK_COLOR, DEFAULT_MEMBER_COLOR, FREQUENCIES
from utils.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


class HouseholdService:
    """Banks, members and the household plan (incomes, standing transfers,
    fixed expenses, budget categories). None of these rows move money."""

    def __init__(
        self,
        db: DatabaseManager,
        household_dao: HouseholdDAO,
        bank_dao: BankDAO,
        account_dao: AccountDAO,
    ):
        self._db = db
        self._dao = household_dao
        self._bank_dao = bank_dao
        self._account_dao = account_dao

    # ── Banks ────────────────────────────────────────────────────────────────

    def get_banks(self) -> list[Bank]:
        with self._db.unit_of_work():
            return self._bank_dao.get_all()

    def create_bank(self, name: str, color: str = DEFAULT_BANK_COLOR, notes: str | None = None) -> Bank:
        name = self._require_name(name, "Bank")
        with self._db.unit_of_work():
            if self._bank_dao.get_by_name(name):
                raise InvalidInputError(f"A bank named '{name}' already exists.")
            return self._bank_dao.create(name, color or DEFAULT_BANK_COLOR, notes)

    def update_bank(
        self, bank_id: int, name: str, color: str, notes: str | None = None, active: bool = True
    ) -> Bank:
        name = self._require_name(name, "Bank")
        with self._db.unit_of_work():
            if self._bank_dao.get_by_id(bank_id) is None:
                raise NotFoundError("Bank", bank_id)
            existing = self._bank_dao.get_by_name(name)
            if existing and existing.id != bank_id:
                raise InvalidInputError(f"A bank named '{name}' already exists.")
            return self._bank_dao.update(bank_id, name, color or DEFAULT_BANK_COLOR, notes, active)

    def delete_bank(self, bank_id: int):
        """Hard delete so the name can be reused; the bank's accounts are kept, unlinked."""
        with self._db.unit_of_work():
            if not self._bank_dao.delete(bank_id):
                raise NotFoundError("Bank", bank_id)
        logger.info(f"Deleted bank {bank_id}")

    # ── Members ──────────────────────────────────────────────────────────────

    def get_members(self) -> list[HouseholdMember]:
        with self._db.unit_of_work():
            return self._dao.get_members()

    def create_member(
        self, name: str, color: str = DEFAULT_MEMBER_COLOR, avatar: str | None = None
    ) -> HouseholdMember:
        name = self._require_name(name, "Member")
        with self._db.unit_of_work():
            return self._dao.create_member(name, color or DEFAULT_MEMBER_COLOR, avatar)

    def update_member(
        self, member_id: int, name: str, color: str, avatar: str | None = None
    ) -> HouseholdMember:
        name = self._require_name(name, "Member")
        with self._db.unit_of_work():
            if self._dao.get_member(member_id) is None:
                raise NotFoundError("Member", member_id)
            return self._dao.update_member(member_id, name, color or DEFAULT_MEMBER_COLOR, avatar)

    def delete_member(self, member_id: int):
        """Removes the member's incomes too; owned accounts lose their owner."""
        with self._db.unit_of_work():
            if not self._dao.delete_member(member_id):
                raise NotFoundError("Member", member_id)

    # ── Incomes ──────────────────────────────────────────────────────────────

    def get_incomes(self, member_id: int | None = None) -> list[MemberIncome]:
        with self._db.unit_of_work():
            return self._dao.get_incomes(member_id)

    def create_income(self, income: MemberIncome) -> MemberIncome:
        income.name = self._require_name(income.name, "Income")
        self._validate_amount(income.amount)
        self._validate_frequency(income.frequency)
        self._validate_day(income.day_of_month)
        with self._db.unit_of_work():
            if self._dao.get_member(income.member_id) is None:
                raise NotFoundError("Member", income.member_id)
            self._require_account(income.account_id)
            return self._dao.create_income(income)

    def update_income(self, income_id: int, income: MemberIncome) -> MemberIncome:
        income.name = self._require_name(income.name, "Income")
        self._validate_amount(income.amount)
        self._validate_frequency(income.frequency)
        self._validate_day(income.day_of_month)
        with self._db.unit_of_work():
            if self._dao.get_income(income_id) is None:
                raise NotFoundError("Income", income_id)
            self._require_account(income.account_id)
            return self._dao.update_income(income_id, income)

    def delete_income(self, income_id: int):
        with self._db.unit_of_work():
            if not self._dao.delete_income(income_id):
                raise NotFoundError("Income", income_id)

    # ── Scheduled transfers ──────────────────────────────────────────────────

    def get_transfers(self) -> list[ScheduledTransfer]:
        with self._db.unit_of_work():
            return self._dao.get_transfers()

    def create_transfer(self, transfer: ScheduledTransfer) -> ScheduledTransfer:
        self._validate_transfer(transfer)
        with self._db.unit_of_work():
            self._require_account(transfer.from_account_id)
            self._require_account(transfer.to_account_id)
            return self._dao.create_transfer(transfer)

    def update_transfer(self, transfer_id: int, transfer: ScheduledTransfer) -> ScheduledTransfer:
        self._validate_transfer(transfer)
        with self._db.unit_of_work():
            if self._dao.get_transfer(transfer_id) is None:
                raise NotFoundError("Scheduled transfer", transfer_id)
            self._require_account(transfer.from_account_id)
            self._require_account(transfer.to_account_id)
            return self._dao.update_transfer(transfer_id, transfer)

    def delete_transfer(self, transfer_id: int):
        with self._db.unit_of_work():
            if not self._dao.delete_transfer(transfer_id):
                raise NotFoundError("Scheduled transfer", transfer_id)

    # ── Fixed expenses ───────────────────────────────────────────────────────

    def get_expenses(self) -> list[FixedExpense]:
        with self._db.unit_of_work():
            return self._dao.get_expenses()

    def create_expense(self, expense: FixedExpense) -> FixedExpense:
        self._validate_expense(expense)
        with self._db.unit_of_work():
            self._require_account(expense.account_id)
            return self._dao.create_expense(expense)

    def update_expense(self, expense_id: int, expense: FixedExpense) -> FixedExpense:
        self._validate_expense(expense)
        with self._db.unit_of_work():
            if self._dao.get_expense(expense_id) is None:
                raise NotFoundError("Fixed expense", expense_id)
            self._require_account(expense.account_id)
            return self._dao.update_expense(expense_id, expense)

    def delete_expense(self, expense_id: int):
        with self._db.unit_of_work():
            if not self._dao.delete_expense(expense_id):
                raise NotFoundError("Fixed expense", expense_id)

    # ── Budget categories ────────────────────────────────────────────────────

    def get_budget_categories(self) -> list[BudgetCategory]:
        with self._db.unit_of_work():
            return self._dao.get_budget_categories()

    def create_budget_category(self, category: BudgetCategory) -> BudgetCategory:
        self._validate_budget_category(category)
        with self._db.unit_of_work():
            return self._dao.create_budget_category(category)

    def update_budget_category(self, category_id: int, category: BudgetCategory) -> BudgetCategory:
        self._validate_budget_category(category)
        with self._db.unit_of_work():
            if self._dao.get_budget_category(category_id) is None:
                raise NotFoundError("Budget category", category_id)
            return self._dao.update_budget_category(category_id, category)

    def delete_budget_category(self, category_id: int):
        with self._db.unit_of_work():
            if not self._dao.delete_budget_category(category_id):
                raise NotFoundError("Budget category", category_id)

    def monthly_plan(self) -> dict:
        """Active monthly incomes vs fixed expenses: {income, expenses, free}."""
        with self._db.unit_of_work():
            income = sum(
                i.amount for i in self._dao.get_incomes()
                if i.is_active and i.frequency == "monthly"
            )
            expenses = sum(
                e.amount for e in self._dao.get_expenses()
                if e.is_active and e.frequency == "monthly"
            )
        return {"income": income, "expenses": expenses, "free": income - expenses}

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _require_account(self, account_id: int | None):
        if account_id is not None and not self._account_dao.exists(account_id):
            raise NotFoundError("Account", account_id)

    @staticmethod
    def _require_name(name: str, what: str) -> str:
        name = (name or "").strip()
        if not name:
            raise InvalidInputError(f"{what} name cannot be empty.")
        return name

    @staticmethod
    def _validate_amount(amount: float):
        if amount is None or amount < 0:
            raise InvalidInputError("Amount must be 0 or greater.")

    @staticmethod
    def _validate_frequency(frequency: str):
        if frequency not in FREQUENCIES:
            raise InvalidInputError(f"Invalid frequency '{frequency}'.")

    @staticmethod
    def _validate_day(day: int | None):
        if day is not None and not 1 <= day <= 31:
            raise InvalidInputError("Day of month must be between 1 and 31.")

    def _validate_transfer(self, transfer: ScheduledTransfer):
        transfer.name = self._require_name(transfer.name, "Transfer")
        self._validate_amount(transfer.amount)
        self._validate_day(transfer.day_of_month)
        if transfer.day_of_month is None:
            raise InvalidInputError("A scheduled transfer needs a day of month.")
        if transfer.from_account_id == transfer.to_account_id:
            raise InvalidInputError("Cannot transfer to the same account.")

    def _validate_expense(self, expense: FixedExpense):
        expense.name = self._require_name(expense.name, "Expense")
        self._validate_amount(expense.amount)
        self._validate_frequency(expense.frequency)
        self._validate_day(expense.day_of_month)
        if not (expense.category or "").strip():
            raise InvalidInputError("A fixed expense needs a category.")

    def _validate_budget_category(self, category: BudgetCategory):
        category.name = self._require_name(category.name, "Budget category")
        if category.budget_type not in BUDGET_TYPES:
            raise InvalidInputError(
                f"Invalid budget type '{category.budget_type}'. "
                f"Must be one of: {', '.join(BUDGET_TYPES)}."
            )
        if category.monthly_limit is None or category.monthly_limit < 0:
            raise InvalidInputError("Monthly limit must be 0 or greater.")
