"""Shared fixtures: an initialized in-memory store wired to every DAO and service."""
import pytest

from database.account_dao import AccountDAO
from database.bank_dao import BankDAO
from database.category_dao import CategoryDAO
from database.db_manager import DatabaseManager
from database.flow_dao import FlowGroupDAO
from database.goal_dao import GoalDAO
from database.household_dao import HouseholdDAO
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from models.account import AccountInput
from services.account_service import AccountService
from services.backup_service import BackupService
from services.category_service import CategoryService
from services.goal_service import GoalService
from services.household_service import HouseholdService
from services.ledger import LedgerService
from services.recurring_service import RecurringService
from services.report_service import ReportService
from services.transaction_service import TransactionService


@pytest.fixture
def db():
    manager = DatabaseManager(":memory:")
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def account_dao(db):
    return AccountDAO(db)


@pytest.fixture
def tx_dao(db):
    return TransactionDAO(db)


@pytest.fixture
def recurring_dao(db):
    return RecurringDAO(db)


@pytest.fixture
def bank_dao(db):
    return BankDAO(db)


@pytest.fixture
def household_dao(db):
    return HouseholdDAO(db)


@pytest.fixture
def goal_dao(db):
    return GoalDAO(db)


@pytest.fixture
def account_service(db, account_dao):
    return AccountService(db, account_dao)


@pytest.fixture
def tx_service(db, tx_dao, account_service):
    return TransactionService(db, tx_dao, account_service, FlowGroupDAO(db))


@pytest.fixture
def recurring_service(db, recurring_dao, tx_dao, account_service):
    return RecurringService(db, recurring_dao, tx_dao, account_service)


@pytest.fixture
def ledger(db, account_dao, tx_dao, goal_dao):
    return LedgerService(db, account_dao, tx_dao, goal_dao)


@pytest.fixture
def backup_service(db, account_dao, bank_dao, household_dao, tx_dao):
    return BackupService(db, account_dao, bank_dao, household_dao, tx_dao)


@pytest.fixture
def household_service(db, household_dao, bank_dao, account_dao):
    return HouseholdService(db, household_dao, bank_dao, account_dao)


@pytest.fixture
def category_service(db):
    return CategoryService(db, CategoryDAO(db))


@pytest.fixture
def goal_service(db, goal_dao, account_service):
    return GoalService(db, goal_dao, account_service)


@pytest.fixture
def report_service(db, tx_dao, account_dao):
    return ReportService(db, tx_dao, account_dao)


@pytest.fixture
def make_account(account_service):
    """Factory: make_account("Checking", initial_balance=1000.0, **fields)."""
    def _make(name: str = "Checking", initial_balance: float = 0.0, **fields):
        return account_service.create(
            AccountInput(name=name, initial_balance=initial_balance, **fields)
        )
    return _make
