import logging

from models.account import Account, AccountInput
from database.account_dao import AccountDAO
from database.db_manager import DatabaseManager
from utils.constants import ACCOUNT_TYPES
from utils.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, db: DatabaseManager, account_dao: AccountDAO):
        self._db = db
        self._dao = account_dao

    def get_all(self, active_only: bool = False) -> list[Account]:
        with self._db.unit_of_work():
            return self._dao.get_all(active_only)

    def get_by_id(self, account_id: int) -> Account | None:
        with self._db.unit_of_work():
            return self._dao.get_by_id(account_id)

    def create(self, data: AccountInput) -> Account:
        self._validate(data)
        with self._db.unit_of_work():
            account = self._dao.create(data)
        logger.info(f"Created account {account.id} '{account.name}'")
        return account

    def update(self, account_id: int, data: AccountInput) -> Account:
        """Rewrites descriptive fields. Balances are never touched here."""
        self._validate(data)
        with self._db.unit_of_work():
            if not self._dao.exists(account_id):
                raise NotFoundError("Account", account_id)
            return self._dao.update(account_id, data)

    def soft_delete(self, account_id: int):
        with self._db.unit_of_work():
            if not self._dao.soft_delete(account_id):
                raise NotFoundError("Account", account_id)
        logger.info(f"Deactivated account {account_id}")

    # ── Balance primitive ────────────────────────────────────────────────────

    def adjust_balance(self, account_id: int, delta: float):
        """Atomic increment of current_balance. Negative results are allowed."""
        with self._db.unit_of_work():
            if not self._dao.adjust_balance(account_id, delta):
                raise NotFoundError("Account", account_id)
        logger.debug(f"Account {account_id} balance {delta:+.2f}")

    def get_balance(self, account_id: int) -> float:
        with self._db.unit_of_work():
            balance = self._dao.get_balance(account_id)
        if balance is None:
            raise NotFoundError("Account", account_id)
        return balance

    def set_balance(self, account_id: int, amount: float) -> Account:
        """Correction: overwrites initial and current balance alike."""
        with self._db.unit_of_work():
            if not self._dao.set_balance(account_id, amount):
                raise NotFoundError("Account", account_id)
            account = self._dao.get_by_id(account_id)
        logger.info(f"Balance of account {account_id} set to {amount:.2f}")
        return account

    # ── Helpers ──────────────────────────────────────────────────────────────

    @staticmethod
    def _validate(data: AccountInput):
        data.name = data.name.strip()
        if not data.name:
            raise InvalidInputError("Account name cannot be empty.")
        if data.account_type not in ACCOUNT_TYPES:
            raise InvalidInputError(
                f"Invalid account type '{data.account_type}'. "
                f"Must be one of: {', '.join(ACCOUNT_TYPES)}."
            )
        if not data.currency or len(data.currency.strip()) != 3:
            raise InvalidInputError("Currency must be a three-letter code.")
        data.currency = data.currency.strip().upper()
        if data.credit_limit is not None and data.credit_limit < 0:
            raise InvalidInputError("Credit limit must be 0 or greater.")
