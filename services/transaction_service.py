import logging

from models.transaction import FlowGroup, Transaction, TransactionFilters, TransactionInput
from database.db_manager import DatabaseManager
from database.flow_dao import FlowGroupDAO
from database.transaction_dao import TransactionDAO
from services.account_service import AccountService
from services.ledger import Leg, inverse_legs, posting_legs
from utils.constants import (
    DEFAULT_CURRENCY, DEFAULT_FLOW_COLOR, TRANSACTION_STATUSES, TRANSACTION_TYPES,
)
from utils.date_helpers import format_date, parse_date
from utils.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


class TransactionService:
    def __init__(
        self,
        db: DatabaseManager,
        tx_dao: TransactionDAO,
        account_service: AccountService,
        flow_dao: FlowGroupDAO,
    ):
        self._db = db
        self._dao = tx_dao
        self._accounts = account_service
        self._flow_dao = flow_dao

    # ── Reads ────────────────────────────────────────────────────────────────

    def get_all(self) -> list[Transaction]:
        with self._db.unit_of_work():
            return self._dao.get_all()

    def get_by_id(self, tx_id: int) -> Transaction:
        with self._db.unit_of_work():
            tx = self._dao.get_by_id(tx_id)
        if tx is None:
            raise NotFoundError("Transaction", tx_id)
        return tx

    def get_filtered(self, filters: TransactionFilters) -> list[Transaction]:
        if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
            raise InvalidInputError("Start date must not be after end date.")
        with self._db.unit_of_work():
            return self._dao.get_filtered(filters)

    # ── Writes ───────────────────────────────────────────────────────────────

    def create(self, data: TransactionInput) -> Transaction:
        """Insert the row, then post its balance effect unless it is planned."""
        currency = self._validate(data)
        with self._db.unit_of_work():
            tx = self._dao.create(data, currency)
            if tx.status != "planned":
                self._post(posting_legs(tx.type, tx.amount, tx.from_account_id, tx.to_account_id))
        logger.info(f"Created {tx.status} {tx.type} {tx.id}: {tx.amount:.2f} {tx.currency}")
        return tx

    def update(self, tx_id: int, data: TransactionInput) -> Transaction:
        """Rewrites the row only. The previous balance effect is NOT reversed or reapplied."""
        currency = self._validate(data)
        with self._db.unit_of_work():
            if self._dao.get_by_id(tx_id) is None:
                raise NotFoundError("Transaction", tx_id)
            return self._dao.update(tx_id, data, currency)

    def delete(self, tx_id: int):
        """Reverse the balance effect (unless planned), then remove the row."""
        with self._db.unit_of_work():
            tx = self._dao.get_by_id(tx_id)
            if tx is None:
                raise NotFoundError("Transaction", tx_id)
            if tx.status != "planned":
                legs = posting_legs(tx.type, tx.amount, tx.from_account_id, tx.to_account_id)
                self._post(inverse_legs(legs))
            self._dao.delete(tx_id)
        logger.info(f"Deleted transaction {tx_id}")

    def complete(self, tx_id: int) -> Transaction:
        """Planned → completed; posts exactly what create would have posted."""
        with self._db.unit_of_work():
            tx = self._dao.get_by_id(tx_id)
            if tx is None:
                raise NotFoundError("Transaction", tx_id)
            if tx.status != "planned":
                raise InvalidInputError("Only planned transactions can be completed.")
            self._dao.set_status(tx_id, "completed")
            self._post(posting_legs(tx.type, tx.amount, tx.from_account_id, tx.to_account_id))
            tx = self._dao.get_by_id(tx_id)
        logger.info(f"Completed transaction {tx_id}")
        return tx

    # ── Flow groups ──────────────────────────────────────────────────────────

    def get_flow_groups(self) -> list[FlowGroup]:
        with self._db.unit_of_work():
            return self._flow_dao.get_all()

    def create_flow_group(
        self, name: str, description: str = "", color: str = DEFAULT_FLOW_COLOR
    ) -> FlowGroup:
        name = name.strip()
        if not name:
            raise InvalidInputError("Flow group name cannot be empty.")
        with self._db.unit_of_work():
            return self._flow_dao.create(name, description.strip(), color)

    def delete_flow_group(self, group_id: int):
        with self._db.unit_of_work():
            if not self._flow_dao.delete(group_id):
                raise NotFoundError("Flow group", group_id)

    def get_flow_group_transactions(self, group_id: int) -> list[Transaction]:
        with self._db.unit_of_work():
            if self._flow_dao.get_by_id(group_id) is None:
                raise NotFoundError("Flow group", group_id)
            return self._dao.get_by_flow_group(group_id)

    def add_to_flow_group(self, tx_id: int, group_id: int):
        with self._db.unit_of_work():
            if self._flow_dao.get_by_id(group_id) is None:
                raise NotFoundError("Flow group", group_id)
            if not self._dao.set_flow_group(tx_id, group_id):
                raise NotFoundError("Transaction", tx_id)

    def remove_from_flow_group(self, tx_id: int):
        with self._db.unit_of_work():
            if not self._dao.set_flow_group(tx_id, None):
                raise NotFoundError("Transaction", tx_id)

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _post(self, legs: list[Leg]):
        for account_id, delta in legs:
            self._accounts.adjust_balance(account_id, delta)

    def _validate(self, data: TransactionInput) -> str:
        """Normalizes data in place and returns the currency to store."""
        if data.type not in TRANSACTION_TYPES:
            raise InvalidInputError(f"Invalid type: {data.type}")
        if data.status not in TRANSACTION_STATUSES:
            raise InvalidInputError(f"Invalid status: {data.status}")
        if data.amount is None or data.amount < 0:
            raise InvalidInputError("Amount must be 0 or greater.")
        parsed = parse_date(data.date)
        if parsed is None:
            raise InvalidInputError("Invalid date format. Use YYYY-MM-DD.")
        data.date = format_date(parsed)
        if data.type == "transfer":
            if data.from_account_id is None:
                raise InvalidInputError("A transfer needs a source account.")
            if data.from_account_id == data.to_account_id:
                raise InvalidInputError("Cannot transfer to the same account.")
        data.description = (data.description or "").strip()
        data.notes = (data.notes or "").strip()
        if data.currency:
            return data.currency.strip().upper()
        return self._db.get_setting("default_currency", DEFAULT_CURRENCY)
