import logging
from datetime import date, timedelta

from models.recurring_payment import RecurringPayment, RecurringPaymentInput
from models.transaction import Transaction, TransactionInput
from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from services.account_service import AccountService
from services.ledger import posting_legs
from utils.constants import (
    DEFAULT_CURRENCY, FREQUENCIES, MONTHLY_DAY_CLAMP, MONTHLY_FALLBACK_DAYS,
    YEARLY_FALLBACK_DAYS,
)
from utils.date_helpers import format_date, parse_date, shift_month, today
from utils.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


def compute_next_date(
    frequency: str, value: int, day_of_period: int | None, from_date: date
) -> date:
    """Next occurrence after from_date.

    Monthly targets are clamped to day 28 so every month has them; a date that
    still cannot be built falls back to a fixed 30 (monthly) or 365 (yearly) days.
    """
    if frequency == "daily":
        return from_date + timedelta(days=value)
    if frequency == "weekly":
        return from_date + timedelta(weeks=value)
    if frequency == "monthly":
        y, m = shift_month(from_date.year, from_date.month, value)
        day = min(day_of_period or from_date.day, MONTHLY_DAY_CLAMP)
        try:
            return date(y, m, day)
        except ValueError:
            return from_date + timedelta(days=MONTHLY_FALLBACK_DAYS)
    if frequency == "yearly":
        try:
            return from_date.replace(year=from_date.year + value)
        except ValueError:
            return from_date + timedelta(days=YEARLY_FALLBACK_DAYS)
    return from_date + timedelta(days=value)


class RecurringService:
    def __init__(
        self,
        db: DatabaseManager,
        recurring_dao: RecurringDAO,
        tx_dao: TransactionDAO,
        account_service: AccountService,
    ):
        self._db = db
        self._dao = recurring_dao
        self._tx_dao = tx_dao
        self._accounts = account_service

    def get_all(self) -> list[RecurringPayment]:
        with self._db.unit_of_work():
            return self._dao.get_all()

    def get_by_id(self, payment_id: int) -> RecurringPayment:
        with self._db.unit_of_work():
            payment = self._dao.get_by_id(payment_id)
        if payment is None:
            raise NotFoundError("Recurring payment", payment_id)
        return payment

    def create(self, data: RecurringPaymentInput) -> RecurringPayment:
        """The first execution is start_date when given, else one period after today."""
        self._validate(data)
        if data.start_date:
            first = parse_date(data.start_date)
        else:
            first = compute_next_date(data.frequency, data.frequency_value, data.day_of_period, today())
        with self._db.unit_of_work():
            currency = self._currency(data)
            payment = self._dao.create(data, currency, format_date(first))
        logger.info(
            f"Created recurring payment {payment.id} '{payment.name}', "
            f"first run {payment.next_execution_date}"
        )
        return payment

    def update(self, payment_id: int, data: RecurringPaymentInput) -> RecurringPayment:
        """Scheduling dates stay put unless the frequency fields change."""
        self._validate(data)
        with self._db.unit_of_work():
            current = self._dao.get_by_id(payment_id)
            if current is None:
                raise NotFoundError("Recurring payment", payment_id)
            payment = self._dao.update(payment_id, data, self._currency(data))
            if (
                current.frequency, current.frequency_value, current.day_of_period
            ) != (data.frequency, data.frequency_value, data.day_of_period):
                nxt = compute_next_date(
                    data.frequency, data.frequency_value, data.day_of_period, today()
                )
                self._dao.set_schedule(payment_id, current.last_execution_date, format_date(nxt))
                payment = self._dao.get_by_id(payment_id)
                logger.info(f"Rescheduled recurring payment {payment_id} to {payment.next_execution_date}")
        return payment

    def delete(self, payment_id: int):
        with self._db.unit_of_work():
            if not self._dao.delete(payment_id):
                raise NotFoundError("Recurring payment", payment_id)
        logger.info(f"Deleted recurring payment {payment_id}")

    def sweep(self, as_of: date | None = None) -> list[Transaction]:
        """Post every active payment due on or before as_of (default: today).

        Each payment posts at most once per day and in its own unit of work, so a
        failure leaves earlier postings in place. Returns the new transactions.
        """
        ref = as_of or today()
        ref_str = format_date(ref)
        with self._db.unit_of_work():
            due = self._dao.get_due(ref_str)

        created: list[Transaction] = []
        for candidate in due:
            with self._db.unit_of_work():
                payment = self._dao.get_by_id(candidate.id)
                if payment is None or not payment.active:
                    continue
                if payment.last_execution_date == ref_str:
                    logger.debug(f"Recurring payment {payment.id} already posted on {ref_str}")
                    continue
                tx = self._tx_dao.create(
                    TransactionInput(
                        date=ref_str,
                        amount=payment.amount,
                        type="expense",
                        from_account_id=payment.account_id,
                        category_id=payment.category_id,
                        description=payment.description or payment.name,
                        status="completed",
                    ),
                    payment.currency,
                    recurring_payment_id=payment.id,
                )
                for account_id, delta in posting_legs("expense", payment.amount, payment.account_id, None):
                    self._accounts.adjust_balance(account_id, delta)
                nxt = compute_next_date(
                    payment.frequency, payment.frequency_value, payment.day_of_period, ref
                )
                self._dao.set_schedule(payment.id, ref_str, format_date(nxt))
            created.append(tx)
            logger.info(
                f"Posted recurring payment {payment.id} '{payment.name}': "
                f"{payment.amount:.2f} {payment.currency}, next {format_date(nxt)}"
            )

        if created:
            logger.info(f"Sweep {ref_str}: posted {len(created)} payment(s)")
        return created

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _currency(self, data: RecurringPaymentInput) -> str:
        if data.currency:
            return data.currency.strip().upper()
        return self._db.get_setting("default_currency", DEFAULT_CURRENCY)

    @staticmethod
    def _validate(data: RecurringPaymentInput):
        data.name = data.name.strip()
        if not data.name:
            raise InvalidInputError("Name cannot be empty.")
        if data.amount is None or data.amount < 0:
            raise InvalidInputError("Amount must be 0 or greater.")
        if data.frequency not in FREQUENCIES:
            raise InvalidInputError(
                f"Invalid frequency '{data.frequency}'. Must be one of: {', '.join(FREQUENCIES)}."
            )
        if data.frequency_value is None or data.frequency_value < 1:
            raise InvalidInputError("Frequency multiplier must be at least 1.")
        if data.day_of_period is not None and not 1 <= data.day_of_period <= 31:
            raise InvalidInputError("Day of period must be between 1 and 31.")
        if data.start_date and parse_date(data.start_date) is None:
            raise InvalidInputError("Invalid start date.")
        if data.account_id is None:
            raise InvalidInputError("A recurring payment needs an account.")
