"""Posting rules and balance verification.

A transaction's balance effect is a list of (account_id, signed_delta) legs.
Every writer of account balances derives its legs from posting_legs() so the
forward, inverse and scheduled paths agree.
"""
import logging

from database.account_dao import AccountDAO
from database.db_manager import DatabaseManager
from database.goal_dao import GoalDAO
from database.transaction_dao import TransactionDAO
from utils.constants import BALANCE_TOLERANCE
from utils.errors import NotFoundError

logger = logging.getLogger(__name__)

Leg = tuple[int, float]


def posting_legs(
    tx_type: str,
    amount: float,
    from_account_id: int | None,
    to_account_id: int | None,
) -> list[Leg]:
    """Legs a completed transaction posts. Absent accounts are skipped silently.

    A transfer with no source posts neither leg.
    """
    legs: list[Leg] = []
    if tx_type == "expense":
        if from_account_id is not None:
            legs.append((from_account_id, -amount))
    elif tx_type == "income":
        if to_account_id is not None:
            legs.append((to_account_id, amount))
    elif tx_type == "transfer":
        if from_account_id is not None:
            legs.append((from_account_id, -amount))
            if to_account_id is not None:
                legs.append((to_account_id, amount))
    return legs


def inverse_legs(legs: list[Leg]) -> list[Leg]:
    return [(account_id, -delta) for account_id, delta in legs]


class LedgerService:
    """Recomputes balances from history to check the stored ones."""

    def __init__(
        self,
        db: DatabaseManager,
        account_dao: AccountDAO,
        tx_dao: TransactionDAO,
        goal_dao: GoalDAO,
    ):
        self._db = db
        self._account_dao = account_dao
        self._tx_dao = tx_dao
        self._goal_dao = goal_dao

    def expected_balance(self, account_id: int) -> float:
        with self._db.unit_of_work():
            account = self._account_dao.get_by_id(account_id)
            if account is None:
                raise NotFoundError("Account", account_id)
            return (
                account.initial_balance
                + self._tx_dao.get_posted_effect(account_id)
                + self._goal_dao.get_account_effect(account_id)
            )

    def verify(self) -> list[dict]:
        """Accounts whose stored balance drifts from history.

        Returns [{account_id, name, stored, expected, difference}].
        """
        drifted = []
        with self._db.unit_of_work():
            for account in self._account_dao.get_all():
                expected = self.expected_balance(account.id)
                difference = account.current_balance - expected
                if abs(difference) > BALANCE_TOLERANCE:
                    drifted.append({
                        "account_id": account.id,
                        "name": account.name,
                        "stored": account.current_balance,
                        "expected": expected,
                        "difference": difference,
                    })
        if drifted:
            logger.warning(f"{len(drifted)} account(s) out of balance")
        return drifted
