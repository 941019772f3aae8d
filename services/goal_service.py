import logging

from database.db_manager import DatabaseManager
from database.goal_dao import GoalDAO
from models.goal import GoalMovement, SavingsGoal
from services.account_service import AccountService
from utils.constants import BALANCE_TOLERANCE, DEFAULT_CURRENCY
from utils.date_helpers import format_date, parse_date, today_str
from utils.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


class GoalService:
    """Savings goals. Money moved into a goal leaves its linked account and
    comes back on withdrawal; both directions go through the balance primitive."""

    def __init__(self, db: DatabaseManager, goal_dao: GoalDAO, account_service: AccountService):
        self._db = db
        self._dao = goal_dao
        self._accounts = account_service

    def get_all(self, active_only: bool = False) -> list[SavingsGoal]:
        with self._db.unit_of_work():
            return self._dao.get_all(active_only)

    def get_by_id(self, goal_id: int) -> SavingsGoal:
        with self._db.unit_of_work():
            goal = self._dao.get_by_id(goal_id)
        if goal is None:
            raise NotFoundError("Goal", goal_id)
        return goal

    def get_movements(self, goal_id: int) -> list[GoalMovement]:
        with self._db.unit_of_work():
            return self._dao.get_movements(goal_id)

    def create(
        self,
        name: str,
        target_amount: float,
        account_id: int | None = None,
        deadline: str | None = None,
        currency: str | None = None,
    ) -> SavingsGoal:
        name, deadline = self._validate(name, target_amount, deadline)
        with self._db.unit_of_work():
            if account_id is not None:
                self._require_account(account_id)
            currency = (currency or self._db.get_setting("default_currency", DEFAULT_CURRENCY)).upper()
            return self._dao.create(name, target_amount, currency, account_id, deadline)

    def update(
        self,
        goal_id: int,
        name: str,
        target_amount: float,
        account_id: int | None = None,
        deadline: str | None = None,
        active: bool = True,
    ) -> SavingsGoal:
        name, deadline = self._validate(name, target_amount, deadline)
        with self._db.unit_of_work():
            if self._dao.get_by_id(goal_id) is None:
                raise NotFoundError("Goal", goal_id)
            if account_id is not None:
                self._require_account(account_id)
            return self._dao.update(goal_id, name, target_amount, account_id, deadline, active)

    def delete(self, goal_id: int):
        """Whatever the goal still holds goes back to its account first."""
        with self._db.unit_of_work():
            goal = self._dao.get_by_id(goal_id)
            if goal is None:
                raise NotFoundError("Goal", goal_id)
            if goal.current_amount > BALANCE_TOLERANCE and goal.account_id is not None:
                self._move(goal, "withdrawal", goal.current_amount, today_str())
            self._dao.delete(goal_id)
        logger.info(f"Deleted goal {goal_id}")

    def deposit(self, goal_id: int, amount: float, date: str | None = None) -> SavingsGoal:
        """Move amount from the goal's account into the goal."""
        self._validate_amount(amount)
        with self._db.unit_of_work():
            goal = self._dao.get_by_id(goal_id)
            if goal is None:
                raise NotFoundError("Goal", goal_id)
            self._move(goal, "deposit", amount, self._movement_date(date))
            return self._dao.get_by_id(goal_id)

    def withdraw(self, goal_id: int, amount: float, date: str | None = None) -> SavingsGoal:
        """Move amount out of the goal back to its account."""
        self._validate_amount(amount)
        with self._db.unit_of_work():
            goal = self._dao.get_by_id(goal_id)
            if goal is None:
                raise NotFoundError("Goal", goal_id)
            if amount > goal.current_amount + BALANCE_TOLERANCE:
                raise InvalidInputError(
                    f"Cannot withdraw {amount:.2f}; the goal holds {goal.current_amount:.2f}."
                )
            self._move(goal, "withdrawal", amount, self._movement_date(date))
            return self._dao.get_by_id(goal_id)

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _move(self, goal: SavingsGoal, kind: str, amount: float, date: str):
        if goal.account_id is not None:
            delta = -amount if kind == "deposit" else amount
            self._accounts.adjust_balance(goal.account_id, delta)
        self._dao.adjust_amount(goal.id, amount if kind == "deposit" else -amount)
        self._dao.add_movement(goal.id, kind, amount, date, goal.account_id)
        logger.info(f"Goal {goal.id} {kind} {amount:.2f}")

    def _require_account(self, account_id: int):
        if self._accounts.get_by_id(account_id) is None:
            raise NotFoundError("Account", account_id)

    @staticmethod
    def _movement_date(date: str | None) -> str:
        if not date:
            return today_str()
        parsed = parse_date(date)
        if parsed is None:
            raise InvalidInputError("Invalid date format. Use YYYY-MM-DD.")
        return format_date(parsed)

    @staticmethod
    def _validate_amount(amount: float):
        if amount is None or amount <= 0:
            raise InvalidInputError("Amount must be positive.")

    @staticmethod
    def _validate(name: str, target_amount: float, deadline: str | None) -> tuple[str, str | None]:
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Goal name cannot be empty.")
        if target_amount is None or target_amount <= 0:
            raise InvalidInputError("Target amount must be positive.")
        if deadline:
            parsed = parse_date(deadline)
            if parsed is None:
                raise InvalidInputError("Invalid deadline. Use YYYY-MM-DD.")
            deadline = format_date(parsed)
        return name, deadline or None
