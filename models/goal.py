from dataclasses import dataclass
from typing import Optional

from utils.constants import DEFAULT_CURRENCY


@dataclass
class SavingsGoal:
    id: int
    name: str
    target_amount: float
    current_amount: float = 0.0
    currency: str = DEFAULT_CURRENCY
    account_id: Optional[int] = None
    deadline: Optional[str] = None
    active: bool = True
    created_at: str = ""
    updated_at: str = ""

    @property
    def progress(self) -> float:
        """Fraction of the target reached, capped at 1.0."""
        if self.target_amount <= 0:
            return 1.0
        return min(self.current_amount / self.target_amount, 1.0)

    @property
    def remaining(self) -> float:
        return max(self.target_amount - self.current_amount, 0.0)


@dataclass
class GoalMovement:
    id: int
    goal_id: Optional[int]
    kind: str           # 'deposit' | 'withdrawal'
    amount: float
    date: str
    account_id: Optional[int] = None
    created_at: str = ""
