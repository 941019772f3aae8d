from dataclasses import dataclass
from typing import Optional

from utils.constants import DEFAULT_CURRENCY

ACCOUNT_TYPE_LABELS = {
    "checking": "Checking",
    "savings": "Savings",
    "credit": "Credit",
    "cash": "Cash",
}


@dataclass
class Account:
    id: int
    name: str
    account_type: str = "checking"
    bank_id: Optional[int] = None
    owner_member_id: Optional[int] = None
    account_number: Optional[str] = None
    currency: str = DEFAULT_CURRENCY
    initial_balance: float = 0.0
    current_balance: float = 0.0
    color: Optional[str] = None
    credit_limit: Optional[float] = None
    is_premium: bool = False
    premium_min_flow: Optional[float] = None
    active: bool = True
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_credit_account(self) -> bool:
        return self.account_type == "credit"

    @property
    def available_credit(self) -> Optional[float]:
        """Remaining credit line; None for non-credit accounts."""
        if not self.is_credit_account or self.credit_limit is None:
            return None
        return self.credit_limit + self.current_balance


@dataclass
class AccountInput:
    """Fields accepted by AccountService.create / update."""
    name: str
    account_type: str = "checking"
    bank_id: Optional[int] = None
    owner_member_id: Optional[int] = None
    account_number: Optional[str] = None
    currency: str = DEFAULT_CURRENCY
    initial_balance: float = 0.0    # ignored by update
    color: Optional[str] = None
    credit_limit: Optional[float] = None
    is_premium: bool = False
    premium_min_flow: Optional[float] = None
    active: bool = True
