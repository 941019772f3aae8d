from dataclasses import dataclass, field
from typing import Optional

from utils.constants import DEFAULT_CURRENCY


@dataclass
class Transaction:
    id: int
    date: str               # 'YYYY-MM-DD'
    amount: float
    type: str               # 'expense' | 'income' | 'transfer'
    currency: str = DEFAULT_CURRENCY
    from_account_id: Optional[int] = None
    to_account_id: Optional[int] = None
    category_id: Optional[int] = None
    category_name: str = ""
    from_account_name: str = ""
    to_account_name: str = ""
    description: str = ""
    notes: str = ""
    status: str = "completed"   # 'completed' | 'planned'
    recurring_payment_id: Optional[int] = None
    flow_group_id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_planned(self) -> bool:
        return self.status == "planned"


@dataclass
class TransactionInput:
    """Fields accepted by TransactionService.create / update."""
    date: str
    amount: float
    type: str
    currency: Optional[str] = None
    from_account_id: Optional[int] = None
    to_account_id: Optional[int] = None
    category_id: Optional[int] = None
    description: str = ""
    notes: str = ""
    status: str = "completed"


@dataclass
class TransactionFilters:
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    search: Optional[str] = None
    account_ids: list[int] = field(default_factory=list)
    category_ids: list[int] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    statuses: list[str] = field(default_factory=list)


@dataclass
class FlowGroup:
    id: int
    name: str
    description: str = ""
    color: str = ""
    created_at: str = ""
