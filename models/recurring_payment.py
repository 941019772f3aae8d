from dataclasses import dataclass
from typing import Optional

from utils.constants import DEFAULT_CURRENCY


@dataclass
class RecurringPayment:
    id: int
    name: str
    amount: float
    account_id: int
    frequency: str                  # 'daily' | 'weekly' | 'monthly' | 'yearly'
    frequency_value: int = 1
    day_of_period: Optional[int] = None
    currency: str = DEFAULT_CURRENCY
    category_id: Optional[int] = None
    description: str = ""
    active: bool = True
    next_execution_date: Optional[str] = None
    last_execution_date: Optional[str] = None
    account_name: str = ""
    created_at: str = ""
    updated_at: str = ""


@dataclass
class RecurringPaymentInput:
    name: str
    amount: float
    account_id: int
    frequency: str
    frequency_value: int = 1
    day_of_period: Optional[int] = None
    currency: Optional[str] = None
    category_id: Optional[int] = None
    description: str = ""
    active: bool = True
    start_date: Optional[str] = None    # anchor for the first next_execution_date
