"""Household planning rows: members and their incomes, standing transfers,
fixed expenses and budget categories. These carry no balance effect."""
from dataclasses import dataclass
from typing import Optional

from utils.constants import DEFAULT_MEMBER_COLOR


@dataclass
class HouseholdMember:
    id: int
    name: str
    color: str = DEFAULT_MEMBER_COLOR
    avatar: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class MemberIncome:
    id: int
    member_id: int
    name: str
    amount: float
    frequency: str = "monthly"
    day_of_month: Optional[int] = None
    account_id: Optional[int] = None
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""


@dataclass
class ScheduledTransfer:
    id: int
    name: str
    from_account_id: int
    to_account_id: int
    amount: float
    day_of_month: int
    description: Optional[str] = None
    category: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""


@dataclass
class FixedExpense:
    id: int
    name: str
    amount: float
    category: str
    frequency: str = "monthly"
    day_of_month: Optional[int] = None
    account_id: Optional[int] = None
    assigned_to: Optional[str] = None
    is_active: bool = True
    notes: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class BudgetCategory:
    id: int
    name: str
    budget_type: str        # 'fixed' | 'variable' | 'savings'
    monthly_limit: float
    color: str = "#6B7280"
    icon: Optional[str] = None
    assigned_to: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
