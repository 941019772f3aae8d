from dataclasses import dataclass
from typing import Optional

from utils.constants import DEFAULT_BANK_COLOR


@dataclass
class Bank:
    id: int
    name: str
    color: str = DEFAULT_BANK_COLOR
    notes: Optional[str] = None
    active: bool = True
    created_at: str = ""
    updated_at: str = ""
