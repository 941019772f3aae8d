from dataclasses import dataclass


@dataclass
class Category:
    id: int
    name: str
    category_type: str      # 'income' | 'expense' | 'both'
    color_hex: str = "#6B7280"
    is_system: bool = False
