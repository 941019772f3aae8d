import os

APP_NAME = "Household Ledger"
APP_WIDTH = 1200
APP_HEIGHT = 750
DB_FILE = "finance.db"

DEFAULT_CURRENCY = "CZK"
DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"

SNAPSHOT_VERSION = "1.1.0"
SUPPORTED_SNAPSHOT_MAJOR = "1"

# Stored vs recomputed balances may differ by float noise only
BALANCE_TOLERANCE = 0.005

ACCOUNT_TYPES = ("checking", "savings", "credit", "cash")
TRANSACTION_TYPES = ("expense", "income", "transfer")
TRANSACTION_STATUSES = ("completed", "planned")
FREQUENCIES = ("daily", "weekly", "monthly", "yearly")
CATEGORY_TYPES = ("income", "expense", "both")
BUDGET_TYPES = ("fixed", "variable", "savings")

MONTHLY_DAY_CLAMP = 28
MONTHLY_FALLBACK_DAYS = 30
YEARLY_FALLBACK_DAYS = 365

DEFAULT_CATEGORIES = [
    {"name": "Income",   "category_type": "income",  "color_hex": "#10B981", "is_system": 1},
    {"name": "Expense",  "category_type": "expense", "color_hex": "#EF4444", "is_system": 1},
    {"name": "Transfer", "category_type": "both",    "color_hex": "#3B82F6", "is_system": 1},
]

DEFAULT_SETTINGS = [
    ("default_currency", DEFAULT_CURRENCY),
    ("appearance_mode", "system"),
    ("date_format", "DD.MM.YYYY"),
    ("last_account_id", ""),
]

DEFAULT_BANK_COLOR = "#10B981"
DEFAULT_MEMBER_COLOR = "#3B82F6"
DEFAULT_FLOW_COLOR = "#F59E0B"

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "household_ledger.log"
LOG_LEVEL = os.getenv("LEDGER_LOG_LEVEL", "INFO")

SEVERITY_COLORS = {
    "error":   "#F44336",
    "warning": "#FF9800",
    "info":    "#2196F3",
}
