from database.account_dao import AccountDAO
from database.db_manager import DatabaseManager
from database.transaction_dao import TransactionDAO
from utils.date_helpers import current_month_str, parse_month, shift_month
from utils.errors import InvalidInputError


class ReportService:
    """Read-only summaries over completed transactions."""

    def __init__(self, db: DatabaseManager, tx_dao: TransactionDAO, account_dao: AccountDAO):
        self._db = db
        self._tx_dao = tx_dao
        self._account_dao = account_dao

    def get_summary(self, month: str | None = None) -> dict:
        """{income, expense, net} for one YYYY-MM month."""
        m = month or current_month_str()
        with self._db.unit_of_work():
            totals = self._tx_dao.get_totals_for_month(m)
        totals["net"] = totals["income"] - totals["expense"]
        return totals

    def get_category_breakdown(self, month: str | None = None) -> list[dict]:
        """Return [{category, color_hex, total}, ...] for pie chart."""
        m = month or current_month_str()
        with self._db.unit_of_work():
            return self._tx_dao.get_expense_by_category(m)

    def get_cash_flow(self, months: int = 6, end_month: str | None = None) -> list[dict]:
        """Return [{month, income, expense, net}] for the last N months, gaps filled with zeros."""
        end = parse_month(end_month or current_month_str())
        if end is None:
            raise InvalidInputError(f"Invalid month: {end_month}")
        month_keys = []
        for offset in range(months - 1, -1, -1):
            y, m = shift_month(end.year, end.month, -offset)
            month_keys.append(f"{y:04d}-{m:02d}")
        if not month_keys:
            return []

        with self._db.unit_of_work():
            rows = self._tx_dao.get_monthly_totals(month_keys[0], month_keys[-1])
        by_month = {r["month"]: r for r in rows}

        result = []
        for key in month_keys:
            row = by_month.get(key, {})
            income = row.get("income") or 0.0
            expense = row.get("expense") or 0.0
            result.append({"month": key, "income": income, "expense": expense, "net": income - expense})
        return result

    def get_balance_overview(self) -> dict:
        """Active account balances per currency: {currency: total}."""
        with self._db.unit_of_work():
            accounts = self._account_dao.get_all(active_only=True)
        totals: dict[str, float] = {}
        for a in accounts:
            totals[a.currency] = totals.get(a.currency, 0.0) + a.current_balance
        return totals
