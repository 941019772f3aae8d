"""Row access for the household planning tables.

Create methods take a model instance whose id is ignored and return the stored row.
"""
from typing import Optional
from database.db_manager import DatabaseManager
from models.household import (
    BudgetCategory, FixedExpense, HouseholdMember, MemberIncome, ScheduledTransfer,
)


class HouseholdDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    # ── members ───────────────────────────────────────────────────────────────

    def _row_to_member(self, row) -> HouseholdMember:
        return HouseholdMember(
            id=row["id"],
            name=row["name"],
            color=row["color"],
            avatar=row["avatar"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_members(self) -> list[HouseholdMember]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM household_members ORDER BY name, id").fetchall()
        return [self._row_to_member(r) for r in rows]

    def get_member(self, member_id: int) -> Optional[HouseholdMember]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM household_members WHERE id = ?", (member_id,)
        ).fetchone()
        return self._row_to_member(row) if row else None

    def create_member(self, name: str, color: str, avatar: str | None = None) -> HouseholdMember:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "INSERT INTO household_members(name, color, avatar) VALUES (?, ?, ?)",
            (name, color, avatar),
        )
        return self.get_member(cursor.lastrowid)

    def update_member(self, member_id: int, name: str, color: str, avatar: str | None) -> Optional[HouseholdMember]:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE household_members SET name = ?, color = ?, avatar = ?,
                   updated_at = datetime('now')
               WHERE id = ?""",
            (name, color, avatar, member_id),
        )
        return self.get_member(member_id)

    def delete_member(self, member_id: int) -> bool:
        conn = self._db.get_connection()
        return conn.execute(
            "DELETE FROM household_members WHERE id = ?", (member_id,)
        ).rowcount > 0

    # ── incomes ───────────────────────────────────────────────────────────────

    def _row_to_income(self, row) -> MemberIncome:
        return MemberIncome(
            id=row["id"],
            member_id=row["member_id"],
            name=row["name"],
            amount=row["amount"],
            frequency=row["frequency"],
            day_of_month=row["day_of_month"],
            account_id=row["account_id"],
            is_active=bool(row["is_active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_incomes(self, member_id: int | None = None) -> list[MemberIncome]:
        conn = self._db.get_connection()
        if member_id is None:
            rows = conn.execute("SELECT * FROM member_incomes ORDER BY member_id, id").fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM member_incomes WHERE member_id = ? ORDER BY id", (member_id,)
            ).fetchall()
        return [self._row_to_income(r) for r in rows]

    def get_income(self, income_id: int) -> Optional[MemberIncome]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM member_incomes WHERE id = ?", (income_id,)
        ).fetchone()
        return self._row_to_income(row) if row else None

    def create_income(self, income: MemberIncome) -> MemberIncome:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO member_incomes
               (member_id, name, amount, frequency, day_of_month, account_id, is_active)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                income.member_id, income.name, income.amount, income.frequency,
                income.day_of_month, income.account_id, int(income.is_active),
            ),
        )
        return self.get_income(cursor.lastrowid)

    def update_income(self, income_id: int, income: MemberIncome) -> Optional[MemberIncome]:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE member_incomes
               SET name = ?, amount = ?, frequency = ?, day_of_month = ?, account_id = ?,
                   is_active = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (
                income.name, income.amount, income.frequency, income.day_of_month,
                income.account_id, int(income.is_active), income_id,
            ),
        )
        return self.get_income(income_id)

    def delete_income(self, income_id: int) -> bool:
        conn = self._db.get_connection()
        return conn.execute(
            "DELETE FROM member_incomes WHERE id = ?", (income_id,)
        ).rowcount > 0

    # ── scheduled transfers ───────────────────────────────────────────────────

    def _row_to_transfer(self, row) -> ScheduledTransfer:
        return ScheduledTransfer(
            id=row["id"],
            name=row["name"],
            from_account_id=row["from_account_id"],
            to_account_id=row["to_account_id"],
            amount=row["amount"],
            day_of_month=row["day_of_month"],
            description=row["description"],
            category=row["category"],
            display_order=row["display_order"],
            is_active=bool(row["is_active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_transfers(self) -> list[ScheduledTransfer]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM scheduled_transfers ORDER BY display_order, day_of_month, id"
        ).fetchall()
        return [self._row_to_transfer(r) for r in rows]

    def get_transfer(self, transfer_id: int) -> Optional[ScheduledTransfer]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM scheduled_transfers WHERE id = ?", (transfer_id,)
        ).fetchone()
        return self._row_to_transfer(row) if row else None

    def create_transfer(self, transfer: ScheduledTransfer) -> ScheduledTransfer:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO scheduled_transfers
               (name, from_account_id, to_account_id, amount, day_of_month, description,
                category, display_order, is_active)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                transfer.name, transfer.from_account_id, transfer.to_account_id,
                transfer.amount, transfer.day_of_month, transfer.description,
                transfer.category, transfer.display_order, int(transfer.is_active),
            ),
        )
        return self.get_transfer(cursor.lastrowid)

    def update_transfer(self, transfer_id: int, transfer: ScheduledTransfer) -> Optional[ScheduledTransfer]:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE scheduled_transfers
               SET name = ?, from_account_id = ?, to_account_id = ?, amount = ?,
                   day_of_month = ?, description = ?, category = ?, display_order = ?,
                   is_active = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (
                transfer.name, transfer.from_account_id, transfer.to_account_id,
                transfer.amount, transfer.day_of_month, transfer.description,
                transfer.category, transfer.display_order, int(transfer.is_active),
                transfer_id,
            ),
        )
        return self.get_transfer(transfer_id)

    def delete_transfer(self, transfer_id: int) -> bool:
        conn = self._db.get_connection()
        return conn.execute(
            "DELETE FROM scheduled_transfers WHERE id = ?", (transfer_id,)
        ).rowcount > 0

    # ── fixed expenses ────────────────────────────────────────────────────────

    def _row_to_expense(self, row) -> FixedExpense:
        return FixedExpense(
            id=row["id"],
            name=row["name"],
            amount=row["amount"],
            category=row["category"],
            frequency=row["frequency"],
            day_of_month=row["day_of_month"],
            account_id=row["account_id"],
            assigned_to=row["assigned_to"],
            is_active=bool(row["is_active"]),
            notes=row["notes"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_expenses(self) -> list[FixedExpense]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM fixed_expenses ORDER BY category, name, id"
        ).fetchall()
        return [self._row_to_expense(r) for r in rows]

    def get_expense(self, expense_id: int) -> Optional[FixedExpense]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM fixed_expenses WHERE id = ?", (expense_id,)
        ).fetchone()
        return self._row_to_expense(row) if row else None

    def create_expense(self, expense: FixedExpense) -> FixedExpense:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO fixed_expenses
               (name, amount, category, frequency, day_of_month, account_id,
                assigned_to, is_active, notes)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                expense.name, expense.amount, expense.category, expense.frequency,
                expense.day_of_month, expense.account_id, expense.assigned_to,
                int(expense.is_active), expense.notes,
            ),
        )
        return self.get_expense(cursor.lastrowid)

    def update_expense(self, expense_id: int, expense: FixedExpense) -> Optional[FixedExpense]:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE fixed_expenses
               SET name = ?, amount = ?, category = ?, frequency = ?, day_of_month = ?,
                   account_id = ?, assigned_to = ?, is_active = ?, notes = ?,
                   updated_at = datetime('now')
               WHERE id = ?""",
            (
                expense.name, expense.amount, expense.category, expense.frequency,
                expense.day_of_month, expense.account_id, expense.assigned_to,
                int(expense.is_active), expense.notes, expense_id,
            ),
        )
        return self.get_expense(expense_id)

    def delete_expense(self, expense_id: int) -> bool:
        conn = self._db.get_connection()
        return conn.execute(
            "DELETE FROM fixed_expenses WHERE id = ?", (expense_id,)
        ).rowcount > 0

    # ── budget categories ─────────────────────────────────────────────────────

    def _row_to_budget_category(self, row) -> BudgetCategory:
        return BudgetCategory(
            id=row["id"],
            name=row["name"],
            budget_type=row["budget_type"],
            monthly_limit=row["monthly_limit"],
            color=row["color"],
            icon=row["icon"],
            assigned_to=row["assigned_to"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_budget_categories(self) -> list[BudgetCategory]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM budget_categories ORDER BY budget_type, name, id"
        ).fetchall()
        return [self._row_to_budget_category(r) for r in rows]

    def get_budget_category(self, category_id: int) -> Optional[BudgetCategory]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM budget_categories WHERE id = ?", (category_id,)
        ).fetchone()
        return self._row_to_budget_category(row) if row else None

    def create_budget_category(self, category: BudgetCategory) -> BudgetCategory:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO budget_categories
               (name, budget_type, monthly_limit, color, icon, assigned_to)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                category.name, category.budget_type, category.monthly_limit,
                category.color, category.icon, category.assigned_to,
            ),
        )
        return self.get_budget_category(cursor.lastrowid)

    def update_budget_category(self, category_id: int, category: BudgetCategory) -> Optional[BudgetCategory]:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE budget_categories
               SET name = ?, budget_type = ?, monthly_limit = ?, color = ?, icon = ?,
                   assigned_to = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (
                category.name, category.budget_type, category.monthly_limit,
                category.color, category.icon, category.assigned_to, category_id,
            ),
        )
        return self.get_budget_category(category_id)

    def delete_budget_category(self, category_id: int) -> bool:
        conn = self._db.get_connection()
        return conn.execute(
            "DELETE FROM budget_categories WHERE id = ?", (category_id,)
        ).rowcount > 0

    # ── bulk clear (restore) ──────────────────────────────────────────────────

    def clear_household(self) -> None:
        """Delete incomes, members, scheduled transfers, fixed expenses, child tables first."""
        conn = self._db.get_connection()
        conn.execute("DELETE FROM member_incomes")
        conn.execute("DELETE FROM household_members")
        conn.execute("DELETE FROM scheduled_transfers")
        conn.execute("DELETE FROM fixed_expenses")

    def clear_budget_categories(self) -> None:
        conn = self._db.get_connection()
        conn.execute("DELETE FROM budget_categories")
