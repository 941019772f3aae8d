"""Full-graph JSON snapshot and restore, transaction CSV export, raw database copy.

Snapshot layout (ids inside are the ids of the exporting store):

    {"version": "1.1.0", "created_at": "<UTC ISO-8601>",
     "data": {"household_members": [{"member": {...}, "incomes": [...]}],
              "banks": [{"bank": {...}, "accounts": [...]}],
              "standalone_accounts": [...],
              "scheduled_transfers": [...], "fixed_expenses": [...],
              "budget_categories": [...]}}

1.0.0 snapshots have no "standalone_accounts" section and still restore.
"""
import csv
import json
import logging
from dataclasses import asdict

from database.account_dao import AccountDAO
from database.bank_dao import BankDAO
from database.db_manager import DatabaseManager
from database.household_dao import HouseholdDAO
from database.transaction_dao import TransactionDAO
from models.account import AccountInput
from models.household import (
    BudgetCategory, FixedExpense, MemberIncome, ScheduledTransfer,
)
from models.transaction import TransactionFilters
from utils.constants import (
    DEFAULT_BANK_COLOR, DEFAULT_CURRENCY, DEFAULT_MEMBER_COLOR, SNAPSHOT_VERSION,
    SUPPORTED_SNAPSHOT_MAJOR,
)
from utils.date_helpers import utc_timestamp
from utils.errors import InvalidInputError, StorageIOError

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "ID", "Date", "Amount", "Currency", "Type", "Description", "Status",
    "Category", "From account", "To account",
]

_SECTIONS = (
    "household_members", "banks", "standalone_accounts", "scheduled_transfers",
    "fixed_expenses", "budget_categories",
)


class BackupService:
    def __init__(
        self,
        db: DatabaseManager,
        account_dao: AccountDAO,
        bank_dao: BankDAO,
        household_dao: HouseholdDAO,
        tx_dao: TransactionDAO,
    ):
        self._db = db
        self._account_dao = account_dao
        self._bank_dao = bank_dao
        self._household_dao = household_dao
        self._tx_dao = tx_dao

    # ── Export ────────────────────────────────────────────────────────────────

    def export_full(self) -> dict:
        """Return the full snapshot dict (caller writes to disk)."""
        with self._db.unit_of_work():
            incomes_by_member: dict[int, list[dict]] = {}
            for income in self._household_dao.get_incomes():
                incomes_by_member.setdefault(income.member_id, []).append(asdict(income))

            data = {
                "household_members": [
                    {"member": asdict(m), "incomes": incomes_by_member.get(m.id, [])}
                    for m in self._household_dao.get_members()
                ],
                "banks": [
                    {
                        "bank": asdict(b),
                        "accounts": [asdict(a) for a in self._account_dao.get_by_bank(b.id)],
                    }
                    for b in self._bank_dao.get_all()
                ],
                "standalone_accounts": [
                    asdict(a) for a in self._account_dao.get_all() if a.bank_id is None
                ],
                "scheduled_transfers": [asdict(t) for t in self._household_dao.get_transfers()],
                "fixed_expenses": [asdict(e) for e in self._household_dao.get_expenses()],
                "budget_categories": [
                    asdict(c) for c in self._household_dao.get_budget_categories()
                ],
            }
        return {
            "version": SNAPSHOT_VERSION,
            "created_at": utc_timestamp(),
            "data": data,
        }

    def save_to_file(self, path: str) -> dict:
        snapshot = self.export_full()
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StorageIOError(f"Cannot write backup {path}: {e}") from e
        logger.info(f"Saved backup to {path}")
        return snapshot

    # ── Restore ───────────────────────────────────────────────────────────────

    def restore_from_file(self, path: str) -> dict:
        try:
            with open(path, "r", encoding="utf-8") as f:
                snapshot = json.load(f)
        except OSError as e:
            raise StorageIOError(f"Cannot read backup {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise InvalidInputError(f"{path} is not a valid backup file: {e}") from e
        return self.restore(snapshot)

    def restore(self, snapshot: dict) -> dict:
        """Replace the household graph with the snapshot's contents, all or nothing.

        Transactions, recurring payments and goals are not part of the snapshot. Rows
        that pointed at a replaced bank account are moved to the restored account with
        the same bank and account name.

        Returns {table: inserted_count}.
        """
        data = self._validate_snapshot(snapshot)
        with self._db.unit_of_work():
            replaced = self._bank_owned_accounts()
            standalone: dict[str, int] = {}
            for a in self._account_dao.get_all():
                if a.bank_id is None:
                    standalone.setdefault(a.name, a.id)
            self._clear()
            restored: dict[tuple[str, str], int] = {}
            try:
                stats = self._rebuild(data, standalone, restored)
            except InvalidInputError:
                raise
            except (KeyError, TypeError, ValueError) as e:
                raise InvalidInputError(f"Malformed backup entry: {e!r}") from e
            self._retire(replaced, restored)
        logger.info(f"Restored backup from {snapshot.get('created_at', '?')}: {stats}")
        return stats

    def _bank_owned_accounts(self) -> list[tuple[str, str, int]]:
        bank_names = {b.id: b.name for b in self._bank_dao.get_all()}
        return [
            (bank_names.get(a.bank_id), a.name, a.id)
            for a in self._account_dao.get_all() if a.bank_id is not None
        ]

    def _clear(self):
        # Children before parents. Deleting banks only detaches their accounts;
        # those are retired once the rebuilt accounts exist.
        self._household_dao.clear_household()
        self._bank_dao.delete_all()
        self._household_dao.clear_budget_categories()

    def _retire(self, replaced: list[tuple[str, str, int]], restored: dict[tuple[str, str], int]):
        for bank_name, name, old_id in replaced:
            new_id = restored.get((bank_name, name))
            if new_id is not None:
                self._account_dao.reassign_references(old_id, new_id)
            elif self._account_dao.has_references(old_id):
                logger.warning(
                    f"Account '{name}' ({bank_name}) is not in the backup but has ledger history; "
                    f"kept without a bank"
                )
                continue
            self._account_dao.delete(old_id)

    @staticmethod
    def _account_input(a: dict, bank_id: int | None, member_map: dict[int, int]) -> AccountInput:
        return AccountInput(
            name=a["name"],
            account_type=a.get("account_type") or "checking",
            bank_id=bank_id,
            owner_member_id=member_map.get(a.get("owner_member_id")),
            account_number=a.get("account_number"),
            currency=a.get("currency") or DEFAULT_CURRENCY,
            initial_balance=float(a.get("initial_balance") or 0.0),
            color=a.get("color"),
            credit_limit=a.get("credit_limit"),
            is_premium=bool(a.get("is_premium", False)),
            premium_min_flow=a.get("premium_min_flow"),
            active=bool(a.get("active", True)),
        )

    def _rebuild(self, data: dict, standalone: dict[str, int], restored: dict[tuple[str, str], int]) -> dict:
        stats = dict.fromkeys(
            ("household_members", "member_incomes", "banks", "accounts", "standalone_accounts",
             "scheduled_transfers", "fixed_expenses", "budget_categories"),
            0,
        )

        member_map: dict[int, int] = {}
        for entry in data["household_members"]:
            m = entry["member"]
            new = self._household_dao.create_member(
                m["name"], m.get("color") or DEFAULT_MEMBER_COLOR, m.get("avatar"),
            )
            member_map[m["id"]] = new.id
            stats["household_members"] += 1

        account_map: dict[int, int] = {}
        for entry in data["banks"]:
            b = entry["bank"]
            bank = self._bank_dao.create(
                b["name"], b.get("color") or DEFAULT_BANK_COLOR, b.get("notes"),
                b.get("active", True),
            )
            stats["banks"] += 1
            for a in entry.get("accounts", []):
                new_id = self._account_dao.insert_restored(
                    self._account_input(a, bank.id, member_map),
                    float(a.get("current_balance") or 0.0),
                )
                account_map[a["id"]] = new_id
                restored[(bank.name, a["name"])] = new_id
                stats["accounts"] += 1

        # Accounts without a bank are never deleted; reuse one of the same name
        for a in data["standalone_accounts"]:
            existing = standalone.get(a["name"])
            if existing is None:
                existing = self._account_dao.insert_restored(
                    self._account_input(a, None, member_map),
                    float(a.get("current_balance") or 0.0),
                )
                stats["standalone_accounts"] += 1
            account_map[a["id"]] = existing

        for entry in data["household_members"]:
            member_id = member_map[entry["member"]["id"]]
            for i in entry.get("incomes", []):
                self._household_dao.create_income(MemberIncome(
                    id=0,
                    member_id=member_id,
                    name=i["name"],
                    amount=float(i["amount"]),
                    frequency=i.get("frequency") or "monthly",
                    day_of_month=i.get("day_of_month"),
                    account_id=account_map.get(i.get("account_id")),
                    is_active=bool(i.get("is_active", True)),
                ))
                stats["member_incomes"] += 1

        for t in data["scheduled_transfers"]:
            from_id = account_map.get(t.get("from_account_id"))
            to_id = account_map.get(t.get("to_account_id"))
            if from_id is None or to_id is None:
                logger.warning(f"Skipping scheduled transfer '{t.get('name')}': account is not in the backup")
                continue
            self._household_dao.create_transfer(ScheduledTransfer(
                id=0,
                name=t["name"],
                from_account_id=from_id,
                to_account_id=to_id,
                amount=float(t["amount"]),
                day_of_month=int(t["day_of_month"]),
                description=t.get("description"),
                category=t.get("category"),
                display_order=int(t.get("display_order") or 0),
                is_active=bool(t.get("is_active", True)),
            ))
            stats["scheduled_transfers"] += 1

        for e in data["fixed_expenses"]:
            account_id = account_map.get(e.get("account_id"))
            if e.get("account_id") is not None and account_id is None:
                logger.warning(f"Fixed expense '{e.get('name')}': account is not in the backup, unlinked")
            self._household_dao.create_expense(FixedExpense(
                id=0,
                name=e["name"],
                amount=float(e["amount"]),
                category=e["category"],
                frequency=e.get("frequency") or "monthly",
                day_of_month=e.get("day_of_month"),
                account_id=account_id,
                assigned_to=e.get("assigned_to"),
                is_active=bool(e.get("is_active", True)),
                notes=e.get("notes"),
            ))
            stats["fixed_expenses"] += 1

        for c in data["budget_categories"]:
            self._household_dao.create_budget_category(BudgetCategory(
                id=0,
                name=c["name"],
                budget_type=c["budget_type"],
                monthly_limit=float(c.get("monthly_limit") or 0.0),
                color=c.get("color") or "#6B7280",
                icon=c.get("icon"),
                assigned_to=c.get("assigned_to"),
            ))
            stats["budget_categories"] += 1

        return stats

    @staticmethod
    def _validate_snapshot(snapshot) -> dict:
        if not isinstance(snapshot, dict):
            raise InvalidInputError("Backup must be a JSON object.")
        version = snapshot.get("version")
        if not isinstance(version, str) or version.split(".")[0] != SUPPORTED_SNAPSHOT_MAJOR:
            raise InvalidInputError(f"Unsupported backup version: {version!r}")
        data = snapshot.get("data")
        if not isinstance(data, dict):
            raise InvalidInputError("Backup has no data section.")
        normalized = {}
        for section in _SECTIONS:
            rows = data.get(section, [])
            if not isinstance(rows, list):
                raise InvalidInputError(f"Backup section '{section}' must be a list.")
            normalized[section] = rows
        return normalized

    # ── CSV / raw database ────────────────────────────────────────────────────

    def export_transactions_csv(self, path: str, filters: TransactionFilters | None = None) -> int:
        """Write transactions (newest first) to a CSV file; returns the row count."""
        with self._db.unit_of_work():
            transactions = self._tx_dao.get_filtered(filters or TransactionFilters())
        try:
            with open(path, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(CSV_HEADERS)
                for tx in transactions:
                    writer.writerow([
                        tx.id, tx.date, tx.amount, tx.currency, tx.type, tx.description,
                        tx.status, tx.category_name, tx.from_account_name, tx.to_account_name,
                    ])
        except OSError as e:
            raise StorageIOError(f"Cannot write {path}: {e}") from e
        logger.info(f"Exported {len(transactions)} transactions to {path}")
        return len(transactions)

    def export_database(self, path: str):
        self._db.export_to(path)

    def import_database(self, path: str) -> str | None:
        """Replace the live database with a copy of path; returns the safety-copy path."""
        return self._db.import_from(path)
