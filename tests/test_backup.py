"""
Tests for JSON snapshot backup/restore, CSV export and raw database copies.
"""
import csv
import json

import pytest

from database.account_dao import AccountDAO
from database.bank_dao import BankDAO
from database.db_manager import DatabaseManager
from database.household_dao import HouseholdDAO
from database.transaction_dao import TransactionDAO
from models.account import AccountInput
from models.household import BudgetCategory, FixedExpense, MemberIncome, ScheduledTransfer
from models.recurring_payment import RecurringPaymentInput
from models.transaction import TransactionFilters, TransactionInput
from services.account_service import AccountService
from services.backup_service import CSV_HEADERS, BackupService
from utils.errors import DatabaseError, InvalidInputError, StorageIOError


@pytest.fixture
def household(household_service, account_service):
    """A small household: one member, one bank with two accounts and a plan around them."""
    anna = household_service.create_member("Anna")
    bank = household_service.create_bank("Fio", notes="main bank")
    main = account_service.create(AccountInput(
        name="Main", bank_id=bank.id, owner_member_id=anna.id, initial_balance=1000.0,
    ))
    reserve = account_service.create(AccountInput(
        name="Reserve", account_type="savings", bank_id=bank.id, initial_balance=5000.0,
    ))
    household_service.create_income(MemberIncome(
        id=0, member_id=anna.id, name="Salary", amount=42000.0, day_of_month=10, account_id=main.id,
    ))
    household_service.create_transfer(ScheduledTransfer(
        id=0, name="To reserve", from_account_id=main.id, to_account_id=reserve.id,
        amount=3000.0, day_of_month=11,
    ))
    household_service.create_expense(FixedExpense(
        id=0, name="Rent", amount=15000.0, category="Housing", day_of_month=1, account_id=main.id,
    ))
    household_service.create_budget_category(BudgetCategory(
        id=0, name="Groceries", budget_type="variable", monthly_limit=8000.0,
    ))
    return {"member": anna, "bank": bank, "main": main, "reserve": reserve}


class TestSnapshotExport:
    """Tests for building the snapshot document."""

    def test_layout(self, backup_service, household):
        snapshot = backup_service.export_full()
        assert snapshot["version"] == "1.1.0"
        assert snapshot["created_at"]
        data = snapshot["data"]
        assert [m["member"]["name"] for m in data["household_members"]] == ["Anna"]
        assert [i["name"] for i in data["household_members"][0]["incomes"]] == ["Salary"]
        assert [b["bank"]["name"] for b in data["banks"]] == ["Fio"]
        assert {a["name"] for a in data["banks"][0]["accounts"]} == {"Main", "Reserve"}
        assert len(data["scheduled_transfers"]) == 1
        assert len(data["fixed_expenses"]) == 1
        assert len(data["budget_categories"]) == 1

    def test_save_to_file_is_json(self, backup_service, household, tmp_path):
        path = tmp_path / "backup.json"
        backup_service.save_to_file(str(path))
        loaded = json.loads(path.read_text(encoding="utf-8"))
        assert loaded["data"]["banks"][0]["bank"]["notes"] == "main bank"


class TestRestore:
    """Tests for replacing the household graph from a snapshot."""

    def test_round_trip_remaps_ids(self, backup_service, household_service, account_service, household, tmp_path):
        path = tmp_path / "backup.json"
        backup_service.save_to_file(str(path))

        stats = backup_service.restore_from_file(str(path))
        assert stats == {
            "household_members": 1,
            "member_incomes": 1,
            "banks": 1,
            "accounts": 2,
            "standalone_accounts": 0,
            "scheduled_transfers": 1,
            "fixed_expenses": 1,
            "budget_categories": 1,
        }

        members = household_service.get_members()
        banks = household_service.get_banks()
        accounts = {a.name: a for a in account_service.get_all()}
        assert members[0].id != household["member"].id
        assert banks[0].id != household["bank"].id
        assert accounts["Main"].id != household["main"].id

        assert accounts["Main"].bank_id == banks[0].id
        assert accounts["Main"].owner_member_id == members[0].id
        assert accounts["Main"].current_balance == pytest.approx(1000.0)
        assert accounts["Reserve"].account_type == "savings"

        income = household_service.get_incomes()[0]
        assert income.member_id == members[0].id
        assert income.account_id == accounts["Main"].id

        transfer = household_service.get_transfers()[0]
        assert transfer.from_account_id == accounts["Main"].id
        assert transfer.to_account_id == accounts["Reserve"].id

        assert household_service.get_expenses()[0].account_id == accounts["Main"].id
        assert household_service.get_budget_categories()[0].monthly_limit == 8000.0

    def test_restore_into_fresh_store(self, backup_service, household):
        snapshot = backup_service.export_full()

        other = DatabaseManager(":memory:")
        other.initialize()
        try:
            target = BackupService(other, AccountDAO(other), BankDAO(other), HouseholdDAO(other), TransactionDAO(other))
            target.restore(snapshot)
            assert target.export_full()["data"]["banks"][0]["bank"]["name"] == "Fio"
        finally:
            other.close()

    def test_duplicate_bank_rolls_back_everything(self, backup_service, household_service, account_service, household):
        snapshot = backup_service.export_full()
        bank_entry = snapshot["data"]["banks"][0]
        snapshot["data"]["banks"].append({"bank": dict(bank_entry["bank"], id=999), "accounts": []})

        with pytest.raises(DatabaseError):
            backup_service.restore(snapshot)

        assert [m.id for m in household_service.get_members()] == [household["member"].id]
        assert [b.id for b in household_service.get_banks()] == [household["bank"].id]
        assert {a.id for a in account_service.get_all()} == {household["main"].id, household["reserve"].id}
        assert len(household_service.get_transfers()) == 1

    def test_unsupported_version(self, backup_service, household_service, household):
        snapshot = backup_service.export_full()
        snapshot["version"] = "2.0.0"
        with pytest.raises(InvalidInputError):
            backup_service.restore(snapshot)
        assert len(household_service.get_banks()) == 1

    def test_missing_field_is_invalid_input(self, backup_service, household_service, household):
        snapshot = backup_service.export_full()
        del snapshot["data"]["fixed_expenses"][0]["category"]
        with pytest.raises(InvalidInputError):
            backup_service.restore(snapshot)
        assert len(household_service.get_expenses()) == 1

    def test_unreadable_file(self, backup_service, tmp_path):
        with pytest.raises(StorageIOError):
            backup_service.restore_from_file(str(tmp_path / "missing.json"))

    def test_not_json(self, backup_service, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(InvalidInputError):
            backup_service.restore_from_file(str(path))

    def test_standalone_account_survives_restore(self, backup_service, household_service, make_account, household):
        wallet = make_account("Wallet", account_type="cash")
        household_service.create_expense(FixedExpense(
            id=0, name="Lunch", amount=150.0, category="Food", account_id=wallet.id,
        ))
        backup_service.restore(backup_service.export_full())

        lunch = [e for e in household_service.get_expenses() if e.name == "Lunch"][0]
        assert lunch.account_id == wallet.id

    def test_ledger_rows_follow_restored_accounts(
        self, backup_service, account_service, recurring_service, tx_service, goal_service, household,
    ):
        rent = recurring_service.create(RecurringPaymentInput(
            name="Rent", amount=15000.0, account_id=household["main"].id,
            frequency="monthly", day_of_period=1, start_date="2099-01-01",
        ))
        bus = tx_service.create(TransactionInput(
            date="2024-04-01", amount=30.0, type="expense", from_account_id=household["main"].id,
        ))
        move = tx_service.create(TransactionInput(
            date="2024-04-02", amount=500.0, type="transfer",
            from_account_id=household["main"].id, to_account_id=household["reserve"].id,
        ))
        holiday = goal_service.create("Holiday", 20000.0, account_id=household["reserve"].id)

        backup_service.restore(backup_service.export_full())

        accounts = {a.name: a for a in account_service.get_all()}
        assert set(accounts) == {"Main", "Reserve"}
        assert recurring_service.get_by_id(rent.id).account_id == accounts["Main"].id
        assert tx_service.get_by_id(bus.id).from_account_id == accounts["Main"].id
        transfer = tx_service.get_by_id(move.id)
        assert transfer.from_account_id == accounts["Main"].id
        assert transfer.to_account_id == accounts["Reserve"].id
        assert goal_service.get_by_id(holiday.id).account_id == accounts["Reserve"].id

    def test_account_missing_from_backup_keeps_its_history(
        self, backup_service, account_service, household_service, tx_service, household,
    ):
        snapshot = backup_service.export_full()
        bus = tx_service.create(TransactionInput(
            date="2024-04-01", amount=30.0, type="expense", from_account_id=household["reserve"].id,
        ))
        snapshot["data"]["banks"][0]["accounts"] = [
            a for a in snapshot["data"]["banks"][0]["accounts"] if a["name"] != "Reserve"
        ]

        backup_service.restore(snapshot)

        reserve = account_service.get_by_id(household["reserve"].id)
        assert reserve.bank_id is None
        assert tx_service.get_by_id(bus.id).from_account_id == reserve.id
        assert household_service.get_transfers() == []
        assert [a.name for a in account_service.get_all()] == ["Main", "Reserve"]

    def test_children_never_link_to_unrelated_account_in_target(self, backup_service, household_service, make_account):
        wallet = make_account("Wallet", account_type="cash")
        household_service.create_expense(FixedExpense(
            id=0, name="Gym", amount=900.0, category="Health", account_id=wallet.id,
        ))
        snapshot = backup_service.export_full()

        other = DatabaseManager(":memory:")
        other.initialize()
        try:
            other_accounts = AccountDAO(other)
            neighbour = AccountService(other, other_accounts).create(AccountInput(name="Neighbour's card"))
            assert neighbour.id == wallet.id
            target = BackupService(other, other_accounts, BankDAO(other), HouseholdDAO(other), TransactionDAO(other))

            stats = target.restore(snapshot)

            assert stats["standalone_accounts"] == 1
            gym = HouseholdDAO(other).get_expenses()[0]
            assert gym.account_id != neighbour.id
            assert other_accounts.get_by_id(gym.account_id).name == "Wallet"
        finally:
            other.close()

    def test_old_snapshot_unlinks_unknown_accounts(self, backup_service, household_service, make_account):
        wallet = make_account("Wallet", account_type="cash")
        household_service.create_expense(FixedExpense(
            id=0, name="Gym", amount=900.0, category="Health", account_id=wallet.id,
        ))
        snapshot = backup_service.export_full()
        snapshot["version"] = "1.0.0"
        del snapshot["data"]["standalone_accounts"]

        backup_service.restore(snapshot)

        assert household_service.get_expenses()[0].account_id is None


class TestCsvExport:
    """Tests for the transaction CSV export."""

    def test_writes_header_and_rows(self, backup_service, tx_service, make_account, tmp_path):
        account = make_account("Checking", initial_balance=100.0)
        tx_service.create(TransactionInput(
            date="2024-04-01", amount=12.5, type="expense", from_account_id=account.id, description="Bus",
        ))
        tx_service.create(TransactionInput(
            date="2024-04-02", amount=900.0, type="income", to_account_id=account.id, description="Refund",
        ))
        path = tmp_path / "tx.csv"

        count = backup_service.export_transactions_csv(str(path))

        assert count == 2
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0] == CSV_HEADERS
        assert rows[1][1] == "2024-04-02"
        assert rows[1][5] == "Refund"
        assert rows[2][9] == ""
        assert rows[2][8] == "Checking"

    def test_respects_filters(self, backup_service, tx_service, make_account, tmp_path):
        account = make_account("Checking")
        tx_service.create(TransactionInput(date="2024-04-01", amount=1.0, type="expense", from_account_id=account.id))
        tx_service.create(TransactionInput(date="2024-05-01", amount=1.0, type="expense", from_account_id=account.id))

        count = backup_service.export_transactions_csv(
            str(tmp_path / "may.csv"), TransactionFilters(start_date="2024-05-01")
        )
        assert count == 1


class TestRawDatabaseCopy:
    """Tests for whole-file export and import."""

    def test_export_then_import_restores_state(self, backup_service, account_service, make_account, tmp_path):
        make_account("Before", initial_balance=10.0)
        path = tmp_path / "copy.db"
        backup_service.export_database(str(path))

        make_account("After")
        assert backup_service.import_database(str(path)) is None

        assert [a.name for a in account_service.get_all()] == ["Before"]

    def test_file_backed_import_keeps_safety_copy(self, tmp_path):
        source = DatabaseManager(str(tmp_path / "source.db"))
        source.initialize()
        source.set_setting("default_currency", "EUR")
        source.close()

        live = DatabaseManager(str(tmp_path / "live.db"))
        live.initialize()
        try:
            safety = live.import_from(str(tmp_path / "source.db"))
            assert safety == str(tmp_path / "live.db") + ".backup"
            assert (tmp_path / "live.db.backup").exists()
            assert live.get_setting("default_currency") == "EUR"
        finally:
            live.close()

    def test_rejects_non_ledger_file(self, backup_service, tmp_path):
        path = tmp_path / "notes.db"
        path.write_text("just some text, not a database at all" * 50, encoding="utf-8")
        with pytest.raises(InvalidInputError):
            backup_service.import_database(str(path))

    def test_missing_file(self, backup_service, tmp_path):
        with pytest.raises(StorageIOError):
            backup_service.import_database(str(tmp_path / "nope.db"))
