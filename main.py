import logging

import customtkinter as ctk

from database.db_manager import DatabaseManager
from database.account_dao import AccountDAO
from database.bank_dao import BankDAO
from database.category_dao import CategoryDAO
from database.flow_dao import FlowGroupDAO
from database.goal_dao import GoalDAO
from database.household_dao import HouseholdDAO
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO

from services.account_service import AccountService
from services.backup_service import BackupService
from services.category_service import CategoryService
from services.household_service import HouseholdService
from services.ledger import LedgerService
from services.recurring_service import RecurringService
from services.report_service import ReportService
from services.transaction_service import TransactionService

from ui.app_window import AppWindow
from utils.app_config import get_db_folder, get_log_level, resolve_db_path
from utils.constants import LOG_FILE, LOG_FORMAT
from utils.errors import LedgerError

logger = logging.getLogger(__name__)


def main():
    logging.basicConfig(
        level=get_log_level(),
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(LOG_FILE, encoding="utf-8"), logging.StreamHandler()],
    )

    # ── Bootstrap: read DB folder from pre-DB config ──────────────────────────
    db_path = resolve_db_path(get_db_folder())
    logger.info(f"Opening ledger at {db_path}")

    # ── Database ─────────────────────────────────────────────────────────────
    db = DatabaseManager(db_path)
    db.initialize()

    # ── DAOs ─────────────────────────────────────────────────────────────────
    account_dao = AccountDAO(db)
    tx_dao = TransactionDAO(db)
    category_dao = CategoryDAO(db)
    recurring_dao = RecurringDAO(db)
    bank_dao = BankDAO(db)
    household_dao = HouseholdDAO(db)
    goal_dao = GoalDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    account_svc = AccountService(db, account_dao)
    tx_svc = TransactionService(db, tx_dao, account_svc, FlowGroupDAO(db))
    recurring_svc = RecurringService(db, recurring_dao, tx_dao, account_svc)
    report_svc = ReportService(db, tx_dao, account_dao)
    category_svc = CategoryService(db, category_dao)
    household_svc = HouseholdService(db, household_dao, bank_dao, account_dao)
    backup_svc = BackupService(db, account_dao, bank_dao, household_dao, tx_dao)
    ledger_svc = LedgerService(db, account_dao, tx_dao, goal_dao)

    # ── Post due recurring payments ──────────────────────────────────────────
    new_transactions = []
    sweep_error = None
    try:
        new_transactions = recurring_svc.sweep()
    except LedgerError as e:
        # earlier payments keep their postings; the rest run on the next sweep
        logger.error(f"Startup sweep stopped: {e}")
        sweep_error = str(e)

    # ── Restore last-used account ─────────────────────────────────────────────
    initial_account = None
    last_account_id_str = db.get_setting("last_account_id", "")
    if last_account_id_str:
        try:
            initial_account = account_svc.get_by_id(int(last_account_id_str))
        except ValueError:
            logger.warning(f"Ignoring malformed last_account_id {last_account_id_str!r}")
        if initial_account is not None and not initial_account.active:
            initial_account = None

    # ── Appearance ───────────────────────────────────────────────────────────
    ctk.set_appearance_mode(db.get_setting("appearance_mode", "system"))
    ctk.set_default_color_theme("blue")
    date_format = db.get_setting("date_format", "DD.MM.YYYY")

    # ── Launch UI ────────────────────────────────────────────────────────────
    app = AppWindow(
        db=db,
        account_service=account_svc,
        tx_service=tx_svc,
        recurring_service=recurring_svc,
        report_service=report_svc,
        category_service=category_svc,
        household_service=household_svc,
        backup_service=backup_svc,
        ledger_service=ledger_svc,
        initial_account=initial_account,
        startup_transactions=new_transactions,
        startup_error=sweep_error,
        date_format=date_format,
    )

    # Save last-used account on close
    def on_close():
        try:
            account = app.current_account
            db.set_setting("last_account_id", str(account.id) if account else "")
        except LedgerError as e:
            logger.error(f"Could not save last account: {e}")
        finally:
            db.close()
            app.destroy()

    app.protocol("WM_DELETE_WINDOW", on_close)
    app.mainloop()


if __name__ == "__main__":
    main()
