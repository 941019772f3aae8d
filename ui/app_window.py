import logging

import customtkinter as ctk

from database.db_manager import DatabaseManager
from models.account import ACCOUNT_TYPE_LABELS, Account
from models.transaction import Transaction
from services.account_service import AccountService
from services.backup_service import BackupService
from services.category_service import CategoryService
from services.household_service import HouseholdService
from services.ledger import LedgerService
from services.recurring_service import RecurringService
from services.report_service import ReportService
from services.transaction_service import TransactionService
from ui.components.account_form import AccountForm
from ui.components.alert_banner import AlertBanner
from ui.tabs.accounts_tab import AccountsTab
from ui.tabs.recurring_tab import RecurringTab
from ui.tabs.register_tab import RegisterTab
from ui.tabs.settings_tab import SettingsTab
from utils.constants import APP_HEIGHT, APP_NAME, APP_WIDTH, DEFAULT_CURRENCY
from utils.currency import format_currency
from utils.errors import LedgerError

logger = logging.getLogger(__name__)

_REFRESH_SCOPES: dict[str, set[str]] = {
    "transaction": {"accounts", "register"},
    "recurring":   {"recurring"},
    "sweep":       {"accounts", "register", "recurring"},
    "account":     {"accounts", "register", "recurring"},
    "full":        {"accounts", "register", "recurring", "settings"},
}


class AppWindow(ctk.CTk):
    def __init__(
        self,
        db: DatabaseManager,
        account_service: AccountService,
        tx_service: TransactionService,
        recurring_service: RecurringService,
        report_service: ReportService,
        category_service: CategoryService,
        household_service: HouseholdService,
        backup_service: BackupService,
        ledger_service: LedgerService,
        initial_account: Account | None = None,
        startup_transactions: list[Transaction] | None = None,
        startup_error: str | None = None,
        date_format: str = "DD.MM.YYYY",
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._db = db
        self._acct_svc = account_service
        self._tx_svc = tx_service
        self._recurring_svc = recurring_service
        self._report_svc = report_service
        self._cat_svc = category_service
        self._household_svc = household_service
        self._backup_svc = backup_service
        self._ledger = ledger_service
        self._date_format = date_format

        self.title(APP_NAME)
        self.minsize(APP_WIDTH, APP_HEIGHT)
        self.geometry(f"{APP_WIDTH}x{APP_HEIGHT}")

        self._accounts = self._acct_svc.get_all(active_only=True)
        self._current_account: Account | None = (
            initial_account or (self._accounts[0] if self._accounts else None)
        )

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        self._build_account_bar()
        self._build_banner_area()
        self._build_tabs()

        if startup_transactions:
            count = len(startup_transactions)
            self.after(300, lambda: self._show_recurring_banner(count))
        if startup_error:
            self.after(300, lambda: self._show_banner(
                f"Some recurring payments could not be posted: {startup_error}", "error",
            ))
        self.after(500, self._check_balances)

    @property
    def current_account(self) -> Account | None:
        return self._current_account

    # ── Account bar ─────────────────────────────────────────────────────────
    def _build_account_bar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray85", "gray15"), corner_radius=0, height=44)
        bar.grid(row=0, column=0, sticky="ew")
        bar.grid_propagate(False)

        ctk.CTkLabel(bar, text="Account:", anchor="e").pack(side="left", padx=(12, 4), pady=8)

        current_name = self._current_account.name if self._current_account else ""
        self._acct_combo_var = ctk.StringVar(value=current_name)
        self._acct_combo = ctk.CTkComboBox(
            bar,
            values=[a.name for a in self._accounts],
            variable=self._acct_combo_var,
            width=200,
            state="readonly",
            command=self.on_account_changed,
        )
        self._acct_combo.pack(side="left", padx=4)

        ctk.CTkButton(
            bar, text="+ New Account", width=110,
            command=self._open_new_account,
        ).pack(side="left", padx=4)

        ctk.CTkButton(
            bar, text="Edit Account", width=100,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._open_edit_account,
        ).pack(side="left", padx=4)

        self._acct_info_label = ctk.CTkLabel(bar, text="", text_color="gray60")
        self._acct_info_label.pack(side="left", padx=(4, 8))
        self._update_acct_info_label()

    def _build_banner_area(self):
        self._banner_frame = ctk.CTkFrame(self, fg_color="transparent", height=0)
        self._banner_frame.grid(row=1, column=0, sticky="ew", padx=8)

    def _build_tabs(self):
        self._tabview = ctk.CTkTabview(self)
        self._tabview.grid(row=2, column=0, sticky="nsew", padx=8, pady=(0, 8))

        for tab_name in ("Accounts", "Register", "Recurring", "Settings"):
            self._tabview.add(tab_name)
            self._tabview.tab(tab_name).grid_columnconfigure(0, weight=1)
            self._tabview.tab(tab_name).grid_rowconfigure(0, weight=1)

        self._accounts_tab = AccountsTab(
            self._tabview.tab("Accounts"),
            account_service=self._acct_svc,
            report_service=self._report_svc,
            get_account_id=self._get_current_account_id,
            on_account_selected=self._select_account,
        )
        self._accounts_tab.grid(row=0, column=0, sticky="nsew")

        self._register_tab = RegisterTab(
            self._tabview.tab("Register"),
            tx_service=self._tx_svc,
            account_service=self._acct_svc,
            category_service=self._cat_svc,
            get_account_id=self._get_current_account_id,
            notify_refresh=self.notify_tabs_refresh,
            date_format=self._date_format,
        )
        self._register_tab.grid(row=0, column=0, sticky="nsew")

        self._recurring_tab = RecurringTab(
            self._tabview.tab("Recurring"),
            recurring_service=self._recurring_svc,
            account_service=self._acct_svc,
            category_service=self._cat_svc,
            notify_refresh=self.notify_tabs_refresh,
            date_format=self._date_format,
        )
        self._recurring_tab.grid(row=0, column=0, sticky="nsew")

        self._settings_tab = SettingsTab(
            self._tabview.tab("Settings"),
            db=self._db,
            backup_service=self._backup_svc,
            ledger_service=self._ledger,
            notify_refresh=self.notify_tabs_refresh,
        )
        self._settings_tab.grid(row=0, column=0, sticky="nsew")

    # ── Account management ───────────────────────────────────────────────────
    def on_account_changed(self, value=None):
        name = self._acct_combo_var.get()
        self._current_account = next(
            (a for a in self._accounts if a.name == name), None
        )
        self._update_acct_info_label()
        self.notify_tabs_refresh("account")

    def _select_account(self, account: Account):
        self._acct_combo_var.set(account.name)
        self._acct_combo.set(account.name)
        self.on_account_changed()
        self._tabview.set("Register")

    def _get_current_account_id(self) -> int | None:
        return self._current_account.id if self._current_account else None

    def _open_account_form(self, account: Account | None = None):
        form = AccountForm(
            self, self._acct_svc, self._household_svc,
            account=account,
            default_currency=self._db.get_setting("default_currency", DEFAULT_CURRENCY),
            on_delete_callback=self._on_account_deleted if account else None,
        )
        self.wait_window(form)
        if form.saved:
            self._refresh_account_bar()
            self.notify_tabs_refresh("account")

    def _open_new_account(self):
        self._open_account_form()

    def _open_edit_account(self):
        if not self._current_account:
            return
        self._open_account_form(self._current_account)

    def _on_account_deleted(self):
        self._current_account = None

    def _refresh_account_bar(self):
        self._accounts = self._acct_svc.get_all(active_only=True)
        names = [a.name for a in self._accounts]
        self._acct_combo.configure(values=names)
        if self._current_account:
            match = next((a for a in self._accounts if a.id == self._current_account.id), None)
            self._current_account = match or (self._accounts[0] if self._accounts else None)
        else:
            self._current_account = self._accounts[0] if self._accounts else None
        new_name = self._current_account.name if self._current_account else ""
        self._acct_combo_var.set(new_name)
        self._acct_combo.set(new_name)
        self._update_acct_info_label()

    def _update_acct_info_label(self):
        a = self._current_account
        if a:
            label = ACCOUNT_TYPE_LABELS.get(a.account_type, "")
            self._acct_info_label.configure(
                text=f"[{label}]  {format_currency(a.current_balance, a.currency)}"
            )
        else:
            self._acct_info_label.configure(text="")

    # ── Refresh ──────────────────────────────────────────────────────────────
    def notify_tabs_refresh(self, scope: str = "full"):
        tabs = _REFRESH_SCOPES.get(scope, _REFRESH_SCOPES["full"])
        if scope in ("transaction", "sweep", "full"):
            # balances moved; reload the bar's copies
            self._refresh_account_bar()
        if "accounts"  in tabs: self._accounts_tab.refresh()
        if "register"  in tabs: self._register_tab.refresh()
        if "recurring" in tabs: self._recurring_tab.refresh()
        if "settings"  in tabs: self._settings_tab.refresh()

    # ── Banners ──────────────────────────────────────────────────────────────
    def _show_banner(self, message: str, severity: str = "info", **kwargs):
        banner = AlertBanner(self._banner_frame, message=message, severity=severity, **kwargs)
        banner.pack(fill="x", pady=2)

    def _show_recurring_banner(self, count: int):
        self._show_banner(
            f"{count} recurring payment{'s were' if count != 1 else ' was'} posted automatically.",
            "info",
            action_text="View",
            action_cmd=lambda: self._tabview.set("Register"),
            auto_dismiss_ms=15000,
        )

    def _check_balances(self):
        try:
            drifted = self._ledger.verify()
        except LedgerError:
            logger.exception("Startup balance check failed")
            return
        if drifted:
            names = ", ".join(d["name"] for d in drifted)
            self._show_banner(
                f"Stored balance differs from history for: {names}",
                "warning",
                action_text="Details",
                action_cmd=lambda: self._tabview.set("Settings"),
            )
