import logging
from datetime import date

import customtkinter as ctk
from tkinter import filedialog, messagebox

from database.db_manager import DatabaseManager
from services.backup_service import BackupService
from services.ledger import LedgerService
from ui.components.confirm_dialog import ask_confirm
from utils.app_config import get_db_folder, set_db_folder
from utils.constants import DEFAULT_CURRENCY
from utils.date_helpers import DATE_FORMAT_OPTIONS
from utils.errors import LedgerError

logger = logging.getLogger(__name__)


class SettingsTab(ctk.CTkFrame):
    """Settings tab: DB folder, backups and exports, balance check, app preferences."""

    def __init__(
        self,
        master,
        db: DatabaseManager,
        backup_service: BackupService,
        ledger_service: LedgerService,
        notify_refresh,
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._db = db
        self._backup_svc = backup_service
        self._ledger = ledger_service
        self._notify_refresh = notify_refresh

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)

        scroll = ctk.CTkScrollableFrame(self, fg_color="transparent")
        scroll.grid(row=0, column=0, sticky="nsew")
        scroll.grid_columnconfigure(0, weight=1)

        self._build_db_folder_section(scroll)
        self._build_backup_section(scroll)
        self._build_maintenance_section(scroll)
        self._build_app_settings_section(scroll)

    def refresh(self):
        """Re-read settings from DB and update displayed values."""
        appearance = self._db.get_setting("appearance_mode", "system")
        date_fmt = self._db.get_setting("date_format", "DD.MM.YYYY")

        self._appearance_var.set(appearance.title())
        self._currency_var.set(self._db.get_setting("default_currency", DEFAULT_CURRENCY))
        if date_fmt in DATE_FORMAT_OPTIONS:
            self._date_fmt_var.set(date_fmt)

    # ── Section 1: DB folder ──────────────────────────────────────────────────

    def _build_db_folder_section(self, parent):
        section = self._make_section(parent, "Database Folder", row=0)

        ctk.CTkLabel(
            section,
            text="The ledger file (finance.db) is stored in this folder.",
            text_color="gray60",
            font=ctk.CTkFont(size=11),
            anchor="w",
        ).grid(row=0, column=0, columnspan=3, sticky="w", padx=8, pady=(4, 6))

        self._db_folder_var = ctk.StringVar(value=get_db_folder() or "(default: ~/.household_ledger)")
        entry = ctk.CTkEntry(
            section, textvariable=self._db_folder_var,
            state="readonly", width=340,
        )
        entry.grid(row=1, column=0, padx=(8, 4), pady=4, sticky="ew")
        section.grid_columnconfigure(0, weight=1)

        ctk.CTkButton(
            section, text="Browse…", width=90,
            command=self._browse_db_folder,
        ).grid(row=1, column=1, padx=4)

        ctk.CTkButton(
            section, text="Reset to Default", width=120,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._reset_db_folder,
        ).grid(row=1, column=2, padx=(4, 8))

        self._db_restart_label = ctk.CTkLabel(
            section,
            text="",
            text_color="#FF9800",
            font=ctk.CTkFont(size=11),
            anchor="w",
        )
        self._db_restart_label.grid(row=2, column=0, columnspan=3, sticky="w", padx=8, pady=(0, 6))

    def _browse_db_folder(self):
        path = filedialog.askdirectory(title="Choose DB folder")
        if not path:
            return
        try:
            set_db_folder(path)
        except OSError as e:
            messagebox.showerror("Database Folder", f"Could not save the setting:\n{e}")
            return
        self._db_folder_var.set(path)
        self._db_restart_label.configure(text="Restart the app for the change to take effect.")

    def _reset_db_folder(self):
        try:
            set_db_folder(None)
        except OSError as e:
            messagebox.showerror("Database Folder", f"Could not save the setting:\n{e}")
            return
        self._db_folder_var.set("(default: ~/.household_ledger)")
        self._db_restart_label.configure(text="Restart the app for the change to take effect.")

    # ── Section 2: Backup / Export ────────────────────────────────────────────

    def _build_backup_section(self, parent):
        section = self._make_section(parent, "Backup & Export", row=1)

        self._io_status_var = ctk.StringVar()

        ctk.CTkLabel(
            section, text="Full backup (JSON): accounts, household, transactions, goals.",
            text_color="gray60", font=ctk.CTkFont(size=11), anchor="w",
        ).grid(row=0, column=0, sticky="w", padx=8, pady=(4, 0))
        json_row = ctk.CTkFrame(section, fg_color="transparent")
        json_row.grid(row=1, column=0, sticky="w", padx=8, pady=6)
        ctk.CTkButton(
            json_row, text="Save Backup…", width=130,
            command=self._save_backup,
        ).pack(side="left", padx=4)
        ctk.CTkButton(
            json_row, text="Restore Backup…", width=130,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._restore_backup,
        ).pack(side="left", padx=4)
        ctk.CTkButton(
            json_row, text="Export Transactions CSV…", width=190,
            command=self._export_csv,
        ).pack(side="left", padx=4)

        ctk.CTkLabel(
            section, text="Database file copy (SQLite).",
            text_color="gray60", font=ctk.CTkFont(size=11), anchor="w",
        ).grid(row=2, column=0, sticky="w", padx=8, pady=(4, 0))
        raw_row = ctk.CTkFrame(section, fg_color="transparent")
        raw_row.grid(row=3, column=0, sticky="w", padx=8, pady=6)
        ctk.CTkButton(
            raw_row, text="Export Database…", width=130,
            command=self._export_database,
        ).pack(side="left", padx=4)
        ctk.CTkButton(
            raw_row, text="Import Database…", width=130,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._import_database,
        ).pack(side="left", padx=4)

        ctk.CTkLabel(
            section,
            textvariable=self._io_status_var,
            text_color="#4CAF50",
            font=ctk.CTkFont(size=11),
            anchor="w",
            wraplength=520,
            justify="left",
        ).grid(row=4, column=0, sticky="w", padx=8, pady=(0, 6))

    def _save_backup(self):
        path = filedialog.asksaveasfilename(
            title="Save Backup",
            defaultextension=".json",
            initialfile=f"ledger_backup_{date.today():%Y%m%d}.json",
            filetypes=[("JSON files", "*.json"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            self._backup_svc.save_to_file(path)
        except LedgerError as e:
            messagebox.showerror("Backup Failed", str(e))
            return
        self._io_status_var.set(f"Backup saved to {path}")

    def _restore_backup(self):
        path = filedialog.askopenfilename(
            title="Restore Backup",
            filetypes=[("JSON files", "*.json"), ("All files", "*.*")],
        )
        if not path:
            return
        if not ask_confirm(
            self.winfo_toplevel(), "Restore Backup",
            "Restoring replaces household members, incomes, banks and their accounts, "
            "scheduled transfers, fixed expenses and budget categories with the backup's "
            "contents. Transactions, recurring payments and goals are kept.\n\n"
            "Do not close the app until the restore finishes. Continue?",
            confirm_text="Restore",
        ):
            return
        try:
            stats = self._backup_svc.restore_from_file(path)
        except LedgerError as e:
            messagebox.showerror("Restore Failed", f"Nothing was changed.\n\n{e}")
            return
        self._notify_refresh("full")
        self._io_status_var.set(self._format_stats(stats))

    def _export_csv(self):
        path = filedialog.asksaveasfilename(
            title="Export Transactions",
            defaultextension=".csv",
            initialfile="transactions.csv",
            filetypes=[("CSV files", "*.csv"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            count = self._backup_svc.export_transactions_csv(path)
        except LedgerError as e:
            messagebox.showerror("Export Failed", str(e))
            return
        self._io_status_var.set(f"Exported {count} transactions to {path}")

    def _export_database(self):
        path = filedialog.asksaveasfilename(
            title="Export Database",
            defaultextension=".db",
            initialfile=f"finance_{date.today():%Y%m%d}.db",
            filetypes=[("SQLite databases", "*.db"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            self._backup_svc.export_database(path)
        except LedgerError as e:
            messagebox.showerror("Export Failed", str(e))
            return
        self._io_status_var.set(f"Database copied to {path}")

    def _import_database(self):
        path = filedialog.askopenfilename(
            title="Import Database",
            filetypes=[("SQLite databases", "*.db"), ("All files", "*.*")],
        )
        if not path:
            return
        if not ask_confirm(
            self.winfo_toplevel(), "Import Database",
            "The current database will be replaced by the selected file. "
            "A safety copy is written next to it first. Continue?",
            confirm_text="Import",
        ):
            return
        try:
            safety_copy = self._backup_svc.import_database(path)
        except LedgerError as e:
            messagebox.showerror("Import Failed", str(e))
            return
        self._notify_refresh("full")
        note = f" Previous database saved as {safety_copy}." if safety_copy else ""
        self._io_status_var.set(f"Imported {path}.{note}")

    @staticmethod
    def _format_stats(stats: dict) -> str:
        parts = [f"{v} {k.replace('_', ' ')}" for k, v in stats.items() if v > 0]
        return "Restored: " + ", ".join(parts) if parts else "Backup was empty."

    # ── Section 3: Maintenance ────────────────────────────────────────────────

    def _build_maintenance_section(self, parent):
        section = self._make_section(parent, "Balance Check", row=2)

        ctk.CTkLabel(
            section,
            text="Recompute every balance from its opening amount and posted history.",
            text_color="gray60", font=ctk.CTkFont(size=11), anchor="w",
        ).grid(row=0, column=0, sticky="w", padx=8, pady=(4, 0))
        ctk.CTkButton(
            section, text="Verify Balances", width=140,
            command=self._verify_balances,
        ).grid(row=1, column=0, sticky="w", padx=12, pady=6)

        self._verify_var = ctk.StringVar()
        self._verify_label = ctk.CTkLabel(
            section, textvariable=self._verify_var, font=ctk.CTkFont(size=11),
            anchor="w", justify="left",
        )
        self._verify_label.grid(row=2, column=0, sticky="w", padx=8, pady=(0, 6))

    def _verify_balances(self):
        try:
            drifted = self._ledger.verify()
        except LedgerError as e:
            messagebox.showerror("Verify Balances", str(e))
            return
        if not drifted:
            self._verify_label.configure(text_color="#4CAF50")
            self._verify_var.set("All balances match their history.")
            return
        self._verify_label.configure(text_color="#FF9800")
        self._verify_var.set("\n".join(
            f"{d['name']}: stored {d['stored']:,.2f}, expected {d['expected']:,.2f} "
            f"(off by {d['difference']:+,.2f})"
            for d in drifted
        ))

    # ── Section 4: App settings ───────────────────────────────────────────────

    def _build_app_settings_section(self, parent):
        section = self._make_section(parent, "App Settings", row=3)

        ctk.CTkLabel(section, text="Appearance:", anchor="e", width=120).grid(
            row=0, column=0, padx=(8, 4), pady=6, sticky="e"
        )
        self._appearance_var = ctk.StringVar(
            value=self._db.get_setting("appearance_mode", "system").title()
        )
        ctk.CTkComboBox(
            section,
            values=["System", "Light", "Dark"],
            variable=self._appearance_var,
            width=180,
            state="readonly",
        ).grid(row=0, column=1, padx=4, pady=6, sticky="w")

        ctk.CTkLabel(section, text="Default Currency:", anchor="e", width=120).grid(
            row=1, column=0, padx=(8, 4), pady=6, sticky="e"
        )
        self._currency_var = ctk.StringVar(
            value=self._db.get_setting("default_currency", DEFAULT_CURRENCY)
        )
        ctk.CTkEntry(section, textvariable=self._currency_var, width=60).grid(
            row=1, column=1, padx=4, pady=6, sticky="w"
        )

        ctk.CTkLabel(section, text="Date Format:", anchor="e", width=120).grid(
            row=2, column=0, padx=(8, 4), pady=6, sticky="e"
        )
        self._date_fmt_var = ctk.StringVar(
            value=self._db.get_setting("date_format", "DD.MM.YYYY")
        )
        ctk.CTkComboBox(
            section,
            values=DATE_FORMAT_OPTIONS,
            variable=self._date_fmt_var,
            width=180,
            state="readonly",
        ).grid(row=2, column=1, padx=4, pady=6, sticky="w")

        ctk.CTkLabel(
            section,
            text="Date format changes take effect on next app restart.",
            text_color="gray60",
            font=ctk.CTkFont(size=11),
            anchor="w",
        ).grid(row=3, column=0, columnspan=2, sticky="w", padx=8)

        ctk.CTkButton(
            section, text="Save Settings", width=140,
            command=self._save_settings,
        ).grid(row=4, column=0, columnspan=2, pady=(10, 8))

        self._settings_status_var = ctk.StringVar()
        ctk.CTkLabel(
            section,
            textvariable=self._settings_status_var,
            text_color="#4CAF50",
            font=ctk.CTkFont(size=11),
        ).grid(row=5, column=0, columnspan=2, pady=(0, 8))

    def _save_settings(self):
        appearance_key = self._appearance_var.get().lower()
        currency = self._currency_var.get().strip().upper() or DEFAULT_CURRENCY
        if len(currency) != 3 or not currency.isalpha():
            self._settings_status_var.set("")
            messagebox.showerror("App Settings", "Currency must be a 3-letter code such as CZK or EUR.")
            return

        try:
            self._db.set_setting("appearance_mode", appearance_key)
            self._db.set_setting("default_currency", currency)
            self._db.set_setting("date_format", self._date_fmt_var.get())
        except LedgerError as e:
            messagebox.showerror("App Settings", str(e))
            return
        self._currency_var.set(currency)
        ctk.set_appearance_mode(appearance_key)
        self._settings_status_var.set("Settings saved.")
        logger.info(f"Saved settings: appearance={appearance_key}, currency={currency}")

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _make_section(self, parent, title: str, row: int) -> ctk.CTkFrame:
        """Create a labelled card section and return its inner frame."""
        outer = ctk.CTkFrame(parent, corner_radius=8)
        outer.grid(row=row, column=0, sticky="ew", padx=12, pady=8)
        outer.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(
            outer,
            text=title,
            font=ctk.CTkFont(size=14, weight="bold"),
            anchor="w",
        ).grid(row=0, column=0, sticky="w", padx=12, pady=(10, 4))

        inner = ctk.CTkFrame(outer, fg_color="transparent")
        inner.grid(row=1, column=0, sticky="ew", padx=4, pady=(0, 8))
        inner.grid_columnconfigure(0, weight=1)
        return inner
