import logging
from tkinter import messagebox

import customtkinter as ctk

from models.transaction import Transaction, TransactionFilters
from services.account_service import AccountService
from services.category_service import CategoryService
from services.transaction_service import TransactionService
from ui.components.confirm_dialog import ask_confirm
from ui.components.transaction_form import TransactionForm
from utils.currency import format_currency, format_signed
from utils.date_helpers import current_month_str, format_display_date, friendly_month, month_range, next_month, prev_month
from utils.errors import LedgerError

logger = logging.getLogger(__name__)

_MAX_RENDERED_ROWS = 100
_TYPE_COLORS = {"income": "#4CAF50", "expense": "#F44336", "transfer": "#2196F3"}


class RegisterTab(ctk.CTkFrame):
    def __init__(
        self,
        master,
        tx_service: TransactionService,
        account_service: AccountService,
        category_service: CategoryService,
        get_account_id,   # callable → int | None
        notify_refresh,   # callable
        date_format: str = "DD.MM.YYYY",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._tx_svc = tx_service
        self._acct_svc = account_service
        self._cat_svc = category_service
        self._get_account_id = get_account_id
        self._notify_refresh = notify_refresh
        self._date_format = date_format

        self._month_var = ctk.StringVar(value=current_month_str())
        self._month_label_var = ctk.StringVar(value=friendly_month(self._month_var.get()))
        self._whole_history_var = ctk.BooleanVar(value=False)
        self._all_accounts_var = ctk.BooleanVar(value=False)
        self._type_var = ctk.StringVar(value="all")
        self._status_var = ctk.StringVar(value="all")
        self._search_var = ctk.StringVar()
        self._search_var.trace_add("write", lambda *_: self._load())

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(3, weight=1)

        self._build_filter_bar()
        self._build_action_bar()
        self._build_header()
        self._build_register()
        self._load()

    def refresh(self):
        self._load()

    # ── Filter bar ──────────────────────────────────────────────────────────
    def _build_filter_bar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray88", "gray18"), corner_radius=8)
        bar.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 0))
        bar.grid_columnconfigure(7, weight=1)

        ctk.CTkButton(bar, text="◀", width=28, command=self._prev_month).grid(
            row=0, column=0, padx=(8, 0), pady=6
        )
        ctk.CTkLabel(bar, textvariable=self._month_label_var, width=120, anchor="center").grid(
            row=0, column=1, padx=4
        )
        ctk.CTkButton(bar, text="▶", width=28, command=self._next_month).grid(
            row=0, column=2, padx=(0, 4)
        )
        ctk.CTkCheckBox(
            bar, text="All dates", variable=self._whole_history_var,
            command=self._load, width=90,
        ).grid(row=0, column=3, padx=4)

        ctk.CTkSegmentedButton(
            bar,
            values=["all", "income", "expense", "transfer"],
            variable=self._type_var,
            command=lambda _: self._load(),
            width=260,
        ).grid(row=0, column=4, padx=8)

        ctk.CTkSegmentedButton(
            bar,
            values=["all", "completed", "planned"],
            variable=self._status_var,
            command=lambda _: self._load(),
            width=200,
        ).grid(row=0, column=5, padx=8)

        ctk.CTkCheckBox(
            bar, text="All accounts", variable=self._all_accounts_var,
            command=self._load, width=110,
        ).grid(row=0, column=6, padx=4)

        ctk.CTkEntry(
            bar, textvariable=self._search_var,
            placeholder_text="Search…", width=160,
        ).grid(row=0, column=8, padx=8)

    def _build_action_bar(self):
        bar = ctk.CTkFrame(self, fg_color="transparent")
        bar.grid(row=1, column=0, sticky="ew", padx=8, pady=(6, 0))
        for label, type_ in (("+ Income", "income"), ("+ Expense", "expense"), ("+ Transfer", "transfer")):
            ctk.CTkButton(
                bar, text=label, width=96,
                command=lambda t=type_: self._open_add_form(t),
            ).pack(side="left", padx=(0, 4))
        self._count_label = ctk.CTkLabel(bar, text="", text_color="gray60")
        self._count_label.pack(side="right", padx=8)

    def _prev_month(self):
        self._month_var.set(prev_month(self._month_var.get()))
        self._whole_history_var.set(False)
        self._load()

    def _next_month(self):
        self._month_var.set(next_month(self._month_var.get()))
        self._whole_history_var.set(False)
        self._load()

    # ── Column headers ───────────────────────────────────────────────────────
    def _build_header(self):
        hdr = ctk.CTkFrame(self, fg_color=("gray82", "gray22"), corner_radius=0)
        hdr.grid(row=2, column=0, sticky="ew", padx=8, pady=(4, 0))
        cols = [("Date", 85), ("Type", 72), ("Accounts", 200), ("Category", 120),
                ("Description", 180), ("Amount", 110), ("Status", 80), ("Actions", 150)]
        for i, (label, width) in enumerate(cols):
            ctk.CTkLabel(
                hdr, text=label, width=width, anchor="w",
                font=ctk.CTkFont(weight="bold"),
            ).grid(row=0, column=i, padx=4, pady=4, sticky="w")

    # ── Scrollable register ──────────────────────────────────────────────────
    def _build_register(self):
        self._scroll = ctk.CTkScrollableFrame(self)
        self._scroll.grid(row=3, column=0, sticky="nsew", padx=8, pady=(0, 8))
        self._scroll.grid_columnconfigure(0, weight=1)

    def _filters(self) -> TransactionFilters:
        filters = TransactionFilters(search=self._search_var.get().strip() or None)
        if not self._whole_history_var.get():
            filters.start_date, filters.end_date = month_range(self._month_var.get())
        account_id = self._get_account_id()
        if not self._all_accounts_var.get() and account_id:
            filters.account_ids = [account_id]
        if self._type_var.get() != "all":
            filters.types = [self._type_var.get()]
        if self._status_var.get() != "all":
            filters.statuses = [self._status_var.get()]
        return filters

    def _load(self):
        for w in self._scroll.winfo_children():
            w.destroy()
        self._month_label_var.set(
            "All dates" if self._whole_history_var.get() else friendly_month(self._month_var.get())
        )

        try:
            rows = self._tx_svc.get_filtered(self._filters())
        except LedgerError as e:
            logger.error(f"Register query failed: {e}")
            ctk.CTkLabel(self._scroll, text=str(e), text_color="#F44336").grid(row=0, column=0, pady=20)
            return

        self._count_label.configure(text=f"{len(rows)} transaction{'s' if len(rows) != 1 else ''}")
        if not rows:
            ctk.CTkLabel(
                self._scroll, text="No transactions for this period.",
                text_color="gray60",
            ).grid(row=0, column=0, pady=20)
            return

        account_id = None if self._all_accounts_var.get() else self._get_account_id()
        for idx, tx in enumerate(rows[:_MAX_RENDERED_ROWS]):
            self._add_row(idx, tx, account_id)

        if len(rows) > _MAX_RENDERED_ROWS:
            ctk.CTkLabel(
                self._scroll,
                text=f"Showing {_MAX_RENDERED_ROWS} of {len(rows)} transactions. Use filters or search to narrow results.",
                text_color="gray60",
                font=ctk.CTkFont(size=11),
            ).grid(row=_MAX_RENDERED_ROWS, column=0, pady=8)

    def _add_row(self, idx: int, tx: Transaction, account_id: int | None):
        bg = ("gray92", "gray17") if idx % 2 == 0 else ("gray88", "gray21")
        row = ctk.CTkFrame(self._scroll, fg_color=bg, corner_radius=4)
        row.grid(row=idx, column=0, sticky="ew", pady=1, padx=2)

        ctk.CTkLabel(
            row, text=format_display_date(tx.date, self._date_format), width=85, anchor="w"
        ).grid(row=0, column=0, padx=4, pady=4)

        ctk.CTkLabel(
            row, text=tx.type.title(), width=72, anchor="w",
            text_color=_TYPE_COLORS.get(tx.type, "gray"),
        ).grid(row=0, column=1, padx=4)

        if tx.type == "transfer":
            route = f"{tx.from_account_name or '?'} → {tx.to_account_name or '?'}"
        else:
            route = tx.from_account_name or tx.to_account_name or "-"
        ctk.CTkLabel(row, text=route, width=200, anchor="w").grid(row=0, column=2, padx=4)

        ctk.CTkLabel(row, text=tx.category_name or "-", width=120, anchor="w").grid(
            row=0, column=3, padx=4
        )
        ctk.CTkLabel(row, text=tx.description or "-", width=180, anchor="w").grid(
            row=0, column=4, padx=4
        )

        # Sign relative to the selected account; whole-ledger view signs by type
        if account_id is not None and tx.type == "transfer":
            outgoing = tx.from_account_id == account_id
        else:
            outgoing = tx.type == "expense"
        if tx.type == "transfer" and account_id is None:
            amt_text, amt_color = format_currency(tx.amount, tx.currency), "#2196F3"
        elif outgoing:
            amt_text, amt_color = format_signed(-tx.amount, tx.currency), "#F44336"
        else:
            amt_text, amt_color = format_signed(tx.amount, tx.currency), "#4CAF50"
        ctk.CTkLabel(
            row, text=amt_text, width=110, anchor="e", text_color=amt_color
        ).grid(row=0, column=5, padx=4)

        ctk.CTkLabel(
            row, text=tx.status.title(), width=80, anchor="w",
            text_color="#FF9800" if tx.is_planned else "gray60",
        ).grid(row=0, column=6, padx=4)

        acts = ctk.CTkFrame(row, fg_color="transparent")
        acts.grid(row=0, column=7, padx=(4, 6))
        if tx.is_planned:
            ctk.CTkButton(
                acts, text="Done", width=48, height=24,
                fg_color="#4CAF50", hover_color="#388E3C",
                command=lambda t=tx: self._complete_tx(t),
            ).pack(side="left", padx=2)
        ctk.CTkButton(
            acts, text="Edit", width=44, height=24,
            command=lambda t=tx: self._open_edit_form(t),
        ).pack(side="left", padx=2)
        ctk.CTkButton(
            acts, text="Del", width=38, height=24,
            fg_color="#F44336", hover_color="#D32F2F",
            command=lambda t=tx: self._delete_tx(t),
        ).pack(side="left")

    # ── Actions ──────────────────────────────────────────────────────────────
    def _open_form(self, **kwargs):
        form = TransactionForm(
            self.winfo_toplevel(),
            self._tx_svc, self._acct_svc, self._cat_svc,
            current_account_id=self._get_account_id(),
            date_format=self._date_format,
            **kwargs,
        )
        self.wait_window(form)
        if form.saved:
            self._notify_refresh("transaction")

    def _open_add_form(self, type_: str):
        self._open_form(initial_type=type_)

    def _open_edit_form(self, tx: Transaction):
        self._open_form(initial_type=tx.type, transaction=tx)

    def _complete_tx(self, tx: Transaction):
        try:
            self._tx_svc.complete(tx.id)
        except LedgerError as e:
            messagebox.showerror("Complete Transaction", str(e), parent=self.winfo_toplevel())
            return
        self._notify_refresh("transaction")

    def _delete_tx(self, tx: Transaction):
        message = f"Delete this {tx.type} of {format_currency(tx.amount, tx.currency)}?"
        if not tx.is_planned:
            message += "\nAccount balances will be restored."
        if not ask_confirm(self.winfo_toplevel(), "Delete Transaction", message, confirm_text="Delete"):
            return
        try:
            self._tx_svc.delete(tx.id)
        except LedgerError as e:
            messagebox.showerror("Delete Transaction", str(e), parent=self.winfo_toplevel())
            return
        self._notify_refresh("transaction")
