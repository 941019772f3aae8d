import logging
from dataclasses import asdict
from tkinter import messagebox

import customtkinter as ctk

from models.recurring_payment import RecurringPayment, RecurringPaymentInput
from services.account_service import AccountService
from services.category_service import CategoryService
from services.recurring_service import RecurringService
from ui.components.recurring_form import RecurringForm
from utils.currency import format_currency
from utils.date_helpers import format_display_date, today_str
from utils.errors import LedgerError

logger = logging.getLogger(__name__)


def _every(p: RecurringPayment) -> str:
    unit = {"daily": "day", "weekly": "week", "monthly": "month", "yearly": "year"}[p.frequency]
    text = f"every {unit}" if p.frequency_value == 1 else f"every {p.frequency_value} {unit}s"
    if p.frequency == "monthly" and p.day_of_period:
        text += f" on the {p.day_of_period}."
    return text


class RecurringTab(ctk.CTkFrame):
    def __init__(
        self,
        master,
        recurring_service: RecurringService,
        account_service: AccountService,
        category_service: CategoryService,
        notify_refresh,
        date_format: str = "DD.MM.YYYY",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._svc = recurring_service
        self._acct_svc = account_service
        self._cat_svc = category_service
        self._notify_refresh = notify_refresh
        self._date_format = date_format

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        self._build_toolbar()
        self._build_list()
        self._load()

    def refresh(self):
        self._load()

    def _build_toolbar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray88", "gray18"), corner_radius=8)
        bar.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 0))
        ctk.CTkLabel(
            bar, text="Recurring Payments",
            font=ctk.CTkFont(size=14, weight="bold"),
        ).pack(side="left", padx=12, pady=8)
        ctk.CTkButton(bar, text="+ Add Payment", command=self._open_add).pack(
            side="right", padx=8, pady=6
        )
        ctk.CTkButton(
            bar, text="Run due payments",
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._run_due,
        ).pack(side="right", padx=(8, 0), pady=6)

    def _build_list(self):
        self._scroll = ctk.CTkScrollableFrame(self)
        self._scroll.grid(row=1, column=0, sticky="nsew", padx=8, pady=8)
        self._scroll.grid_columnconfigure(0, weight=1)

    def _load(self):
        for w in self._scroll.winfo_children():
            w.destroy()

        payments = self._svc.get_all()
        if not payments:
            ctk.CTkLabel(
                self._scroll,
                text="No recurring payments yet. Click '+ Add Payment' to create one.",
                text_color="gray60",
            ).grid(row=0, column=0, pady=40)
            return

        hdr = ctk.CTkFrame(self._scroll, fg_color=("gray82", "gray22"), corner_radius=0)
        hdr.grid(row=0, column=0, sticky="ew", pady=(0, 2))
        for i, (col, w) in enumerate([
            ("Name", 160), ("Amount", 110), ("Account", 120), ("Category", 110),
            ("Schedule", 160), ("Next Run", 90), ("Last Run", 90), ("Status", 70), ("Actions", 110),
        ]):
            ctk.CTkLabel(
                hdr, text=col, width=w, anchor="w",
                font=ctk.CTkFont(weight="bold"),
            ).grid(row=0, column=i, padx=4, pady=4)

        cat_names = {c.id: c.name for c in self._cat_svc.get_all()}
        ref = today_str()
        for idx, payment in enumerate(payments):
            self._add_row(idx + 1, payment, cat_names, ref)

    def _add_row(self, idx, p: RecurringPayment, cat_names: dict, ref: str):
        bg = ("gray92", "gray17") if idx % 2 == 0 else ("gray88", "gray21")
        row = ctk.CTkFrame(self._scroll, fg_color=bg, corner_radius=4)
        row.grid(row=idx, column=0, sticky="ew", pady=1, padx=2)

        overdue = p.active and p.next_execution_date is not None and p.next_execution_date <= ref
        data = [
            (p.name, 160),
            (format_currency(p.amount, p.currency), 110),
            (p.account_name or "-", 120),
            (cat_names.get(p.category_id, "-"), 110),
            (_every(p), 160),
        ]
        for i, (text, width) in enumerate(data):
            ctk.CTkLabel(row, text=text, width=width, anchor="w").grid(
                row=0, column=i, padx=4, pady=4
            )
        ctk.CTkLabel(
            row, text=format_display_date(p.next_execution_date, self._date_format) or "-",
            width=90, anchor="w", text_color="#FF9800" if overdue else ("gray10", "gray90"),
        ).grid(row=0, column=5, padx=4)
        ctk.CTkLabel(
            row, text=format_display_date(p.last_execution_date, self._date_format) or "-",
            width=90, anchor="w", text_color="gray60",
        ).grid(row=0, column=6, padx=4)
        ctk.CTkLabel(
            row, text="Active" if p.active else "Paused", width=70, anchor="w",
            text_color="#4CAF50" if p.active else "gray60",
        ).grid(row=0, column=7, padx=4)

        acts = ctk.CTkFrame(row, fg_color="transparent")
        acts.grid(row=0, column=8, padx=(4, 6))
        ctk.CTkButton(
            acts, text="Edit", width=40, height=24,
            command=lambda r=p: self._open_edit(r),
        ).pack(side="left", padx=2)
        ctk.CTkButton(
            acts, text="Pause" if p.active else "Resume", width=60, height=24,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=lambda r=p: self._toggle_active(r),
        ).pack(side="left")

    def _open_form(self, payment: RecurringPayment | None = None):
        form = RecurringForm(
            self.winfo_toplevel(),
            self._svc, self._acct_svc, self._cat_svc,
            payment=payment,
            date_format=self._date_format,
        )
        self.wait_window(form)
        if form.saved:
            self._notify_refresh("recurring")

    def _open_add(self):
        self._open_form()

    def _open_edit(self, payment: RecurringPayment):
        self._open_form(payment)

    def _toggle_active(self, p: RecurringPayment):
        fields = {k: v for k, v in asdict(p).items() if k in RecurringPaymentInput.__dataclass_fields__}
        fields["active"] = not p.active
        try:
            self._svc.update(p.id, RecurringPaymentInput(**fields))
        except LedgerError as e:
            messagebox.showerror("Recurring Payment", str(e), parent=self.winfo_toplevel())
            return
        self._notify_refresh("recurring")

    def _run_due(self):
        try:
            created = self._svc.sweep()
        except LedgerError as e:
            logger.error(f"Manual sweep failed: {e}")
            messagebox.showerror("Run Due Payments", str(e), parent=self.winfo_toplevel())
            self._notify_refresh("sweep")
            return
        if created:
            messagebox.showinfo(
                "Run Due Payments",
                f"Posted {len(created)} payment{'s' if len(created) != 1 else ''}.",
                parent=self.winfo_toplevel(),
            )
        else:
            messagebox.showinfo("Run Due Payments", "Nothing is due today.", parent=self.winfo_toplevel())
        self._notify_refresh("sweep")
