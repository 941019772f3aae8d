import customtkinter as ctk

from models.recurring_payment import RecurringPayment, RecurringPaymentInput
from services.account_service import AccountService
from services.category_service import CategoryService
from services.recurring_service import RecurringService
from ui.components.confirm_dialog import ask_confirm
from ui.components.date_picker import DatePickerWidget
from utils.constants import FREQUENCIES

_NONE = "(none)"
_DAY_CHOICES = [_NONE] + [str(i) for i in range(1, 32)]


class RecurringForm(ctk.CTkToplevel):
    """Add or edit a recurring payment (always an expense from one account)."""

    def __init__(
        self,
        master,
        recurring_service: RecurringService,
        account_service: AccountService,
        category_service: CategoryService,
        payment: RecurringPayment | None = None,
        date_format: str = "DD.MM.YYYY",
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._svc = recurring_service
        self._payment = payment
        self.saved = False

        self.title("Edit Recurring Payment" if payment else "New Recurring Payment")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        self._accounts = account_service.get_all(active_only=True)
        self._cats = category_service.get_for_transaction_type("expense")
        p = payment

        r = 0
        self._name_var = ctk.StringVar(value=p.name if p else "")
        self._name_entry = self._entry_row(r, "Name:", self._name_var)
        r += 1

        self._amount_var = ctk.StringVar(value=f"{p.amount:.2f}" if p else "")
        self._entry_row(r, "Amount:", self._amount_var)
        r += 1

        self._add_label("Account:", r)
        if p:
            acct_name = p.account_name
        else:
            acct_name = self._accounts[0].name if self._accounts else ""
        self._acct_var = ctk.StringVar(value=acct_name)
        ctk.CTkComboBox(
            self, values=[a.name for a in self._accounts],
            variable=self._acct_var, width=220, state="readonly",
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._add_label("Category:", r)
        cat_name = next((c.name for c in self._cats if p and c.id == p.category_id), _NONE)
        self._cat_var = ctk.StringVar(value=cat_name)
        ctk.CTkComboBox(
            self, values=[_NONE] + [c.name for c in self._cats],
            variable=self._cat_var, width=220, state="readonly",
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._desc_var = ctk.StringVar(value=p.description if p else "")
        self._entry_row(r, "Description:", self._desc_var)
        r += 1

        self._add_label("Every:", r)
        freq_row = ctk.CTkFrame(self, fg_color="transparent")
        freq_row.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        self._value_var = ctk.StringVar(value=str(p.frequency_value) if p else "1")
        ctk.CTkEntry(freq_row, textvariable=self._value_var, width=50).pack(side="left")
        self._freq_var = ctk.StringVar(value=p.frequency if p else "monthly")
        ctk.CTkComboBox(
            freq_row, values=list(FREQUENCIES), variable=self._freq_var,
            width=120, state="readonly",
            command=lambda _: self._update_day_visibility(),
        ).pack(side="left", padx=(8, 0))
        r += 1

        self._day_label = self._add_label("Day of month:", r)
        self._day_var = ctk.StringVar(
            value=str(p.day_of_period) if p and p.day_of_period else _NONE
        )
        self._day_combo = ctk.CTkComboBox(
            self, values=_DAY_CHOICES, variable=self._day_var, width=90, state="readonly"
        )
        self._day_combo.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        r += 1

        if p:
            self._start_picker = None
            ctk.CTkLabel(
                self,
                text=f"Next run: {p.next_execution_date or '-'}   Last run: {p.last_execution_date or '-'}",
                text_color="gray60", font=ctk.CTkFont(size=11),
            ).grid(row=r, column=0, columnspan=2, padx=16, pady=2, sticky="w")
            r += 1
        else:
            self._add_label("First run:", r)
            self._start_picker = DatePickerWidget(self, date_format=date_format, optional=True)
            self._start_picker.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
            r += 1
            ctk.CTkLabel(
                self, text="Empty: one period from today",
                text_color="gray60", font=ctk.CTkFont(size=11),
            ).grid(row=r, column=1, padx=(0, 16), sticky="w")
            r += 1

        self._active_var = ctk.BooleanVar(value=p.active if p else True)
        ctk.CTkCheckBox(self, text="Active", variable=self._active_var).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="w"
        )
        r += 1

        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var, text_color="#F44336", wraplength=280, anchor="w"
        ).grid(row=r, column=0, columnspan=2, padx=16, pady=(0, 4), sticky="ew")
        r += 1

        buttons = ctk.CTkFrame(self, fg_color="transparent")
        buttons.grid(row=r, column=0, columnspan=2, padx=16, pady=(4, 16), sticky="ew")
        ctk.CTkButton(
            buttons, text="Cancel", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self.destroy,
        ).pack(side="left")
        if p:
            ctk.CTkButton(
                buttons, text="Delete", width=80,
                fg_color="#F44336", hover_color="#D32F2F",
                command=self._on_delete,
            ).pack(side="left", padx=8)
        ctk.CTkButton(buttons, text="Save", width=90, command=self._on_save).pack(side="right")

        self.transient(master)
        self.grab_set()
        self._update_day_visibility()
        self._center()
        self._name_entry.focus_set()

    def _add_label(self, text, row):
        label = ctk.CTkLabel(self, text=text)
        label.grid(row=row, column=0, padx=(16, 8), pady=4, sticky="e")
        return label

    def _entry_row(self, row, text, var):
        self._add_label(text, row)
        entry = ctk.CTkEntry(self, textvariable=var, width=220)
        entry.grid(row=row, column=1, padx=(0, 16), pady=4, sticky="ew")
        return entry

    def _update_day_visibility(self):
        # only monthly schedules pin a day
        if self._freq_var.get() == "monthly":
            self._day_label.grid()
            self._day_combo.grid()
        else:
            self._day_label.grid_remove()
            self._day_combo.grid_remove()

    def _on_save(self):
        try:
            amount = float(self._amount_var.get().strip().replace(" ", "").replace(",", "."))
        except ValueError:
            self._error_var.set("Invalid amount.")
            return
        try:
            value = int(self._value_var.get())
        except ValueError:
            self._error_var.set("The multiplier must be a whole number.")
            return
        if self._start_picker is not None and not self._start_picker.is_valid():
            self._error_var.set("Invalid start date.")
            return

        acct = next((a for a in self._accounts if a.name == self._acct_var.get()), None)
        if acct is None:
            self._error_var.set("Please select an account.")
            return
        cat = next((c for c in self._cats if c.name == self._cat_var.get()), None)
        freq = self._freq_var.get()
        day = self._day_var.get()

        data = RecurringPaymentInput(
            name=self._name_var.get(),
            amount=amount,
            account_id=acct.id,
            frequency=freq,
            frequency_value=value,
            day_of_period=int(day) if freq == "monthly" and day != _NONE else None,
            currency=acct.currency,
            category_id=cat.id if cat else None,
            description=self._desc_var.get().strip(),
            active=self._active_var.get(),
            start_date=(self._start_picker.get() or None) if self._start_picker else None,
        )
        try:
            if self._payment:
                self._svc.update(self._payment.id, data)
            else:
                self._svc.create(data)
        except (ValueError, LookupError) as e:
            self._error_var.set(str(e))
            return
        self.saved = True
        self.destroy()

    def _on_delete(self):
        if not ask_confirm(
            self, "Delete Recurring Payment",
            f"Delete '{self._payment.name}'? Transactions it already posted are kept.",
            confirm_text="Delete",
        ):
            return
        try:
            self._svc.delete(self._payment.id)
        except LookupError as e:
            self._error_var.set(str(e))
            return
        self.saved = True
        self.destroy()

    def _center(self):
        self.update_idletasks()
        mw = self.master.winfo_x() + self.master.winfo_width() // 2
        mh = self.master.winfo_y() + self.master.winfo_height() // 2
        w, h = self.winfo_reqwidth(), self.winfo_reqheight()
        self.geometry(f"+{mw - w//2}+{mh - h//2}")
