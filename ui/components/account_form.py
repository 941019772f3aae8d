import customtkinter as ctk

from models.account import ACCOUNT_TYPE_LABELS, Account, AccountInput
from services.account_service import AccountService
from services.household_service import HouseholdService

_NONE = "(none)"


class AccountForm(ctk.CTkToplevel):
    """Add or edit an account. Sets self.saved = True on success.

    The opening balance is only editable on creation; an existing account's
    balance is changed through "Correct balance", which rewrites both the
    initial and the current balance.
    """

    _TYPE_OPTIONS = list(ACCOUNT_TYPE_LABELS.values())
    _LABEL_TO_KEY = {v: k for k, v in ACCOUNT_TYPE_LABELS.items()}

    def __init__(
        self,
        master,
        account_service: AccountService,
        household_service: HouseholdService,
        account: Account | None = None,
        default_currency: str = "CZK",
        on_delete_callback=None,
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._svc = account_service
        self._account = account
        self._on_delete = on_delete_callback
        self.saved = False

        self._banks = household_service.get_banks()
        self._members = household_service.get_members()

        self.title("Edit Account" if account else "New Account")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        r = 0
        self._name_var = ctk.StringVar(value=account.name if account else "")
        self._name_entry = self._entry_row(r, "Name:", self._name_var)
        r += 1

        self._label("Type:", r)
        self._type_var = ctk.StringVar(
            value=ACCOUNT_TYPE_LABELS.get(account.account_type if account else "checking")
        )
        ctk.CTkComboBox(
            self, values=self._TYPE_OPTIONS, variable=self._type_var, width=240,
            state="readonly", command=lambda _: self._update_credit_visibility(),
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._label("Bank:", r)
        bank_name = next((b.name for b in self._banks if account and b.id == account.bank_id), _NONE)
        self._bank_var = ctk.StringVar(value=bank_name)
        ctk.CTkComboBox(
            self, values=[_NONE] + [b.name for b in self._banks],
            variable=self._bank_var, width=240, state="readonly",
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._label("Owner:", r)
        owner_name = next(
            (m.name for m in self._members if account and m.id == account.owner_member_id), _NONE
        )
        self._owner_var = ctk.StringVar(value=owner_name)
        ctk.CTkComboBox(
            self, values=[_NONE] + [m.name for m in self._members],
            variable=self._owner_var, width=240, state="readonly",
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._number_var = ctk.StringVar(value=(account.account_number or "") if account else "")
        self._entry_row(r, "Account number:", self._number_var)
        r += 1

        self._currency_var = ctk.StringVar(value=account.currency if account else default_currency)
        self._entry_row(r, "Currency:", self._currency_var, width=80)
        r += 1

        if account:
            self._balance_var = ctk.StringVar()
            self._entry_row(r, "Correct balance:", self._balance_var)
            ctk.CTkLabel(
                self, text=f"Current: {account.current_balance:,.2f} {account.currency}",
                text_color="gray60", font=ctk.CTkFont(size=11),
            ).grid(row=r + 1, column=1, padx=(0, 16), sticky="w")
            r += 2
        else:
            self._balance_var = ctk.StringVar(value="0.00")
            self._entry_row(r, "Opening balance:", self._balance_var)
            r += 1

        self._limit_label = self._label("Credit limit:", r)
        self._limit_var = ctk.StringVar(
            value=f"{account.credit_limit:.2f}" if account and account.credit_limit is not None else ""
        )
        self._limit_entry = ctk.CTkEntry(self, textvariable=self._limit_var, width=240)
        self._limit_entry.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._label("Premium:", r)
        premium_row = ctk.CTkFrame(self, fg_color="transparent")
        premium_row.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        self._premium_var = ctk.BooleanVar(value=account.is_premium if account else False)
        ctk.CTkCheckBox(premium_row, text="min. monthly flow", variable=self._premium_var).pack(side="left")
        self._flow_var = ctk.StringVar(
            value=f"{account.premium_min_flow:.0f}" if account and account.premium_min_flow else ""
        )
        ctk.CTkEntry(premium_row, textvariable=self._flow_var, width=90).pack(side="left", padx=(8, 0))
        r += 1

        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var, text_color="#F44336", wraplength=300, anchor="w"
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
        if account and account.active:
            ctk.CTkButton(
                buttons, text="Deactivate", width=100,
                fg_color="#F44336", hover_color="#D32F2F",
                command=self._on_deactivate,
            ).pack(side="left", padx=8)
        ctk.CTkButton(buttons, text="Save", width=90, command=self._on_save).pack(side="right")

        self.transient(master)
        self.grab_set()
        self._update_credit_visibility()
        self._center()
        self._name_entry.focus_set()

    def _label(self, text, row):
        label = ctk.CTkLabel(self, text=text)
        label.grid(row=row, column=0, padx=(16, 8), pady=4, sticky="e")
        return label

    def _entry_row(self, row, text, var, width=240):
        self._label(text, row)
        entry = ctk.CTkEntry(self, textvariable=var, width=width)
        entry.grid(row=row, column=1, padx=(0, 16), pady=4, sticky="w" if width < 240 else "ew")
        return entry

    def _selected_type(self) -> str:
        return self._LABEL_TO_KEY.get(self._type_var.get(), "checking")

    def _update_credit_visibility(self):
        if self._selected_type() == "credit":
            self._limit_label.grid()
            self._limit_entry.grid()
        else:
            self._limit_label.grid_remove()
            self._limit_entry.grid_remove()

    @staticmethod
    def _optional_float(raw: str, what: str) -> float | None:
        raw = raw.strip().replace(" ", "").replace(",", ".")
        if not raw:
            return None
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f"{what} must be a number.") from None

    def _collect(self) -> AccountInput:
        account_type = self._selected_type()
        bank = next((b for b in self._banks if b.name == self._bank_var.get()), None)
        owner = next((m for m in self._members if m.name == self._owner_var.get()), None)
        return AccountInput(
            name=self._name_var.get(),
            account_type=account_type,
            bank_id=bank.id if bank else None,
            owner_member_id=owner.id if owner else None,
            account_number=self._number_var.get().strip() or None,
            currency=self._currency_var.get(),
            initial_balance=self._optional_float(self._balance_var.get(), "Opening balance") or 0.0,
            color=self._account.color if self._account else None,
            credit_limit=(
                self._optional_float(self._limit_var.get(), "Credit limit")
                if account_type == "credit" else None
            ),
            is_premium=self._premium_var.get(),
            premium_min_flow=self._optional_float(self._flow_var.get(), "Minimum flow"),
            active=self._account.active if self._account else True,
        )

    def _on_save(self):
        try:
            data = self._collect()
            if self._account:
                self._svc.update(self._account.id, data)
                correction = self._optional_float(self._balance_var.get(), "Balance")
                if correction is not None:
                    self._svc.set_balance(self._account.id, correction)
            else:
                self._svc.create(data)
        except ValueError as e:
            self._error_var.set(str(e))
            return
        self.saved = True
        self.destroy()

    def _on_deactivate(self):
        try:
            self._svc.soft_delete(self._account.id)
        except LookupError as e:
            self._error_var.set(str(e))
            return
        self.saved = True
        if self._on_delete:
            self._on_delete()
        self.destroy()

    def _center(self):
        self.update_idletasks()
        mw = self.master.winfo_x() + self.master.winfo_width() // 2
        mh = self.master.winfo_y() + self.master.winfo_height() // 2
        w, h = self.winfo_reqwidth(), self.winfo_reqheight()
        self.geometry(f"+{mw - w//2}+{mh - h//2}")
