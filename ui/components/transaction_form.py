import customtkinter as ctk

from models.account import Account
from models.transaction import Transaction, TransactionInput
from services.account_service import AccountService
from services.category_service import CategoryService
from services.transaction_service import TransactionService
from ui.components.date_picker import DatePickerWidget
from utils.date_helpers import today_str

_NONE = "(none)"


class TransactionForm(ctk.CTkToplevel):
    """Add or edit an expense, income or transfer.

    Editing rewrites the row only; balances already posted are left as they are.
    """

    _last_date: str = today_str()  # reset to today on each app launch

    def __init__(
        self,
        master,
        tx_service: TransactionService,
        account_service: AccountService,
        category_service: CategoryService,
        current_account_id: int | None,
        initial_type: str = "expense",
        transaction: Transaction | None = None,
        date_format: str = "DD.MM.YYYY",
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._tx_svc = tx_service
        self._cat_svc = category_service
        self._transaction = transaction
        self.saved = False

        tx = transaction
        self._accounts: list[Account] = account_service.get_all(active_only=True)
        account_names = [_NONE] + [a.name for a in self._accounts]
        current_name = next((a.name for a in self._accounts if a.id == current_account_id), _NONE)

        self.title(f"{'Edit' if tx else 'Add'} Transaction")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        r = 0
        self._label("Type:", r)
        self._type_var = ctk.StringVar(value=tx.type if tx else initial_type)
        type_frame = ctk.CTkFrame(self, fg_color="transparent")
        type_frame.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        for t in ("expense", "income", "transfer"):
            ctk.CTkRadioButton(
                type_frame, text=t.title(), variable=self._type_var, value=t,
                command=self._on_type_change,
            ).pack(side="left", padx=4)
        r += 1

        self._label("Amount:", r)
        self._amount_var = ctk.StringVar(value=f"{tx.amount:.2f}" if tx else "")
        self._amount_entry = ctk.CTkEntry(self, textvariable=self._amount_var, width=220)
        self._amount_entry.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._label("Date:", r)
        self._date_picker = DatePickerWidget(
            self, initial_date=tx.date if tx else TransactionForm._last_date, date_format=date_format,
        )
        self._date_picker.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        r += 1

        self._from_label = self._label("From account:", r)
        self._from_var = ctk.StringVar(value=self._account_name(tx.from_account_id) if tx else current_name)
        self._from_combo = ctk.CTkComboBox(
            self, values=account_names, variable=self._from_var, width=220, state="readonly"
        )
        self._from_combo.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._to_label = self._label("To account:", r)
        self._to_var = ctk.StringVar(value=self._account_name(tx.to_account_id) if tx else _NONE)
        self._to_combo = ctk.CTkComboBox(
            self, values=account_names, variable=self._to_var, width=220, state="readonly"
        )
        self._to_combo.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._label("Category:", r)
        self._cat_var = ctk.StringVar(value=tx.category_name if tx and tx.category_name else _NONE)
        self._cat_combo = ctk.CTkComboBox(
            self, values=[_NONE], variable=self._cat_var, width=220, state="readonly"
        )
        self._cat_combo.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._label("Description:", r)
        self._desc_var = ctk.StringVar(value=tx.description if tx else "")
        ctk.CTkEntry(self, textvariable=self._desc_var, width=220).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1

        self._label("Notes:", r)
        self._notes_var = ctk.StringVar(value=tx.notes if tx else "")
        ctk.CTkEntry(self, textvariable=self._notes_var, width=220).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1

        self._label("Planned:", r)
        self._planned_var = ctk.BooleanVar(value=tx.is_planned if tx else False)
        planned_box = ctk.CTkCheckBox(self, text="not yet posted to balances", variable=self._planned_var)
        planned_box.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        if tx:
            # status only changes through complete(), which posts the balances
            planned_box.configure(state="disabled")
        r += 1

        if tx and tx.status == "completed":
            ctk.CTkLabel(
                self, text="Changes here do not re-post account balances.",
                text_color="gray60", font=ctk.CTkFont(size=11),
            ).grid(row=r, column=0, columnspan=2, padx=16, sticky="w")
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
        ctk.CTkButton(buttons, text="Save", width=110, command=self._on_save).pack(side="right")

        self._on_type_change(keep_category=True)
        self.transient(master)
        self.grab_set()
        self._center()
        self._amount_entry.focus_set()

    def _label(self, text, row):
        label = ctk.CTkLabel(self, text=text)
        label.grid(row=row, column=0, padx=(16, 8), pady=4, sticky="e")
        return label

    def _account_name(self, account_id: int | None) -> str:
        return next((a.name for a in self._accounts if a.id == account_id), _NONE)

    def _account_id(self, name: str) -> int | None:
        return next((a.id for a in self._accounts if a.name == name), None)

    def _on_type_change(self, keep_category: bool = False):
        t = self._type_var.get()
        # expense: from only; income: to only; transfer: both
        for label, combo, shown in (
            (self._from_label, self._from_combo, t in ("expense", "transfer")),
            (self._to_label, self._to_combo, t in ("income", "transfer")),
        ):
            if shown:
                label.grid()
                combo.grid()
            else:
                label.grid_remove()
                combo.grid_remove()

        if t == "income" and self._to_var.get() == _NONE:
            self._to_var.set(self._from_var.get())

        self._cats = self._cat_svc.get_for_transaction_type(t)
        names = [_NONE] + [c.name for c in self._cats]
        self._cat_combo.configure(values=names)
        if not keep_category or self._cat_var.get() not in names:
            self._cat_var.set(_NONE)

    def _on_save(self):
        try:
            amount = float(self._amount_var.get().strip().replace(" ", "").replace(",", "."))
        except ValueError:
            self._error_var.set("Invalid amount.")
            return
        if not self._date_picker.is_valid():
            self._error_var.set("Invalid date.")
            return

        t = self._type_var.get()
        category = next((c for c in self._cats if c.name == self._cat_var.get()), None)
        data = TransactionInput(
            date=self._date_picker.get(),
            amount=amount,
            type=t,
            currency=self._currency_for(t),
            from_account_id=self._account_id(self._from_var.get()) if t != "income" else None,
            to_account_id=self._account_id(self._to_var.get()) if t != "expense" else None,
            category_id=category.id if category else None,
            description=self._desc_var.get(),
            notes=self._notes_var.get(),
            status=(
                self._transaction.status if self._transaction
                else "planned" if self._planned_var.get() else "completed"
            ),
        )
        try:
            if self._transaction:
                self._tx_svc.update(self._transaction.id, data)
            else:
                self._tx_svc.create(data)
        except (ValueError, LookupError) as e:
            self._error_var.set(str(e))
            return
        TransactionForm._last_date = data.date
        self.saved = True
        self.destroy()

    def _currency_for(self, t: str) -> str | None:
        """Currency of the account the money leaves (or enters, for income)."""
        name = self._to_var.get() if t == "income" else self._from_var.get()
        account = next((a for a in self._accounts if a.name == name), None)
        return account.currency if account else None

    def _center(self):
        self.update_idletasks()
        mw = self.master.winfo_x() + self.master.winfo_width() // 2
        mh = self.master.winfo_y() + self.master.winfo_height() // 2
        w, h = self.winfo_reqwidth(), self.winfo_reqheight()
        self.geometry(f"+{mw - w//2}+{mh - h//2}")
