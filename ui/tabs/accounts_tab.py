import logging
import threading
import tkinter as tk

import customtkinter as ctk
from matplotlib.figure import Figure
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg

from models.account import ACCOUNT_TYPE_LABELS, Account
from services.account_service import AccountService
from services.report_service import ReportService
from utils.currency import format_currency
from utils.date_helpers import current_month_str, friendly_month, next_month, prev_month
from utils.errors import LedgerError

logger = logging.getLogger(__name__)


class AccountsTab(ctk.CTkFrame):
    """Balances of every account plus the selected month's activity."""

    def __init__(
        self,
        master,
        account_service: AccountService,
        report_service: ReportService,
        get_account_id,   # callable → int | None
        on_account_selected=None,
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._acct_svc = account_service
        self._report_svc = report_service
        self._get_account_id = get_account_id
        self._on_account_selected = on_account_selected
        self._month_var = ctk.StringVar(value=current_month_str())
        self._month_label_var = ctk.StringVar(value=friendly_month(self._month_var.get()))
        self._load_gen = 0

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(3, weight=1)

        self._build_month_nav()
        self._build_summary_cards()
        self._build_totals_strip()
        self._build_bottom_section()

        self.after(100, self._load)

    def refresh(self):
        self._load()

    # ── Layout builders ───────────────────────────────────────────────────────

    def _build_month_nav(self):
        nav = ctk.CTkFrame(self, fg_color="transparent")
        nav.grid(row=0, column=0, sticky="ew", padx=16, pady=(12, 0))
        ctk.CTkButton(nav, text="◀", width=28, command=self._prev_month).pack(side="left")
        ctk.CTkLabel(
            nav, textvariable=self._month_label_var,
            font=ctk.CTkFont(size=15, weight="bold"), width=150, anchor="center"
        ).pack(side="left", padx=8)
        ctk.CTkButton(nav, text="▶", width=28, command=self._next_month).pack(side="left")

    def _build_summary_cards(self):
        self._card_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._card_frame.grid(row=1, column=0, sticky="ew", padx=16, pady=(12, 4))
        self._card_frame.grid_columnconfigure((0, 1, 2), weight=1)

    def _build_totals_strip(self):
        self._totals_label = ctk.CTkLabel(self, text="", text_color="gray60", anchor="w")
        self._totals_label.grid(row=2, column=0, sticky="ew", padx=22, pady=(0, 8))

    def _build_bottom_section(self):
        bottom = ctk.CTkFrame(self, fg_color="transparent")
        bottom.grid(row=3, column=0, sticky="nsew", padx=16, pady=(0, 12))
        bottom.grid_columnconfigure(0, weight=2)
        bottom.grid_columnconfigure(1, weight=3)
        bottom.grid_rowconfigure(0, weight=1)

        self._accounts_frame = ctk.CTkScrollableFrame(bottom, label_text="Accounts", height=260)
        self._accounts_frame.grid(row=0, column=0, sticky="nsew", padx=(0, 8))
        self._accounts_frame.grid_columnconfigure(0, weight=1)

        charts = ctk.CTkFrame(bottom, fg_color=("gray90", "gray20"), corner_radius=8)
        charts.grid(row=0, column=1, sticky="nsew", padx=(8, 0))
        ctk.CTkLabel(
            charts, text="Cash Flow (6 months)",
            font=ctk.CTkFont(size=13, weight="bold"),
        ).pack(pady=(10, 0))
        self._fig = Figure(figsize=(5, 3), dpi=80, tight_layout=True)
        self._flow_ax = self._fig.add_subplot(121)
        self._pie_ax = self._fig.add_subplot(122)
        self._mpl = FigureCanvasTkAgg(self._fig, master=charts)
        self._mpl.get_tk_widget().pack(fill="both", expand=True, padx=8, pady=(4, 4))
        self._legend_frame = ctk.CTkFrame(charts, fg_color="transparent")
        self._legend_frame.pack(fill="x", padx=8, pady=(0, 8))

    # ── Callbacks ─────────────────────────────────────────────────────────────

    def _prev_month(self):
        self._month_var.set(prev_month(self._month_var.get()))
        self._load()

    def _next_month(self):
        self._month_var.set(next_month(self._month_var.get()))
        self._load()

    def _select(self, account: Account):
        if self._on_account_selected:
            self._on_account_selected(account)

    # ── Data loading ──────────────────────────────────────────────────────────

    def _load(self):
        self._load_gen += 1
        gen = self._load_gen
        month = self._month_var.get()
        self._month_label_var.set(friendly_month(month))

        def fetch():
            try:
                data = {
                    "accounts": self._acct_svc.get_all(active_only=True),
                    "summary": self._report_svc.get_summary(month),
                    "overview": self._report_svc.get_balance_overview(),
                    "flow": self._report_svc.get_cash_flow(6, end_month=month),
                    "breakdown": self._report_svc.get_category_breakdown(month),
                }
            except LedgerError:
                logger.exception(f"Failed to load account overview for {month}")
                data = None
            self.after(0, lambda: self._on_data_ready(gen, data))

        threading.Thread(target=fetch, daemon=True).start()

    def _on_data_ready(self, gen: int, data: dict | None):
        if gen != self._load_gen:
            return
        if not self.winfo_exists():
            return
        if data is None:
            return

        self._render_cards(data["summary"])
        self._totals_label.configure(
            text="Total balance:   " + "   ".join(
                format_currency(total, cur) for cur, total in sorted(data["overview"].items())
            ) if data["overview"] else "No active accounts."
        )
        self._render_accounts(data["accounts"])
        self._draw_charts(data["flow"], data["breakdown"])

    def _render_cards(self, summary: dict):
        for w in self._card_frame.winfo_children():
            w.destroy()
        net = summary["net"]
        for i, (label, value, color) in enumerate([
            ("Income", summary["income"], "#4CAF50"),
            ("Expenses", summary["expense"], "#F44336"),
            ("Net", net, "#2196F3" if net >= 0 else "#FF9800"),
        ]):
            card = ctk.CTkFrame(self._card_frame, fg_color=("gray90", "gray20"), corner_radius=10)
            card.grid(row=0, column=i, padx=6, sticky="ew")
            card.grid_columnconfigure(0, weight=1)
            ctk.CTkLabel(
                card, text=label, font=ctk.CTkFont(size=12), text_color="gray60",
            ).grid(row=0, column=0, pady=(12, 0), padx=16)
            text = f"{value:+,.2f}" if label == "Net" else f"{value:,.2f}"
            ctk.CTkLabel(
                card, text=text, font=ctk.CTkFont(size=20, weight="bold"), text_color=color,
            ).grid(row=1, column=0, pady=(4, 12), padx=16)

    def _render_accounts(self, accounts: list[Account]):
        for w in self._accounts_frame.winfo_children():
            w.destroy()
        if not accounts:
            ctk.CTkLabel(
                self._accounts_frame, text="No accounts yet. Use '+ New Account' above.",
                text_color="gray60",
            ).pack(pady=20)
            return

        current_id = self._get_account_id()
        for idx, a in enumerate(accounts):
            if a.id == current_id:
                bg = ("#c8dcf0", "#1f3a55")
            else:
                bg = ("gray90", "gray20") if idx % 2 == 0 else ("gray86", "gray24")
            row = ctk.CTkFrame(self._accounts_frame, fg_color=bg, corner_radius=4)
            row.pack(fill="x", pady=1)
            row.grid_columnconfigure(1, weight=1)

            tk.Label(row, bg=a.color or "#888888", width=1).grid(row=0, column=0, rowspan=2, sticky="ns")
            ctk.CTkLabel(row, text=a.name, anchor="w", font=ctk.CTkFont(weight="bold")).grid(
                row=0, column=1, padx=6, pady=(3, 0), sticky="ew"
            )
            sub = ACCOUNT_TYPE_LABELS.get(a.account_type, a.account_type)
            if a.available_credit is not None:
                sub += f" · available {format_currency(a.available_credit, a.currency)}"
            if a.is_premium:
                sub += " · premium"
            ctk.CTkLabel(
                row, text=sub, anchor="w", text_color="gray60", font=ctk.CTkFont(size=11),
            ).grid(row=1, column=1, padx=6, pady=(0, 3), sticky="ew")
            ctk.CTkLabel(
                row, text=format_currency(a.current_balance, a.currency), anchor="e",
                text_color="#F44336" if a.current_balance < 0 else ("gray10", "gray90"),
            ).grid(row=0, column=2, rowspan=2, padx=8)

            for w in (row, *row.winfo_children()):
                w.bind("<Button-1>", lambda e, acct=a: self._select(acct))

    # ── Charts ────────────────────────────────────────────────────────────────

    def _style_ax(self, ax):
        is_dark = ctk.get_appearance_mode() == "Dark"
        bg = "#2b2b2b" if is_dark else "#e4e4e4"
        fg = "#aaaaaa" if is_dark else "#444444"
        self._fig.patch.set_facecolor(bg)
        ax.set_facecolor(bg)
        ax.tick_params(colors=fg, labelsize=8)
        for spine in ax.spines.values():
            spine.set_edgecolor(fg)

    def _draw_charts(self, flow: list[dict], breakdown: list[dict]):
        ax = self._flow_ax
        ax.clear()
        self._style_ax(ax)
        labels = [d["month"][5:] for d in flow]
        x = list(range(len(labels)))
        w = 0.35
        ax.bar([i - w / 2 for i in x], [d["income"] for d in flow], w, color="#4CAF50")
        ax.bar([i + w / 2 for i in x], [d["expense"] for d in flow], w, color="#F44336")
        ax.plot(x, [d["net"] for d in flow], color="#2196F3", marker="o", linewidth=1)
        ax.set_xticks(x)
        ax.set_xticklabels(labels)
        ax.yaxis.set_major_formatter(
            lambda v, _: f"{v/1000:.0f}k" if abs(v) >= 1000 else f"{v:.0f}"
        )

        pie = self._pie_ax
        pie.clear()
        self._style_ax(pie)
        total = sum(d["total"] for d in breakdown)
        if not breakdown or total == 0:
            pie.text(0.5, 0.5, "No expenses", ha="center", va="center",
                     transform=pie.transAxes, color="gray")
            pie.set_axis_off()
        else:
            pie.set_axis_on()
            pie.pie(
                [d["total"] for d in breakdown],
                colors=[d["color_hex"] for d in breakdown],
                startangle=90,
            )
            pie.set_aspect("equal")
        self._mpl.draw_idle()

        for w in self._legend_frame.winfo_children():
            w.destroy()
        for item in breakdown[:6]:
            row = ctk.CTkFrame(self._legend_frame, fg_color="transparent")
            row.pack(fill="x", pady=1)
            tk.Label(row, bg=item["color_hex"], width=2).pack(side="left", padx=(0, 4))
            ctk.CTkLabel(
                row, text=f"{item['category']}: {item['total']:,.2f}",
                anchor="w", font=ctk.CTkFont(size=11),
            ).pack(side="left")
