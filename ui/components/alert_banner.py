import customtkinter as ctk

from utils.constants import SEVERITY_COLORS


class AlertBanner(ctk.CTkFrame):
    """Dismissible strip above the tabs: sweep results, balance drift, import notices."""

    def __init__(
        self,
        master,
        message: str,
        severity: str = "info",
        action_text: str | None = None,
        action_cmd=None,
        auto_dismiss_ms: int | None = None,
        **kwargs,
    ):
        super().__init__(
            master, fg_color=SEVERITY_COLORS.get(severity, SEVERITY_COLORS["info"]),
            corner_radius=6, **kwargs,
        )
        self.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(
            self, text=message, text_color="white", anchor="w", padx=10, pady=6
        ).grid(row=0, column=0, sticky="ew")

        buttons = ctk.CTkFrame(self, fg_color="transparent")
        buttons.grid(row=0, column=1, padx=(0, 4))

        if action_text and action_cmd:
            ctk.CTkButton(
                buttons, text=action_text, width=60, height=24,
                fg_color="transparent", border_width=1, border_color="white",
                hover_color="#ffffff", text_color="white",
                command=lambda: (action_cmd(), self.destroy()),
            ).pack(side="left", padx=2)

        ctk.CTkButton(
            buttons, text="✕", width=28, height=24,
            fg_color="transparent", hover_color="#ffffff", text_color="white",
            command=self.destroy,
        ).pack(side="left")

        if auto_dismiss_ms:
            self.after(auto_dismiss_ms, self._expire)

    def _expire(self):
        if self.winfo_exists():
            self.destroy()
