import customtkinter as ctk


class ConfirmDialog(ctk.CTkToplevel):
    """Modal yes/no question. Blocks until answered; read .result afterwards.

    destructive=True paints the confirm button red (deletes, restores, imports).
    """

    def __init__(
        self,
        master,
        title: str,
        message: str,
        confirm_text: str = "Confirm",
        destructive: bool = True,
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self.title(title)
        self.result = False
        self.resizable(False, False)
        self.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(
            self, text=message, wraplength=380, justify="left", padx=20, pady=16
        ).grid(row=0, column=0, sticky="ew")

        buttons = ctk.CTkFrame(self, fg_color="transparent")
        buttons.grid(row=1, column=0, pady=(0, 16), padx=20, sticky="e")

        ctk.CTkButton(
            buttons, text="Cancel", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._answer_no,
        ).pack(side="left", padx=(0, 8))

        colors = {"fg_color": "#F44336", "hover_color": "#D32F2F"} if destructive else {}
        ctk.CTkButton(
            buttons, text=confirm_text, width=90, command=self._answer_yes, **colors
        ).pack(side="left")

        self.bind("<Escape>", lambda e: self._answer_no())
        self.transient(master)
        self.grab_set()
        self._center()
        self.wait_window()

    def _center(self):
        self.update_idletasks()
        mx = self.master.winfo_x() + self.master.winfo_width() // 2
        my = self.master.winfo_y() + self.master.winfo_height() // 2
        self.geometry(f"+{mx - self.winfo_width() // 2}+{my - self.winfo_height() // 2}")

    def _answer_yes(self):
        self.result = True
        self.destroy()

    def _answer_no(self):
        self.result = False
        self.destroy()


def ask_confirm(master, title: str, message: str, **kwargs) -> bool:
    return ConfirmDialog(master, title, message, **kwargs).result
