"""
MainWindowView
---------------
Tkinter main window for the operations console.
This file contains **only View code**: no HTTP, no dispatching. It exposes
callback hooks that ``opsconsole.app.main.App`` connects to view models.

The window provides:
  * Toolbar with Connect / Disconnect / Settings
  * Action form: action picker, eight input slots and the Run button
  * Result grid (Treeview) whose columns follow the presented rows
  * StatusBar with connection label, busy indicator and message
"""
from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ...domain.actions import SLOTS

# Slots rendered as multi-line text instead of a single-line entry.
MESSAGE_SLOTS = ("message_internal", "message_external")


class MainWindowView(tk.Tk):
    """Top-level application window.

    UI-only. Field enablement, captions and grid content are pushed in by the
    app; user input is reported back through the injected callbacks.
    """

    OnVoid = Optional[Callable[[], None]]
    OnIndex = Optional[Callable[[int], None]]
    OnField = Optional[Callable[[str, str], None]]

    def __init__(
        self,
        *,
        action_labels: Sequence[str] = (),
        on_run: OnVoid = None,
        on_connect: OnVoid = None,
        on_disconnect: OnVoid = None,
        on_open_settings: OnVoid = None,
        on_action_selected: OnIndex = None,
        on_field_changed: OnField = None,
    ) -> None:
        super().__init__()

        self.title("Ops Console")
        self.geometry("1200x760")
        self.minsize(900, 600)

        self._on_run = on_run
        self._on_connect = on_connect
        self._on_disconnect = on_disconnect
        self._on_open_settings = on_open_settings
        self._on_action_selected = on_action_selected
        self._on_field_changed = on_field_changed

        self.field_vars: Dict[str, tk.StringVar] = {}
        self._field_widgets: Dict[str, tk.Widget] = {}
        self._field_labels: Dict[str, ttk.Label] = {}
        self._suppress_field_events = False

        # ---- Layout: toolbar, form, grid, status ----
        self.rowconfigure(2, weight=1)
        self.columnconfigure(0, weight=1)

        self._build_toolbar(self)
        self._build_form(self, action_labels)
        self._build_grid(self)
        self._build_statusbar(self)

        self.bind("<Control-Return>", lambda e: self._fire(self._on_run))

    # ------------------------------------------------------------------
    # Toolbar
    # ------------------------------------------------------------------
    def _build_toolbar(self, parent: tk.Widget) -> None:
        toolbar = ttk.Frame(parent)
        toolbar.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 4))

        self.btn_connect = ttk.Button(toolbar, text="Connect", command=lambda: self._fire(self._on_connect))
        self.btn_connect.grid(row=0, column=0, padx=(0, 6))
        self.btn_disconnect = ttk.Button(
            toolbar, text="Disconnect", command=lambda: self._fire(self._on_disconnect), state="disabled"
        )
        self.btn_disconnect.grid(row=0, column=1, padx=6)
        ttk.Button(toolbar, text="Settings", command=lambda: self._fire(self._on_open_settings)).grid(
            row=0, column=2, padx=(24, 6)
        )

    # ------------------------------------------------------------------
    # Action form
    # ------------------------------------------------------------------
    def _build_form(self, parent: tk.Widget, action_labels: Sequence[str]) -> None:
        form = ttk.Labelframe(parent, text="Action")
        form.grid(row=1, column=0, sticky="ew", padx=8, pady=4)
        form.columnconfigure(1, weight=1)
        form.columnconfigure(3, weight=1)

        ttk.Label(form, text="Action").grid(row=0, column=0, sticky="w", padx=(6, 4), pady=4)
        self.action_var = tk.StringVar(value="")
        self.cmb_action = ttk.Combobox(
            form, textvariable=self.action_var, values=list(action_labels), state="readonly", width=40
        )
        self.cmb_action.grid(row=0, column=1, sticky="w", pady=4)
        self.cmb_action.bind("<<ComboboxSelected>>", self._on_action_combo)

        self.btn_run = ttk.Button(form, text="Run", command=lambda: self._fire(self._on_run))
        self.btn_run.grid(row=0, column=3, sticky="e", padx=6, pady=4)

        row = 1
        col = 0
        for slot in SLOTS:
            if slot in MESSAGE_SLOTS:
                continue
            var = tk.StringVar(value="")
            self.field_vars[slot] = var
            label = ttk.Label(form, text=slot.title())
            label.grid(row=row, column=col, sticky="w", padx=(6, 4), pady=2)
            if slot == "option":
                widget: tk.Widget = ttk.Combobox(form, textvariable=var, state="readonly", width=30)
                widget.bind("<<ComboboxSelected>>", lambda e, s=slot: self._emit_field(s))
            else:
                widget = ttk.Entry(form, textvariable=var, width=36)
                var.trace_add("write", lambda *_, s=slot: self._emit_field(s))
            widget.grid(row=row, column=col + 1, sticky="ew", pady=2)
            self._field_labels[slot] = label
            self._field_widgets[slot] = widget
            col += 2
            if col >= 4:
                col = 0
                row += 1

        row += 1
        for offset, slot in enumerate(MESSAGE_SLOTS):
            label = ttk.Label(form, text=slot.replace("_", " ").title())
            label.grid(row=row, column=offset * 2, sticky="nw", padx=(6, 4), pady=2)
            text = tk.Text(form, height=3, width=36, wrap="word")
            text.grid(row=row, column=offset * 2 + 1, sticky="ew", pady=2)
            text.bind("<<Modified>>", lambda e, s=slot: self._on_text_modified(s))
            self._field_labels[slot] = label
            self._field_widgets[slot] = text

    def _on_action_combo(self, _event=None) -> None:
        index = self.cmb_action.current()
        if index >= 0 and self._on_action_selected:
            self._on_action_selected(index)

    def _emit_field(self, slot: str) -> None:
        if self._suppress_field_events or not self._on_field_changed:
            return
        self._on_field_changed(slot, self.get_field(slot))

    def _on_text_modified(self, slot: str) -> None:
        widget = self._field_widgets[slot]
        if not widget.edit_modified():
            return
        widget.edit_modified(False)
        self._emit_field(slot)

    # ------------------------------------------------------------------
    # Result grid
    # ------------------------------------------------------------------
    def _build_grid(self, parent: tk.Widget) -> None:
        host = ttk.Frame(parent)
        host.grid(row=2, column=0, sticky="nsew", padx=8, pady=4)
        host.rowconfigure(0, weight=1)
        host.columnconfigure(0, weight=1)

        self.tree = ttk.Treeview(host, columns=(), show="headings", selectmode="browse")
        vsb = ttk.Scrollbar(host, orient="vertical", command=self.tree.yview)
        hsb = ttk.Scrollbar(host, orient="horizontal", command=self.tree.xview)
        self.tree.configure(yscrollcommand=vsb.set, xscrollcommand=hsb.set)
        self.tree.grid(row=0, column=0, sticky="nsew")
        vsb.grid(row=0, column=1, sticky="ns")
        hsb.grid(row=1, column=0, sticky="ew")

    # ------------------------------------------------------------------
    # StatusBar
    # ------------------------------------------------------------------
    def _build_statusbar(self, parent: tk.Widget) -> None:
        status = ttk.Frame(parent)
        status.grid(row=3, column=0, sticky="ew", padx=8, pady=(4, 8))
        status.columnconfigure(2, weight=1)

        self.lbl_connection = ttk.Label(status, text="Disconnected")
        self.lbl_connection.grid(row=0, column=0, sticky="w")

        self.progress = ttk.Progressbar(status, mode="indeterminate", length=120)
        self.progress.grid(row=0, column=1, sticky="w", padx=(12, 0))

        self.status_message_var = tk.StringVar(value="Ready.")
        ttk.Label(status, textvariable=self.status_message_var).grid(row=0, column=2, sticky="e")

    # ------------------------------------------------------------------
    # Public API (called by the app)
    # ------------------------------------------------------------------
    def set_status_message(self, text: str) -> None:
        self.status_message_var.set(text)

    def show_toast(self, message: str, level: str = "info") -> None:
        """Lightweight user feedback in the statusbar."""
        self.status_message_var.set(message)

    def set_selected_action(self, index: int) -> None:
        self.cmb_action.current(index)

    def set_connection_state(self, connected: bool, label: Optional[str] = None) -> None:
        self.lbl_connection.configure(text=label or ("Connected" if connected else "Disconnected"))
        self.btn_connect.configure(state="disabled" if connected else "normal")
        self.btn_disconnect.configure(state="normal" if connected else "disabled")

    def set_busy(self, busy: bool) -> None:
        """Toggle the busy indicator. Run stays enabled; dispatches may overlap."""
        if busy:
            self.progress.start(12)
            self.configure(cursor="watch")
        else:
            self.progress.stop()
            self.configure(cursor="")

    def apply_field_states(self, states: Iterable, options: Sequence[str] = ()) -> None:
        """Enable, caption and mark slots for the selected action.

        ``states`` holds objects with ``slot``, ``enabled``, ``required`` and
        ``caption`` attributes.
        """
        for state in states:
            label = self._field_labels.get(state.slot)
            widget = self._field_widgets.get(state.slot)
            if label is None or widget is None:
                continue
            caption = f"{state.caption} *" if state.required else state.caption
            label.configure(text=caption)
            if state.slot == "option":
                widget.configure(values=list(options), state="readonly" if state.enabled else "disabled")
            else:
                widget.configure(state="normal" if state.enabled else "disabled")

    def get_field(self, slot: str) -> str:
        widget = self._field_widgets.get(slot)
        if isinstance(widget, tk.Text):
            return widget.get("1.0", "end-1c")
        var = self.field_vars.get(slot)
        return var.get() if var is not None else ""

    def set_field(self, slot: str, value: str) -> None:
        """Write a slot value without echoing it back through callbacks."""
        self._suppress_field_events = True
        try:
            widget = self._field_widgets.get(slot)
            if isinstance(widget, tk.Text):
                previous = str(widget.cget("state"))
                widget.configure(state="normal")
                widget.delete("1.0", "end")
                widget.insert("1.0", value)
                widget.edit_modified(False)
                widget.configure(state=previous)
            elif slot in self.field_vars:
                self.field_vars[slot].set(value)
        finally:
            self._suppress_field_events = False

    def set_table(self, columns: List[str], rows: List[Tuple[str, ...]]) -> None:
        """Replace grid columns and content."""
        self.tree.delete(*self.tree.get_children())
        self.tree.configure(columns=columns)
        for column in columns:
            self.tree.heading(column, text=column)
            self.tree.column(column, width=max(90, min(320, 10 * len(column) + 40)), anchor=tk.W, stretch=True)
        for values in rows:
            self.tree.insert("", "end", values=values)

    # ------------------------------------------------------------------
    @staticmethod
    def _fire(fn: OnVoid) -> None:
        if fn:
            fn()


if __name__ == "__main__":
    win = MainWindowView(action_labels=("Preview",))
    win.mainloop()
