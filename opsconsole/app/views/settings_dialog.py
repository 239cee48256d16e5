from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk
from typing import Callable, Optional


class SettingsDialog(tk.Toplevel):
    """Modal dialog to edit console settings (UI-only)."""

    OnVoid = Optional[Callable[[], None]]
    OnSave = Optional[Callable[[dict], None]]

    def __init__(
        self,
        parent: tk.Widget,
        *,
        on_save: OnSave = None,
        on_close: OnVoid = None,
    ) -> None:
        super().__init__(parent)
        self.title("Settings")
        self.transient(parent)
        self.resizable(False, False)

        self._log = logging.getLogger(__name__)
        self._on_save = on_save
        self._on_close = on_close

        self.protocol("WM_DELETE_WINDOW", self._on_close_clicked)

        self.api_base_url_var = tk.StringVar(value="")
        self.tenant_var = tk.StringVar(value="")
        self.admin_upn_var = tk.StringVar(value="")
        self.request_timeout_var = tk.StringVar(value="10")
        self.worker_pool_var = tk.StringVar(value="2")
        self.poll_interval_var = tk.StringVar(value="100")
        self.async_heavy_var = tk.BooleanVar(value=False)
        self.debug_logging_var = tk.BooleanVar(value=False)

        self._build_ui()

        self.update_idletasks()
        self.geometry(self._center_over_parent(parent))
        self.grab_set()
        self.focus_set()

    # ------------------------------------------------------------------
    def _build_ui(self) -> None:
        pad = dict(padx=8, pady=6)

        gateway = ttk.Labelframe(self, text="Gateway")
        gateway.grid(row=0, column=0, sticky="ew", **pad)
        gateway.columnconfigure(1, weight=1)
        for row, (label, var) in enumerate(
            (
                ("Gateway URL", self.api_base_url_var),
                ("Tenant", self.tenant_var),
                ("Admin account", self.admin_upn_var),
            )
        ):
            ttk.Label(gateway, text=label).grid(row=row, column=0, sticky="w")
            ttk.Entry(gateway, textvariable=var, width=44).grid(row=row, column=1, sticky="ew", pady=2)
        ttk.Label(gateway, text="The API key is read from OPSCONSOLE_API_KEY").grid(
            row=3, column=0, columnspan=2, sticky="w", pady=(4, 0)
        )

        execution = ttk.Labelframe(self, text="Execution")
        execution.grid(row=1, column=0, sticky="ew", **pad)
        ttk.Label(execution, text="Request timeout (s)").grid(row=0, column=0, sticky="w")
        ttk.Entry(execution, textvariable=self.request_timeout_var, width=8).grid(row=0, column=1, sticky="w")
        ttk.Label(execution, text="Worker threads (1-4)").grid(row=1, column=0, sticky="w", pady=(6, 0))
        ttk.Entry(execution, textvariable=self.worker_pool_var, width=8).grid(
            row=1, column=1, sticky="w", pady=(6, 0)
        )
        ttk.Label(execution, text="Completion poll (ms)").grid(row=2, column=0, sticky="w", pady=(6, 0))
        ttk.Entry(execution, textvariable=self.poll_interval_var, width=8).grid(
            row=2, column=1, sticky="w", pady=(6, 0)
        )
        ttk.Checkbutton(
            execution,
            text="Run heavy actions in the background",
            variable=self.async_heavy_var,
        ).grid(row=3, column=0, columnspan=2, sticky="w", pady=(8, 0))

        flags = ttk.Frame(self)
        flags.grid(row=2, column=0, sticky="ew", **pad)
        ttk.Checkbutton(flags, text="Enable debug logging", variable=self.debug_logging_var).pack(side="left")

        footer = ttk.Frame(self)
        footer.grid(row=3, column=0, sticky="ew", **pad)
        ttk.Button(footer, text="Save", command=self._emit_save).pack(side="right", padx=(0, 6))
        ttk.Button(footer, text="Close", command=self._on_close_clicked).pack(side="right")

    # ------------------------------------------------------------------
    def _emit_save(self) -> None:
        settings = {
            "api_base_url": self.api_base_url_var.get().strip(),
            "tenant": self.tenant_var.get().strip(),
            "admin_upn": self.admin_upn_var.get().strip(),
            "request_timeout_s": self._parse_int(self.request_timeout_var.get(), 10),
            "worker_pool_size": self._parse_int(self.worker_pool_var.get(), 2),
            "completion_poll_ms": self._parse_int(self.poll_interval_var.get(), 100),
            "async_enabled_for_heavy": bool(self.async_heavy_var.get()),
            "debug_logging": bool(self.debug_logging_var.get()),
        }
        if self._on_save:
            try:
                self._on_save(settings)
            except Exception:  # pragma: no cover - GUI logging only
                self._log.exception("SettingsDialog on_save failed")

    def _on_close_clicked(self) -> None:
        if self._on_close:
            self._on_close()
        try:
            if self.winfo_exists():
                self.destroy()
        except tk.TclError:
            pass

    # ------------------------------------------------------------------
    # Public setter to initialize dialog fields from the VM
    # ------------------------------------------------------------------
    def set_values(self, payload: dict) -> None:
        self.api_base_url_var.set(payload.get("api_base_url", ""))
        self.tenant_var.set(payload.get("tenant", ""))
        self.admin_upn_var.set(payload.get("admin_upn", ""))
        self.request_timeout_var.set(str(payload.get("request_timeout_s", 10)))
        self.worker_pool_var.set(str(payload.get("worker_pool_size", 2)))
        self.poll_interval_var.set(str(payload.get("completion_poll_ms", 100)))
        self.async_heavy_var.set(bool(payload.get("async_enabled_for_heavy", False)))
        self.debug_logging_var.set(bool(payload.get("debug_logging", False)))

    # ------------------------------------------------------------------
    @staticmethod
    def _parse_int(text: str, default: int) -> int:
        try:
            return int(text)
        except (TypeError, ValueError):
            return default

    @staticmethod
    def _center_over_parent(parent: tk.Widget) -> str:
        width = 520
        height = 400
        try:
            x = parent.winfo_rootx() + (parent.winfo_width() - width) // 2
            y = parent.winfo_rooty() + (parent.winfo_height() - height) // 2
            return f"{width}x{height}+{x}+{y}"
        except tk.TclError:
            return f"{width}x{height}"
