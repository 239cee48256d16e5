# opsconsole/app/main.py
from __future__ import annotations

import argparse
import logging
import os
from typing import Dict, List, Optional, Sequence

# ---- Views (UI-only) ----
from .views.main_window import MainWindowView
from .views.settings_dialog import SettingsDialog

# ---- ViewModels ----
from ..viewmodels.console_vm import ConsoleVM
from ..viewmodels.settings_vm import SettingsVM

# ---- Wiring ----
from .completion_pump import CompletionPump
from .controller import AppController
from ..adapters.storage_local import StorageLocal
from ..domain.normalizer import Row
from ..usecases.dispatch_action import DispatchSinks
from ..usecases.error_mapping import map_handler_error
from ..utils import logging as logging_utils


class App:
    """Bootstrap: wire views, view models, the dispatcher and the completion pump."""

    def __init__(self, *, offline: bool = False) -> None:
        self._log = logging.getLogger(__name__)

        # ---- Settings (loaded before anything reads them) ----
        self.settings_vm = SettingsVM()
        self._storage_root = os.environ.get("OPSCONSOLE_STORAGE_ROOT") or "."
        self._storage = StorageLocal(root_dir=self._storage_root)
        self._pending_toasts: List[str] = []
        self._load_user_settings()

        # ---- Controller (registry, engine, dispatcher) ----
        self.controller = AppController(
            self.settings_vm,
            sinks=DispatchSinks(present=self._present_rows, set_busy=self._set_busy),
            offline=offline,
            api_key=os.environ.get("OPSCONSOLE_API_KEY") or None,
        )
        self.console_vm = ConsoleVM(
            self.controller.registry,
            on_rows_changed=self._refresh_grid,
            on_busy_changed=self._on_busy_changed,
            on_status=self._on_status,
        )

        # ---- Main window ----
        self.win = MainWindowView(
            action_labels=self.controller.registry.labels(),
            on_run=self._on_run,
            on_connect=self._on_connect,
            on_disconnect=self._on_disconnect,
            on_open_settings=self._on_open_settings,
            on_action_selected=self._on_action_selected,
            on_field_changed=self.console_vm.set_field,
        )
        self.win.protocol("WM_DELETE_WINDOW", self._on_close)

        # ---- Completion pump: async results reach widgets on the Tk thread ----
        self.pump = CompletionPump(
            self.win.after,
            self.win.after_cancel,
            lambda: self.controller.engine.drain(),
            interval_ms=self.settings_vm.config.completion_poll_ms,
        )
        self.pump.start()

        index = self.settings_vm.last_action_index
        if self.controller.registry.get(index) is None:
            index = 0
        self._on_action_selected(index)
        self.win.set_selected_action(index)
        self._refresh_connection()
        self.win.set_status_message("Offline demo mode." if offline else "Ready.")
        for message in self._pending_toasts:
            self.win.show_toast(message)
        self._pending_toasts.clear()

    # ==================================================================
    # Settings
    # ==================================================================
    def _load_user_settings(self) -> None:
        payload: Optional[Dict] = None
        try:
            payload = self._storage.load_user_settings()
        except Exception as exc:
            self._log.warning("Could not load settings from %s: %s", self._storage.settings_path, exc)
            self._pending_toasts.append(f"Could not load settings: {exc}")
        if payload is not None:
            try:
                self.settings_vm.apply_dict(payload)
            except ValueError as exc:
                self._pending_toasts.append(str(exc))
        self._apply_logging_preferences()

    def _apply_logging_preferences(self) -> None:
        level = logging_utils.apply_gui_preferences(self.settings_vm.debug_logging)
        self._log.debug("Effective GUI log level: %s", logging_utils.level_name(level))

    def _save_user_settings(self) -> bool:
        try:
            self._storage.save_user_settings(self.settings_vm.to_dict())
        except OSError as exc:
            self._log.error("Could not save settings: %s", exc)
            self.win.show_toast(f"Could not save settings: {exc}")
            return False
        return True

    def _on_open_settings(self) -> None:
        dlg = SettingsDialog(self.win, on_save=self._on_settings_saved)
        dlg.set_values(self.settings_vm.to_dict())

    def _on_settings_saved(self, cfg: dict) -> None:
        previous = self.settings_vm.to_dict()
        try:
            self.settings_vm.apply_dict(cfg)
        except ValueError as exc:
            self.win.show_toast(str(exc))
            return
        if not self.settings_vm.is_valid():
            self.settings_vm.apply_dict(previous)
            self.win.show_toast("Settings invalid: the gateway URL must start with http:// or https://.")
            return

        gateway_keys = ("api_base_url", "tenant", "admin_upn", "request_timeout_s")
        if any(previous.get(key) != cfg.get(key) for key in gateway_keys):
            self.controller.reset()
            self._refresh_connection()
        pool_applied = self.controller.apply_pool_size()
        self.pump.interval_ms = max(1, self.settings_vm.config.completion_poll_ms)
        self._apply_logging_preferences()
        if self._save_user_settings():
            if pool_applied:
                self.win.show_toast("Settings saved.")
            else:
                self.win.show_toast("Settings saved. The new worker pool size applies once running actions finish.")

    # ==================================================================
    # Session
    # ==================================================================
    def _on_connect(self) -> None:
        self.win.set_status_message("Connecting...")
        try:
            self.controller.connect()
        except Exception as exc:
            self._toast_error(exc, context="Connect")
        else:
            self.win.show_toast("Connected.")
        self._refresh_connection()

    def _on_disconnect(self) -> None:
        try:
            self.controller.disconnect()
        except Exception as exc:
            self._toast_error(exc, context="Disconnect")
        else:
            self.win.show_toast("Disconnected.")
        self._refresh_connection()

    def _refresh_connection(self) -> None:
        connected = self.controller.is_connected()
        label = None
        if connected:
            info = self.controller.session_info()
            label = f"Connected: {info.get('Tenant') or info.get('Gateway') or ''}".rstrip(": ")
        self.win.set_connection_state(connected, label)

    # ==================================================================
    # Action form
    # ==================================================================
    def _on_action_selected(self, index: int) -> None:
        descriptor = self.console_vm.select_action(index)
        if descriptor is None:
            return
        self.settings_vm.last_action_index = index
        self.win.apply_field_states(self.console_vm.field_states(), self.console_vm.option_values())
        self.win.set_field("option", self.console_vm.fields.get("option", ""))

    def _on_run(self) -> None:
        self.controller.apply_pool_size()
        outcome = self.controller.dispatcher.dispatch(
            self.console_vm.selected_index, self.console_vm.snapshot()
        )
        self._log.debug("Dispatch of %s ended in %s", outcome.label or outcome.index, outcome.state.value)

    # ==================================================================
    # Dispatcher sinks (always on the Tk thread)
    # ==================================================================
    def _present_rows(self, rows: List[Row]) -> None:
        self.console_vm.present(rows)

    def _set_busy(self, busy: bool) -> None:
        self.console_vm.set_busy(busy)

    def _refresh_grid(self) -> None:
        columns, values = self.console_vm.table()
        self.win.set_table(columns, values)

    def _on_busy_changed(self, busy: bool) -> None:
        self.win.set_busy(busy)
        self.win.update_idletasks()

    def _on_status(self, message: str) -> None:
        self.win.set_status_message(message)

    # ==================================================================
    # Error handling helpers
    # ==================================================================
    def _toast_error(self, err: Exception, *, context: Optional[str] = None) -> None:
        mapped = map_handler_error(err)
        self._log.warning("%s failed (%s): %s", context or "Operation", mapped.code, mapped.message)
        message = mapped.message
        if context:
            message = f"{context}: {message}"
        self.win.show_toast(message)

    # ==================================================================
    # Shutdown
    # ==================================================================
    def _on_close(self) -> None:
        self.pump.stop()
        self._save_user_settings()
        try:
            self.controller.shutdown()
        except Exception as exc:
            self._log.warning("Shutdown did not complete cleanly: %s", exc)
        self.win.destroy()


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="opsconsole", description="Directory operations console.")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use the in-memory demo directory instead of the management gateway.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_arg_parser().parse_args(argv)
    logging_utils.configure_root()
    app = App(offline=args.offline)
    app.win.mainloop()


if __name__ == "__main__":
    main()
