"""Tkinter views. UI only; callbacks are injected by ``opsconsole.app.main``."""
