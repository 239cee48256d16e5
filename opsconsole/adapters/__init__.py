"""Adapter package for external I/O implementations.

Purpose:
    Collect concrete implementations for domain ports (management gateway
    HTTP calls, local settings files, and offline test doubles).

Dependencies:
    REST adapters depend on ``requests`` through ``http_client``; storage uses
    the local filesystem.

Call context:
    Imported by ``opsconsole.app.controller`` for runtime wiring and by tests.
"""
