"""Operator console for running a fixed catalog of mail-service admin actions."""

__version__ = "0.1.0"
