"""Use-case layer for validating, executing and dispatching console actions.

Modules here coordinate domain objects and ports without performing transport
I/O directly; adapters are injected by the app controller.
"""
