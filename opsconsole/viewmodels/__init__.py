"""ViewModel package for UI state and command surfaces.

Call context:
    ``opsconsole/app/main.py`` imports concrete viewmodels from this package
    and hands their ``present``/``set_busy`` methods to the dispatcher.

Dependencies:
    Domain types only; no adapters, no Tkinter.
"""
