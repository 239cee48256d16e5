"""Application composition layer for the Tkinter console.

Modules here wire views, view models, adapters and use cases into the
runnable desktop console without placing business logic in views.
"""
