"""Planwise: personal productivity backend (task reminder to schedule synchronization)."""

__version__ = "0.1.0"
