"""Realtime notification and chat sync client for the AgriAssist marketplace."""

__version__ = "0.1.0"
