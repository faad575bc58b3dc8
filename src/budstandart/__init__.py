"""Authenticated document acquisition from the BUDSTANDART portal."""

__version__ = "0.1.0"
