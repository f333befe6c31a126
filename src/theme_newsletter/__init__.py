"""Scheduled, themed email newsletters."""

__version__ = "0.1.0"
