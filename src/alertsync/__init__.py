"""Alert definition templating and ruler reconciliation."""

__version__ = "0.1.0"
