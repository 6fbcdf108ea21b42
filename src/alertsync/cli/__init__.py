"""Command line interface for alertsync."""
