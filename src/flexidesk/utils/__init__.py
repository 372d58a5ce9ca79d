"""Shared utilities (logging, CSV export, date helpers)."""
