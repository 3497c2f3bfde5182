"""Accounting widgets."""
