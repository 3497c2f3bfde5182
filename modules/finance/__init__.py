"""Accounting ledger per client."""
