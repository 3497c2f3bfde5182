"""Backup export and restore."""
