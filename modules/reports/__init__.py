"""Contract reports."""
