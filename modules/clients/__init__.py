"""Client registry."""
