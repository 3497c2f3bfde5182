"""Client dialogs."""
