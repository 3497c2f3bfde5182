"""Contract templates, filling and rendering."""
