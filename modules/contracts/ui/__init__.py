"""Contract template widgets."""
