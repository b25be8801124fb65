"""Coverage and reporter plugins."""
