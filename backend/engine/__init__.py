"""GridBalance numerical engine."""
