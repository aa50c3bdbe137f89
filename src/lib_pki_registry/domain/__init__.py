"""Domain layer: value objects and the error taxonomy."""
