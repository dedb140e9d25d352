"""Personal task manager backend."""
