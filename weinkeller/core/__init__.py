"""Domain models, enums and errors."""
