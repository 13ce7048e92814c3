"""Infrastructure adapters (database, script execution)."""
