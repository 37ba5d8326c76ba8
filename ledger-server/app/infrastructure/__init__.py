"""Infrastructure adapters (database, in-process stores)."""
