"""FastAPI dependency wiring for the HTTP layer."""
