"""API application package."""
