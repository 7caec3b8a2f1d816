"""Core infrastructure: database and domain exceptions."""
