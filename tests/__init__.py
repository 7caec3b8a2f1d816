"""Evexia test suite.

Unit tests cover services, access control and the AI fallback against an
in-memory database; integration tests drive the HTTP API end to end.
"""
