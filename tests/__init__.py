"""
Testing package for Outreach Sequence API.

This package contains:
- Unit tests for the sequence engine, models and helpers
- Integration tests for API endpoints
- Test fixtures and database setup and teardown (conftest.py)
"""
