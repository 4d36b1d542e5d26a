"""
Backend package for the shared contact CRM.

This package provides a FastAPI application with token auth, the contact and
call-log routes, and store abstractions so the same handlers run against
Postgres in production and an in-memory store in tests.
"""

__version__ = "1.0.0"
