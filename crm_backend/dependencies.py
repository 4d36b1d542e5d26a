"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from crm_backend.auth import TokenService
from crm_backend.config import get_settings
from crm_backend.db import DbClient, InMemoryDbClient, SqlDbClient

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None
_token_service: TokenService | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client; without a database URL an in-memory store is used.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        logger.warning("No DATABASE_URL configured; using the in-memory store")
        _db_client = InMemoryDbClient()
    else:
        _db_client = SqlDbClient(settings.database_url)
    return _db_client


def get_token_service() -> TokenService:
    global _token_service
    if _token_service:
        return _token_service

    settings = get_settings()
    _token_service = TokenService(
        settings.jwt_secret, ttl_seconds=settings.token_ttl_seconds
    )
    return _token_service
