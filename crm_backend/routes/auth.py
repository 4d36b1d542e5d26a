"""
Health check, login, signup and the current-user route.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from crm_backend import __version__
from crm_backend.access import require_user
from crm_backend.auth import TokenClaims, TokenService, create_user_account, verify_password
from crm_backend.db import ROLE_USER, ConflictError, DbClient
from crm_backend.dependencies import get_db_client, get_token_service
from crm_backend.schemas import (
    AuthResponse,
    HealthResponse,
    LoginRequest,
    SignupRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.get("/", response_model=HealthResponse)
def health():
    return HealthResponse(message="Shared Contact CRM API", version=__version__)


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    db: DbClient = Depends(get_db_client),
    tokens: TokenService = Depends(get_token_service),
):
    user = db.get_user_by_email(payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login for %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )
    logger.info("User %s logged in", user.id)
    return AuthResponse(token=tokens.issue(user), user=user.as_dict())


@router.post("/signup", response_model=AuthResponse, status_code=201)
def signup(
    payload: SignupRequest,
    db: DbClient = Depends(get_db_client),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Self-service registration. Always creates a regular user; admins are
    created through /admin/users or the seed command.
    """
    try:
        user = create_user_account(
            db, payload.name, payload.email, payload.password, ROLE_USER
        )
    except ConflictError:
        raise HTTPException(status_code=409, detail="Email already exists")
    return AuthResponse(token=tokens.issue(user), user=user.as_dict())


@router.get("/me", response_model=UserResponse)
def me(
    claims: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    user = db.get_user(claims.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user.as_dict()
