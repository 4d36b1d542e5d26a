"""
Token issuing/verification and password hashing.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import bcrypt
import jwt

from crm_backend.db import ROLES, ROLE_ADMIN, ROLE_USER, DbClient, UserRecord

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL_SECONDS = 60 * 60 * 24
BCRYPT_ROUNDS = 10


@dataclass(frozen=True)
class TokenClaims:
    id: int
    name: str
    email: str
    role: str
    issued_at: int
    expires_at: int

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }


class TokenService:
    """
    Issues and verifies HS256 tokens bound to a shared secret.

    ``verify`` never raises: any parsing, signature, expiry or claim-shape
    failure is reported as ``None`` so callers treat it as unauthenticated.
    """

    def __init__(self, secret: str, ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS):
        if not secret:
            raise ValueError("A non-empty secret is required to sign tokens")
        self._secret = secret
        self.ttl_seconds = ttl_seconds

    def issue(self, user: UserRecord, *, now: Optional[float] = None) -> str:
        issued_at = int(now if now is not None else time.time())
        payload = {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role,
            "iat": issued_at,
            "exp": issued_at + self.ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: Any) -> Optional[TokenClaims]:
        if not isinstance(token, str) or not token:
            return None
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[TOKEN_ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.PyJWTError as exc:
            logger.debug("Token rejected: %s", exc)
            return None
        return _claims_from_payload(payload)


def _claims_from_payload(payload: dict) -> Optional[TokenClaims]:
    user_id = payload.get("id")
    email = payload.get("email")
    role = payload.get("role")
    # bool is an int subclass; reject it explicitly.
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        return None
    if not isinstance(email, str) or role not in ROLES:
        return None
    return TokenClaims(
        id=user_id,
        name=str(payload.get("name") or ""),
        email=email,
        role=role,
        issued_at=int(payload["iat"]),
        expires_at=int(payload["exp"]),
    )


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long password.
        return False


def create_user_account(
    db: DbClient, name: str, email: str, password: str, role: str = ROLE_USER
) -> UserRecord:
    """Hash the password and store a new user; raises ConflictError on a taken email."""
    user = db.create_user(name, email, hash_password(password), role)
    logger.info("Created %s account %s (id %s)", role, email, user.id)
    return user
