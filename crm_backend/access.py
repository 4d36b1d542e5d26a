"""
Request-level access control.

``require_user`` turns the ``Authorization: Bearer <token>`` header into
verified claims and stores them on ``request.state.user``; ``require_admin``
additionally insists on the admin role.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from crm_backend.auth import TokenClaims, TokenService
from crm_backend.dependencies import get_token_service

BEARER_PREFIX = "Bearer "


def extract_bearer_token(header_value: Optional[str]) -> Optional[str]:
    if not header_value or not header_value.startswith(BEARER_PREFIX):
        return None
    token = header_value[len(BEARER_PREFIX):].strip()
    return token or None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_user(
    request: Request, tokens: TokenService = Depends(get_token_service)
) -> TokenClaims:
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise _unauthorized("Unauthorized")
    claims = tokens.verify(token)
    if claims is None:
        raise _unauthorized("Invalid token")
    request.state.user = claims
    return claims


def require_admin(user: TokenClaims = Depends(require_user)) -> TokenClaims:
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: Admin only"
        )
    return user
