"""
Admin-only user management and per-user data routes.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from crm_backend.access import require_admin
from crm_backend.auth import TokenClaims, create_user_account
from crm_backend.db import ConflictError, DbClient, UserRecord
from crm_backend.dependencies import get_db_client
from crm_backend.schemas import (
    AdminOverviewResponse,
    FlushResponse,
    MessageResponse,
    RowId,
    UserCallsResponse,
    UserContactsResponse,
    UserCreate,
    UserResponse,
    UserStatsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)]
)


def _user_or_404(db: DbClient, user_id: int) -> UserRecord:
    user = db.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/users", response_model=list[UserResponse])
def list_users(db: DbClient = Depends(get_db_client)):
    return [user.as_dict() for user in db.list_users()]


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(payload: UserCreate, db: DbClient = Depends(get_db_client)):
    try:
        user = create_user_account(
            db, payload.name, payload.email, payload.password, payload.role
        )
    except ConflictError:
        raise HTTPException(status_code=409, detail="Email already exists")
    return user.as_dict()


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: RowId,
    admin: TokenClaims = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="Cannot delete yourself")
    if not db.delete_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("Admin %s deleted user %s", admin.id, user_id)
    return MessageResponse(message="User deleted successfully")


@router.get("/users/{user_id}/contacts", response_model=UserContactsResponse)
def user_contacts(user_id: RowId, db: DbClient = Depends(get_db_client)):
    user = _user_or_404(db, user_id)
    contacts = db.list_contacts(created_by=user_id)
    return {"user": user.as_dict(), "contacts": [c.as_dict() for c in contacts]}


@router.get("/users/{user_id}/calls", response_model=UserCallsResponse)
def user_calls(user_id: RowId, db: DbClient = Depends(get_db_client)):
    user = _user_or_404(db, user_id)
    calls = db.list_calls(user_id=user_id)
    return {"user": user.as_dict(), "calls": [c.as_dict() for c in calls]}


@router.get("/users/{user_id}/stats", response_model=UserStatsResponse)
def user_stats(user_id: RowId, db: DbClient = Depends(get_db_client)):
    user = _user_or_404(db, user_id)
    return {
        "user": user.as_dict(),
        "stats": {
            "contacts": db.count_contacts(created_by=user_id),
            "calls": db.call_stats(user_id=user_id),
        },
    }


@router.delete("/users/{user_id}/data", response_model=FlushResponse)
def flush_user_data(
    user_id: RowId,
    admin: TokenClaims = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    _user_or_404(db, user_id)
    deleted_calls, deleted_contacts = db.flush_user_data(user_id)
    logger.info(
        "Admin %s flushed user %s: %s calls, %s contacts",
        admin.id,
        user_id,
        deleted_calls,
        deleted_contacts,
    )
    return FlushResponse(
        message="User data flushed successfully",
        deleted_calls=deleted_calls,
        deleted_contacts=deleted_contacts,
    )


@router.get("/stats", response_model=AdminOverviewResponse)
def overview(db: DbClient = Depends(get_db_client)):
    users = db.list_users()
    activity = [
        {
            "user_id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role,
            "contacts": db.count_contacts(created_by=user.id),
            "calls": db.call_stats(user_id=user.id)["total"],
        }
        for user in users
    ]
    return {
        "users": activity,
        "totals": {
            "users": len(users),
            "admins": sum(1 for user in users if user.is_admin),
            "contacts": db.count_contacts(),
            "calls": db.call_stats()["total"],
        },
    }
