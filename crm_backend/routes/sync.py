"""
Device sync routes: incremental pulls by ``since`` cursor and batch pushes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from crm_backend.access import require_user
from crm_backend.auth import TokenClaims
from crm_backend.db import DbClient, utc_now
from crm_backend.dependencies import get_db_client
from crm_backend.ingest import ingest_calls, ingest_contacts, parse_since
from crm_backend.schemas import (
    BatchResponse,
    CallBatchRequest,
    ContactBatchRequest,
    SyncCallsResponse,
    SyncContactsResponse,
)

router = APIRouter(prefix="/sync", tags=["sync"])


def _since_or_400(value: Optional[str]) -> Optional[datetime]:
    try:
        return parse_since(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/contacts", response_model=SyncContactsResponse)
def pull_contacts(
    since: Optional[str] = Query(None),
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    cutoff = _since_or_400(since)
    # Read before querying: rows written meanwhile come back on the next pull.
    server_time = utc_now()
    contacts = db.list_contacts(since=cutoff)
    return {"contacts": [c.as_dict() for c in contacts], "server_time": server_time}


@router.post("/contacts", response_model=BatchResponse)
def push_contacts(
    payload: ContactBatchRequest,
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    return ingest_contacts(db, user.id, payload.contacts).as_dict()


@router.get("/calls", response_model=SyncCallsResponse)
def pull_calls(
    since: Optional[str] = Query(None),
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    """
    Calls stored after ``since``, oldest first. Regular users pull their own
    call log; admins pull everyone's.
    """
    cutoff = _since_or_400(since)
    server_time = utc_now()
    calls = db.list_calls(user_id=None if user.is_admin else user.id, since=cutoff)
    return {"calls": [c.as_dict() for c in calls], "server_time": server_time}


@router.post("/calls", response_model=BatchResponse)
def push_calls(
    payload: CallBatchRequest,
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    return ingest_calls(db, user.id, payload.calls).as_dict()
