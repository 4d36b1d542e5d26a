"""
Call-log routes: listing, single and bulk ingestion, stats and deletion.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from crm_backend.access import require_user
from crm_backend.auth import TokenClaims
from crm_backend.db import DbClient
from crm_backend.dependencies import get_db_client
from crm_backend.ingest import CallValidationError, ingest_call, ingest_calls, normalize_direction
from crm_backend.schemas import (
    BatchResponse,
    CallBatchRequest,
    CallCreate,
    CallResponse,
    CallStats,
    MessageResponse,
    OptionalRowId,
    RowId,
)

router = APIRouter(prefix="/calls", tags=["calls"])

DEFAULT_CALL_LIMIT = 100


@router.get("", response_model=list[CallResponse])
def list_calls(
    user_id: OptionalRowId = None,
    direction: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_CALL_LIMIT, ge=1, le=1000),
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    if direction is not None:
        try:
            direction = normalize_direction(direction)
        except CallValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
    calls = db.list_calls(user_id=user_id, direction=direction, limit=limit)
    return [call.as_dict() for call in calls]


@router.post("", response_model=CallResponse, status_code=201)
def create_call(
    payload: CallCreate,
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    try:
        result = ingest_call(db, user.id, payload)
    except CallValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not result.created:
        raise HTTPException(
            status_code=409,
            detail=f"Duplicate call (matched on {result.matched_on}, id {result.call.id})",
        )
    return result.call.as_dict()


@router.get("/stats", response_model=CallStats)
def call_stats(
    user_id: OptionalRowId = None,
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    """
    Per-direction counts. Regular users only see their own numbers; admins
    see everyone's unless ``user_id`` narrows it down.
    """
    if user.is_admin:
        target = user_id
    else:
        if user_id is not None and user_id != user.id:
            raise HTTPException(
                status_code=403, detail="Forbidden: Can only view own call stats"
            )
        target = user.id
    return db.call_stats(user_id=target)


@router.post("/bulk", response_model=BatchResponse)
def bulk_create_calls(
    payload: CallBatchRequest,
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    return ingest_calls(db, user.id, payload.calls).as_dict()


@router.delete("/{call_id}", response_model=MessageResponse)
def delete_call(
    call_id: RowId,
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    call = db.get_call(call_id)
    if not call:
        raise HTTPException(status_code=404, detail="Call not found")
    if not user.is_admin and call.user_id != user.id:
        raise HTTPException(status_code=403, detail="Forbidden: Can only delete own calls")
    db.delete_call(call_id)
    return MessageResponse(message="Call deleted successfully")
