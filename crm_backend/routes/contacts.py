"""
Shared contact book routes.

Every authenticated user can read and add contacts; only the creator or an
admin may edit or delete one.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from crm_backend.access import require_user
from crm_backend.auth import TokenClaims
from crm_backend.db import ConflictError, ContactRecord, DbClient
from crm_backend.dependencies import get_db_client
from crm_backend.ingest import add_contact
from crm_backend.schemas import (
    ContactCreate,
    ContactResponse,
    ContactUpdate,
    ContactWriteResponse,
    MessageResponse,
    OptionalRowId,
    RowId,
)

router = APIRouter(prefix="/contacts", tags=["contacts"])

DUPLICATE_PHONE_WARNING = "Phone number already exists; keeping the older record"


def _editable_contact(
    db: DbClient, contact_id: int, user: TokenClaims, action: str
) -> ContactRecord:
    contact = db.get_contact(contact_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    if not user.is_admin and contact.created_by_user_id != user.id:
        raise HTTPException(
            status_code=403, detail=f"Forbidden: Can only {action} own contacts"
        )
    return contact


@router.get("", response_model=list[ContactResponse])
def list_contacts(
    created_by: OptionalRowId = None,
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    return [contact.as_dict() for contact in db.list_contacts(created_by=created_by)]


@router.post("", response_model=ContactWriteResponse, status_code=201)
def create_contact(
    payload: ContactCreate,
    response: Response,
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    contact, created = add_contact(db, user.id, payload)
    if not created:
        response.status_code = 200
        return ContactWriteResponse(
            contact=contact.as_dict(), created=False, warning=DUPLICATE_PHONE_WARNING
        )
    return ContactWriteResponse(contact=contact.as_dict(), created=True)


@router.put("/{contact_id}", response_model=ContactResponse)
def update_contact(
    contact_id: RowId,
    payload: ContactUpdate,
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    _editable_contact(db, contact_id, user, "edit")
    try:
        updated = db.update_contact(
            contact_id, name=payload.name, phone_number=payload.phone_number
        )
    except ConflictError:
        raise HTTPException(status_code=409, detail="Phone number already exists")
    if updated is None:
        raise HTTPException(status_code=404, detail="Contact not found")
    return updated.as_dict()


@router.delete("/{contact_id}", response_model=MessageResponse)
def delete_contact(
    contact_id: RowId,
    user: TokenClaims = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    _editable_contact(db, contact_id, user, "delete")
    if not db.delete_contact(contact_id):
        raise HTTPException(status_code=404, detail="Contact not found")
    return MessageResponse(message="Contact deleted successfully")
