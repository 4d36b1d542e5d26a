"""
Call-log and contact ingestion with duplicate prevention.

A call is a duplicate when its client ``uuid`` or its
``(phone_number, start_time)`` pair is already stored. Single submissions
report a duplicate to the caller; batches count it as skipped and move on,
so one bad item never sinks the rest of the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from crm_backend.db import (
    DIRECTIONS,
    CallInsertResult,
    ContactRecord,
    DbClient,
    NewCall,
)
from crm_backend.schemas import CallCreate, ContactCreate

logger = logging.getLogger(__name__)

STATUS_CREATED = "created"
STATUS_SKIPPED = "skipped"
STATUS_ERROR = "error"

STORE_ERROR_MESSAGE = "Database error"

CONTACT_INSERTED = "inserted"
CONTACT_EXISTS = "exists"


class CallValidationError(ValueError):
    """Raised for a call payload that cannot be stored."""


def normalize_direction(value: Any) -> str:
    direction = str(value or "").strip().lower()
    if direction not in DIRECTIONS:
        raise CallValidationError(
            f"Invalid direction {value!r}; expected one of {', '.join(DIRECTIONS)}"
        )
    return direction


def build_new_call(db: DbClient, user_id: int, payload: CallCreate) -> NewCall:
    """Validate a call payload and link it to a contact with the same number."""
    direction = normalize_direction(payload.direction)
    phone_number = payload.phone_number.strip()
    if not phone_number:
        raise CallValidationError("phone_number is required")
    contact = db.get_contact_by_phone(phone_number)
    return NewCall(
        user_id=user_id,
        phone_number=phone_number,
        direction=direction,
        start_time=payload.start_time,
        duration=payload.duration,
        uuid=payload.uuid or None,
        contact_id=contact.id if contact else None,
    )


def ingest_call(db: DbClient, user_id: int, payload: CallCreate) -> CallInsertResult:
    """
    Store one call. Returns the insert result; ``created`` is False when the
    call was already known, with ``matched_on`` naming the key that matched.
    """
    new_call = build_new_call(db, user_id, payload)
    result = db.insert_call_if_absent(new_call)
    if not result.created:
        logger.info(
            "Duplicate call from user %s matched on %s (existing id %s)",
            user_id,
            result.matched_on,
            result.call.id,
        )
    return result


@dataclass
class BatchReport:
    created: int = 0
    skipped: int = 0
    errors: list[dict] = field(default_factory=list)
    results: list[dict] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "created": self.created,
            "skipped": self.skipped,
            "errors": self.errors,
            "results": self.results,
        }

    def add_error(self, index: int, message: str) -> None:
        self.errors.append({"index": index, "error": message})
        self.results.append({"index": index, "status": STATUS_ERROR, "error": message})


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "; ".join(parts) or "Invalid item"


def ingest_calls(db: DbClient, user_id: int, items: Iterable[Any]) -> BatchReport:
    """
    Store a batch of calls sequentially. Each item is validated and inserted
    on its own; failures are collected in the report instead of raised.
    """
    report = BatchReport()
    for index, item in enumerate(items):
        try:
            payload = CallCreate.model_validate(item)
            result = ingest_call(db, user_id, payload)
        except ValidationError as exc:
            report.add_error(index, _validation_message(exc))
            continue
        except CallValidationError as exc:
            report.add_error(index, str(exc))
            continue
        except SQLAlchemyError:
            logger.exception("Storing call %s from user %s failed", index, user_id)
            report.add_error(index, STORE_ERROR_MESSAGE)
            continue
        if result.created:
            report.created += 1
            report.results.append(
                {"index": index, "status": STATUS_CREATED, "call": result.call.as_dict()}
            )
        else:
            report.skipped += 1
            report.results.append(
                {
                    "index": index,
                    "status": STATUS_SKIPPED,
                    "matched_on": result.matched_on,
                    "call": result.call.as_dict(),
                }
            )
    logger.info(
        "Call batch from user %s: %s created, %s skipped, %s errors",
        user_id,
        report.created,
        report.skipped,
        len(report.errors),
    )
    return report


def add_contact(
    db: DbClient, user_id: int, payload: ContactCreate
) -> tuple[ContactRecord, bool]:
    """Insert a contact unless its phone number is taken; the older row wins."""
    return db.insert_contact_if_absent(
        payload.name.strip(), payload.phone_number.strip(), user_id
    )


def ingest_contacts(db: DbClient, user_id: int, items: Iterable[Any]) -> BatchReport:
    report = BatchReport()
    for index, item in enumerate(items):
        try:
            payload = ContactCreate.model_validate(item)
        except ValidationError as exc:
            report.add_error(index, _validation_message(exc))
            continue
        try:
            contact, created = add_contact(db, user_id, payload)
        except SQLAlchemyError:
            logger.exception("Storing contact %s from user %s failed", index, user_id)
            report.add_error(index, STORE_ERROR_MESSAGE)
            continue
        if created:
            report.created += 1
        else:
            report.skipped += 1
        report.results.append(
            {
                "index": index,
                "status": CONTACT_INSERTED if created else CONTACT_EXISTS,
                "contact": contact.as_dict(),
            }
        )
    logger.info(
        "Contact batch from user %s: %s inserted, %s existing, %s errors",
        user_id,
        report.created,
        report.skipped,
        len(report.errors),
    )
    return report


def parse_since(value: Optional[str]) -> Optional[datetime]:
    """Parse a ``since`` cursor; accepts ISO-8601 or epoch milliseconds."""
    if value is None or value == "":
        return None
    value = value.strip()
    if value.isdigit():
        try:
            return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise ValueError(f"Invalid since value {value!r}") from exc
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError(f"Invalid since value {value!r}") from exc
