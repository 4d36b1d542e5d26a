"""
Database abstraction for Postgres and an in-memory test implementation.

Uniqueness (user email, contact phone number, call uuid and the call's
phone number + start time) is enforced by the store itself: the
``insert_*_if_absent`` operations either insert or hand back the row that
already owns the key, without a separate check-then-insert round trip.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    delete,
    func,
    or_,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_ADMIN, ROLE_USER)

DIRECTION_INCOMING = "incoming"
DIRECTION_OUTGOING = "outgoing"
DIRECTION_MISSED = "missed"
DIRECTIONS = (DIRECTION_INCOMING, DIRECTION_OUTGOING, DIRECTION_MISSED)

MATCHED_ON_UUID = "uuid"
MATCHED_ON_NATURAL_KEY = "natural_key"


class ConflictError(Exception):
    """Raised when a write would violate a uniqueness constraint."""

    def __init__(self, field_name: str, message: str | None = None):
        super().__init__(message or f"{field_name} already exists")
        self.field_name = field_name


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return to_utc(value).replace(tzinfo=None)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    return to_utc(value) if value is not None else None


class DbClient(Protocol):
    """Interface for database access."""

    def create_user(
        self, name: str, email: str, password_hash: str, role: str = ROLE_USER
    ) -> "UserRecord":
        ...

    def get_user(self, user_id: int) -> Optional["UserRecord"]:
        ...

    def get_user_by_email(self, email: str) -> Optional["UserRecord"]:
        ...

    def list_users(self) -> list["UserRecord"]:
        ...

    def delete_user(self, user_id: int) -> bool:
        ...

    def insert_contact_if_absent(
        self, name: str, phone_number: str, created_by_user_id: Optional[int]
    ) -> tuple["ContactRecord", bool]:
        ...

    def get_contact(self, contact_id: int) -> Optional["ContactRecord"]:
        ...

    def get_contact_by_phone(self, phone_number: str) -> Optional["ContactRecord"]:
        ...

    def list_contacts(
        self, *, created_by: Optional[int] = None, since: Optional[datetime] = None
    ) -> list["ContactRecord"]:
        ...

    def update_contact(
        self,
        contact_id: int,
        *,
        name: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> Optional["ContactRecord"]:
        ...

    def delete_contact(self, contact_id: int) -> bool:
        ...

    def count_contacts(self, *, created_by: Optional[int] = None) -> int:
        ...

    def insert_call_if_absent(self, call: "NewCall") -> "CallInsertResult":
        ...

    def get_call(self, call_id: int) -> Optional["CallRecord"]:
        ...

    def list_calls(
        self,
        *,
        user_id: Optional[int] = None,
        direction: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list["CallRecord"]:
        """
        Newest ``start_time`` first. With ``since``, only calls stored after
        that instant, oldest stored first, so a sync cursor never misses a
        call that was uploaded late.
        """
        ...

    def delete_call(self, call_id: int) -> bool:
        ...

    def call_stats(self, *, user_id: Optional[int] = None) -> dict:
        ...

    def flush_user_data(self, user_id: int) -> tuple[int, int]:
        ...


@dataclass
class UserRecord:
    id: int
    name: str
    email: str
    password_hash: str
    role: str = ROLE_USER
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def as_dict(self) -> dict:
        # password_hash is deliberately left out.
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": self.created_at,
        }


@dataclass
class ContactRecord:
    id: int
    name: str
    phone_number: str
    created_by_user_id: Optional[int]
    version: int = 1
    created_at: datetime = field(default_factory=utc_now)
    updated_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone_number": self.phone_number,
            "created_by_user_id": self.created_by_user_id,
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class CallRecord:
    id: int
    uuid: Optional[str]
    contact_id: Optional[int]
    user_id: int
    phone_number: str
    direction: str
    start_time: datetime
    duration: int = 0
    version: int = 1
    created_at: datetime = field(default_factory=utc_now)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "uuid": self.uuid,
            "contact_id": self.contact_id,
            "user_id": self.user_id,
            "phone_number": self.phone_number,
            "direction": self.direction,
            "start_time": self.start_time,
            "duration": self.duration,
            "version": self.version,
            "created_at": self.created_at,
        }


@dataclass
class NewCall:
    """A validated call waiting to be inserted."""

    user_id: int
    phone_number: str
    direction: str
    start_time: datetime
    duration: int = 0
    uuid: Optional[str] = None
    contact_id: Optional[int] = None


@dataclass
class CallInsertResult:
    call: CallRecord
    created: bool
    matched_on: Optional[str] = None


def _empty_stats() -> dict:
    stats = {"total": 0, "total_duration": 0}
    for direction in DIRECTIONS:
        stats[direction] = 0
    return stats


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self._lock = threading.RLock()
        self.users: Dict[int, UserRecord] = {}
        self.contacts: Dict[int, ContactRecord] = {}
        self.calls: Dict[int, CallRecord] = {}
        self._ids = {
            "users": itertools.count(1),
            "contacts": itertools.count(1),
            "calls": itertools.count(1),
        }

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.users.clear()
            self.contacts.clear()
            self.calls.clear()
            self._ids = {key: itertools.count(1) for key in self._ids}

    def _next_id(self, table: str) -> int:
        return next(self._ids[table])

    # Users

    def create_user(
        self, name: str, email: str, password_hash: str, role: str = ROLE_USER
    ) -> UserRecord:
        with self._lock:
            if any(user.email == email for user in self.users.values()):
                raise ConflictError("email", "Email already exists")
            record = UserRecord(
                id=self._next_id("users"),
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
            )
            self.users[record.id] = record
            return replace(record)

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        user = self.users.get(user_id)
        return replace(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.email == email:
                return replace(user)
        return None

    def list_users(self) -> list[UserRecord]:
        users = sorted(self.users.values(), key=lambda u: (u.created_at, u.id), reverse=True)
        return [replace(user) for user in users]

    def delete_user(self, user_id: int) -> bool:
        with self._lock:
            if user_id not in self.users:
                return False
            self.flush_user_data(user_id)
            del self.users[user_id]
            return True

    # Contacts

    def insert_contact_if_absent(
        self, name: str, phone_number: str, created_by_user_id: Optional[int]
    ) -> tuple[ContactRecord, bool]:
        with self._lock:
            existing = self._contact_by_phone(phone_number)
            if existing:
                return replace(existing), False
            record = ContactRecord(
                id=self._next_id("contacts"),
                name=name,
                phone_number=phone_number,
                created_by_user_id=created_by_user_id,
            )
            self.contacts[record.id] = record
            return replace(record), True

    def _contact_by_phone(self, phone_number: str) -> Optional[ContactRecord]:
        for contact in self.contacts.values():
            if contact.phone_number == phone_number:
                return contact
        return None

    def get_contact(self, contact_id: int) -> Optional[ContactRecord]:
        contact = self.contacts.get(contact_id)
        return replace(contact) if contact else None

    def get_contact_by_phone(self, phone_number: str) -> Optional[ContactRecord]:
        contact = self._contact_by_phone(phone_number)
        return replace(contact) if contact else None

    def list_contacts(
        self, *, created_by: Optional[int] = None, since: Optional[datetime] = None
    ) -> list[ContactRecord]:
        items = list(self.contacts.values())
        if created_by is not None:
            items = [c for c in items if c.created_by_user_id == created_by]
        if since is not None:
            since = to_utc(since)
            items = [
                c
                for c in items
                if c.created_at > since or (c.updated_at and c.updated_at > since)
            ]
            items.sort(key=lambda c: (c.created_at, c.id))
        else:
            items.sort(key=lambda c: (c.name, c.id))
        return [replace(contact) for contact in items]

    def update_contact(
        self,
        contact_id: int,
        *,
        name: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> Optional[ContactRecord]:
        with self._lock:
            contact = self.contacts.get(contact_id)
            if not contact:
                return None
            if phone_number and phone_number != contact.phone_number:
                if self._contact_by_phone(phone_number):
                    raise ConflictError("phone_number", "Phone number already exists")
                contact.phone_number = phone_number
            if name:
                contact.name = name
            contact.version += 1
            contact.updated_at = utc_now()
            return replace(contact)

    def delete_contact(self, contact_id: int) -> bool:
        with self._lock:
            if contact_id not in self.contacts:
                return False
            self._unlink_calls({contact_id})
            del self.contacts[contact_id]
            return True

    def _unlink_calls(self, contact_ids: set[int]) -> None:
        for call in self.calls.values():
            if call.contact_id in contact_ids:
                call.contact_id = None

    def count_contacts(self, *, created_by: Optional[int] = None) -> int:
        if created_by is None:
            return len(self.contacts)
        return sum(1 for c in self.contacts.values() if c.created_by_user_id == created_by)

    # Calls

    def insert_call_if_absent(self, call: NewCall) -> CallInsertResult:
        start_time = to_utc(call.start_time)
        with self._lock:
            for existing in self.calls.values():
                if call.uuid and existing.uuid == call.uuid:
                    return CallInsertResult(replace(existing), False, MATCHED_ON_UUID)
            for existing in self.calls.values():
                if (
                    existing.phone_number == call.phone_number
                    and existing.start_time == start_time
                ):
                    return CallInsertResult(
                        replace(existing), False, MATCHED_ON_NATURAL_KEY
                    )
            record = CallRecord(
                id=self._next_id("calls"),
                uuid=call.uuid,
                contact_id=call.contact_id,
                user_id=call.user_id,
                phone_number=call.phone_number,
                direction=call.direction,
                start_time=start_time,
                duration=call.duration,
            )
            self.calls[record.id] = record
            return CallInsertResult(replace(record), True)

    def get_call(self, call_id: int) -> Optional[CallRecord]:
        call = self.calls.get(call_id)
        return replace(call) if call else None

    def list_calls(
        self,
        *,
        user_id: Optional[int] = None,
        direction: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[CallRecord]:
        items = list(self.calls.values())
        if user_id is not None:
            items = [c for c in items if c.user_id == user_id]
        if direction is not None:
            items = [c for c in items if c.direction == direction]
        if since is not None:
            since = to_utc(since)
            items = [c for c in items if c.created_at > since]
            items.sort(key=lambda c: (c.created_at, c.id))
        else:
            items.sort(key=lambda c: (c.start_time, c.id), reverse=True)
        if limit is not None:
            items = items[:limit]
        return [replace(call) for call in items]

    def delete_call(self, call_id: int) -> bool:
        with self._lock:
            return self.calls.pop(call_id, None) is not None

    def call_stats(self, *, user_id: Optional[int] = None) -> dict:
        stats = _empty_stats()
        for call in self.calls.values():
            if user_id is not None and call.user_id != user_id:
                continue
            stats["total"] += 1
            stats[call.direction] += 1
            stats["total_duration"] += call.duration
        return stats

    def flush_user_data(self, user_id: int) -> tuple[int, int]:
        with self._lock:
            call_ids = [c.id for c in self.calls.values() if c.user_id == user_id]
            for call_id in call_ids:
                del self.calls[call_id]
            contact_ids = {
                c.id for c in self.contacts.values() if c.created_by_user_id == user_id
            }
            self._unlink_calls(contact_ids)
            for contact_id in contact_ids:
                del self.contacts[contact_id]
            return len(call_ids), len(contact_ids)


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        engine_kwargs: dict = {"future": True, "pool_pre_ping": True}
        if database_url.startswith("sqlite"):
            # Requests are served from a thread pool; in-memory SQLite must
            # share one connection or every thread sees an empty database.
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url:
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_recycle"] = 1800
        self.engine = create_engine(database_url, **engine_kwargs)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_user_record(self, row: "UserRow") -> UserRecord:
        return UserRecord(
            id=row.id,
            name=row.name,
            email=row.email,
            password_hash=row.password_hash,
            role=row.role,
            created_at=_aware(row.created_at),
        )

    def _to_contact_record(self, row: "ContactRow") -> ContactRecord:
        return ContactRecord(
            id=row.id,
            name=row.name,
            phone_number=row.phone_number,
            created_by_user_id=row.created_by_user_id,
            version=row.version,
            created_at=_aware(row.created_at),
            updated_at=_aware(row.updated_at),
        )

    def _to_call_record(self, row: "CallRow") -> CallRecord:
        return CallRecord(
            id=row.id,
            uuid=row.uuid,
            contact_id=row.contact_id,
            user_id=row.user_id,
            phone_number=row.phone_number,
            direction=row.direction,
            start_time=_aware(row.start_time),
            duration=row.duration,
            version=row.version,
            created_at=_aware(row.created_at),
        )

    # Users

    def create_user(
        self, name: str, email: str, password_hash: str, role: str = ROLE_USER
    ) -> UserRecord:
        with self.Session() as session:
            row = UserRow(
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
                created_at=_naive_utc(utc_now()),
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("email", "Email already exists") from exc
            return self._to_user_record(row)

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.get(UserRow, user_id)
            return self._to_user_record(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self.Session() as session:
            stmt = select(UserRow).where(UserRow.email == email)
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_user_record(row) if row else None

    def list_users(self) -> list[UserRecord]:
        with self.Session() as session:
            stmt = select(UserRow).order_by(UserRow.created_at.desc(), UserRow.id.desc())
            return [self._to_user_record(row) for row in session.execute(stmt).scalars()]

    def delete_user(self, user_id: int) -> bool:
        with self.Session() as session:
            row = session.get(UserRow, user_id)
            if not row:
                return False
            self._flush_user_data(session, user_id)
            session.delete(row)
            session.commit()
            return True

    # Contacts

    def insert_contact_if_absent(
        self, name: str, phone_number: str, created_by_user_id: Optional[int]
    ) -> tuple[ContactRecord, bool]:
        with self.Session() as session:
            row = ContactRow(
                name=name,
                phone_number=phone_number,
                created_by_user_id=created_by_user_id,
                version=1,
                created_at=_naive_utc(utc_now()),
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                stmt = select(ContactRow).where(ContactRow.phone_number == phone_number)
                existing = session.execute(stmt).scalar_one_or_none()
                if existing is None:
                    raise
                return self._to_contact_record(existing), False
            return self._to_contact_record(row), True

    def get_contact(self, contact_id: int) -> Optional[ContactRecord]:
        with self.Session() as session:
            row = session.get(ContactRow, contact_id)
            return self._to_contact_record(row) if row else None

    def get_contact_by_phone(self, phone_number: str) -> Optional[ContactRecord]:
        with self.Session() as session:
            stmt = select(ContactRow).where(ContactRow.phone_number == phone_number)
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_contact_record(row) if row else None

    def list_contacts(
        self, *, created_by: Optional[int] = None, since: Optional[datetime] = None
    ) -> list[ContactRecord]:
        stmt = select(ContactRow)
        if created_by is not None:
            stmt = stmt.where(ContactRow.created_by_user_id == created_by)
        if since is not None:
            cutoff = _naive_utc(since)
            stmt = stmt.where(
                or_(ContactRow.created_at > cutoff, ContactRow.updated_at > cutoff)
            ).order_by(ContactRow.created_at.asc(), ContactRow.id.asc())
        else:
            stmt = stmt.order_by(ContactRow.name.asc(), ContactRow.id.asc())
        with self.Session() as session:
            return [self._to_contact_record(row) for row in session.execute(stmt).scalars()]

    def update_contact(
        self,
        contact_id: int,
        *,
        name: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> Optional[ContactRecord]:
        with self.Session() as session:
            row = session.get(ContactRow, contact_id)
            if not row:
                return None
            if name:
                row.name = name
            if phone_number:
                row.phone_number = phone_number
            row.version = row.version + 1
            row.updated_at = _naive_utc(utc_now())
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("phone_number", "Phone number already exists") from exc
            return self._to_contact_record(row)

    def delete_contact(self, contact_id: int) -> bool:
        with self.Session() as session:
            row = session.get(ContactRow, contact_id)
            if not row:
                return False
            session.execute(
                update(CallRow)
                .where(CallRow.contact_id == contact_id)
                .values(contact_id=None)
                .execution_options(synchronize_session=False)
            )
            session.delete(row)
            session.commit()
            return True

    def count_contacts(self, *, created_by: Optional[int] = None) -> int:
        stmt = select(func.count(ContactRow.id))
        if created_by is not None:
            stmt = stmt.where(ContactRow.created_by_user_id == created_by)
        with self.Session() as session:
            return int(session.execute(stmt).scalar_one())

    # Calls

    def insert_call_if_absent(self, call: NewCall) -> CallInsertResult:
        start_time = _naive_utc(call.start_time)
        with self.Session() as session:
            row = CallRow(
                uuid=call.uuid,
                contact_id=call.contact_id,
                user_id=call.user_id,
                phone_number=call.phone_number,
                direction=call.direction,
                start_time=start_time,
                duration=call.duration,
                version=1,
                created_at=_naive_utc(utc_now()),
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                existing, matched_on = self._find_duplicate_call(
                    session, call.uuid, call.phone_number, start_time
                )
                if existing is None:
                    raise
                return CallInsertResult(self._to_call_record(existing), False, matched_on)
            return CallInsertResult(self._to_call_record(row), True)

    def _find_duplicate_call(
        self,
        session: Session,
        call_uuid: Optional[str],
        phone_number: str,
        start_time: datetime,
    ) -> tuple[Optional["CallRow"], Optional[str]]:
        if call_uuid:
            stmt = select(CallRow).where(CallRow.uuid == call_uuid)
            row = session.execute(stmt).scalar_one_or_none()
            if row:
                return row, MATCHED_ON_UUID
        stmt = select(CallRow).where(
            CallRow.phone_number == phone_number, CallRow.start_time == start_time
        )
        row = session.execute(stmt).scalar_one_or_none()
        if row:
            return row, MATCHED_ON_NATURAL_KEY
        return None, None

    def get_call(self, call_id: int) -> Optional[CallRecord]:
        with self.Session() as session:
            row = session.get(CallRow, call_id)
            return self._to_call_record(row) if row else None

    def list_calls(
        self,
        *,
        user_id: Optional[int] = None,
        direction: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[CallRecord]:
        stmt = select(CallRow)
        if user_id is not None:
            stmt = stmt.where(CallRow.user_id == user_id)
        if direction is not None:
            stmt = stmt.where(CallRow.direction == direction)
        if since is not None:
            stmt = stmt.where(CallRow.created_at > _naive_utc(since)).order_by(
                CallRow.created_at.asc(), CallRow.id.asc()
            )
        else:
            stmt = stmt.order_by(CallRow.start_time.desc(), CallRow.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.Session() as session:
            return [self._to_call_record(row) for row in session.execute(stmt).scalars()]

    def delete_call(self, call_id: int) -> bool:
        with self.Session() as session:
            row = session.get(CallRow, call_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def call_stats(self, *, user_id: Optional[int] = None) -> dict:
        stmt = select(
            CallRow.direction,
            func.count(CallRow.id),
            func.coalesce(func.sum(CallRow.duration), 0),
        ).group_by(CallRow.direction)
        if user_id is not None:
            stmt = stmt.where(CallRow.user_id == user_id)
        stats = _empty_stats()
        with self.Session() as session:
            for direction, count, duration in session.execute(stmt):
                stats[direction] = int(count)
                stats["total"] += int(count)
                stats["total_duration"] += int(duration)
        return stats

    def flush_user_data(self, user_id: int) -> tuple[int, int]:
        with self.Session() as session:
            deleted = self._flush_user_data(session, user_id)
            session.commit()
            return deleted

    def _flush_user_data(self, session: Session, user_id: int) -> tuple[int, int]:
        # Calls go first so no deleted contact is still referenced.
        calls_deleted = session.execute(
            delete(CallRow)
            .where(CallRow.user_id == user_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        owned_contacts = select(ContactRow.id).where(
            ContactRow.created_by_user_id == user_id
        )
        session.execute(
            update(CallRow)
            .where(CallRow.contact_id.in_(owned_contacts))
            .values(contact_id=None)
            .execution_options(synchronize_session=False)
        )
        contacts_deleted = session.execute(
            delete(ContactRow)
            .where(ContactRow.created_by_user_id == user_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        logger.info(
            "Flushed user %s: %s calls, %s contacts", user_id, calls_deleted, contacts_deleted
        )
        return calls_deleted or 0, contacts_deleted or 0


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("role IN ('admin', 'user')", name="ck_users_role"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, default="")
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_USER)
    created_at = Column(DateTime, nullable=False)


class ContactRow(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    phone_number = Column(String, nullable=False, unique=True)
    created_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)


class CallRow(Base):
    __tablename__ = "calls"
    __table_args__ = (
        UniqueConstraint("phone_number", "start_time", name="uq_calls_phone_start"),
        CheckConstraint(
            "direction IN ('incoming', 'outgoing', 'missed')", name="ck_calls_direction"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(String, nullable=True, unique=True)
    contact_id = Column(
        Integer, ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    phone_number = Column(String, nullable=False, index=True)
    direction = Column(String, nullable=False)
    start_time = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, index=True)
