"""
Pydantic schemas for the CRM API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional

from fastapi import Path, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"

# bcrypt rejects passwords longer than 72 bytes.
PASSWORD_MAX_BYTES = 72

# Integer columns are 32-bit on Postgres.
MAX_INT32 = 2**31 - 1

RowId = Annotated[int, Path(ge=1, le=MAX_INT32)]
OptionalRowId = Annotated[Optional[int], Query(ge=1, le=MAX_INT32)]


class _Payload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class _EmailPayload(_Payload):
    email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class HealthResponse(BaseModel):
    message: str
    version: str


class LoginRequest(_EmailPayload):
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_BYTES)


class SignupRequest(_EmailPayload):
    name: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=6)

    @field_validator("password")
    @classmethod
    def _password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
        return value


class UserCreate(SignupRequest):
    role: Literal["admin", "user"] = "user"


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    created_at: datetime


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class ContactCreate(_Payload):
    name: str = Field(..., min_length=1, max_length=200)
    phone_number: str = Field(..., min_length=1, max_length=64)


class ContactUpdate(_Payload):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    phone_number: Optional[str] = Field(default=None, min_length=1, max_length=64)


class ContactResponse(BaseModel):
    id: int
    name: str
    phone_number: str
    created_by_user_id: Optional[int] = None
    version: int
    created_at: datetime
    updated_at: Optional[datetime] = None


class ContactWriteResponse(BaseModel):
    contact: ContactResponse
    created: bool
    warning: Optional[str] = None


class CallCreate(_Payload):
    phone_number: str = Field(..., min_length=1, max_length=64)
    direction: str
    start_time: datetime
    duration: int = Field(default=0, ge=0, le=MAX_INT32)
    uuid: Optional[str] = Field(default=None, max_length=128)


class CallResponse(BaseModel):
    id: int
    uuid: Optional[str] = None
    contact_id: Optional[int] = None
    user_id: int
    phone_number: str
    direction: str
    start_time: datetime
    duration: int
    version: int
    created_at: datetime


class CallStats(BaseModel):
    total: int
    incoming: int
    outgoing: int
    missed: int
    total_duration: int


class CallBatchRequest(BaseModel):
    # Items are validated one by one so a bad item only fails itself.
    calls: list[Any]


class ContactBatchRequest(BaseModel):
    contacts: list[Any]


class BatchError(BaseModel):
    index: int
    error: str


class BatchResponse(BaseModel):
    created: int
    skipped: int
    errors: list[BatchError]
    results: list[dict]


class UserContactsResponse(BaseModel):
    user: UserResponse
    contacts: list[ContactResponse]


class UserCallsResponse(BaseModel):
    user: UserResponse
    calls: list[CallResponse]


class UserStats(BaseModel):
    contacts: int
    calls: CallStats


class UserStatsResponse(BaseModel):
    user: UserResponse
    stats: UserStats


class UserActivity(BaseModel):
    user_id: int
    name: str
    email: str
    role: str
    contacts: int
    calls: int


class OverviewTotals(BaseModel):
    users: int
    admins: int
    contacts: int
    calls: int


class AdminOverviewResponse(BaseModel):
    users: list[UserActivity]
    totals: OverviewTotals


class FlushResponse(BaseModel):
    message: str
    deleted_calls: int
    deleted_contacts: int


class SyncContactsResponse(BaseModel):
    contacts: list[ContactResponse]
    server_time: datetime


class SyncCallsResponse(BaseModel):
    calls: list[CallResponse]
    server_time: datetime
