"""Pydantic models describing API payloads.

Field aliases keep the camelCase names the portal frontend already sends.
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Authentication
class AdminLoginRequest(_WireModel):
    """Credentials posted from the admin login form."""

    admin_id: str = Field(alias="adminId")
    password: str


class StaffLoginRequest(_WireModel):
    """Credentials posted from the staff login form."""

    staff_id: str = Field(alias="staffId")
    password: str


# Staff records
class StaffRecord(BaseModel):
    """Staff row as shown on the admin dashboard (no password hash)."""

    id: int
    name: str
    staff_id: str
    email: str | None = None
    progress: str
    quiz_score: str
    created_by: str

    class Config:
        from_attributes = True


class StaffCreate(_WireModel):
    """Schema for enrolling a new staff member."""

    name: str
    staff_id: str
    email: str | None = None
    password: str = Field(min_length=1)
    admin_id: str | None = Field(default=None, alias="adminId")


class StaffCreateResponse(BaseModel):
    """Creation result; the welcome email may fail without failing the request."""

    success: bool = True
    id: int
    emailSent: bool = False
    emailError: str | None = None


class StaffUpdate(_WireModel):
    """Schema for editing a staff member; password is only changed when given."""

    name: str
    staff_id: str
    email: str | None = None
    password: str | None = None


class ChangeResponse(BaseModel):
    success: bool = True
    changes: int


# Training progress
class ProgressUpdate(_WireModel):
    """Either a progress document or a quiz score for one staff member."""

    staff_id: str = Field(alias="staffId")
    progress: Any = None
    quiz_score: str | int | float | None = Field(default=None, alias="quizScore")


# Notifications
class BroadcastRequest(_WireModel):
    """Admin-initiated announcement to every staff member with an email."""

    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)
    admin_id: str = Field(default="Admin", alias="adminId")


class FailedRecipient(BaseModel):
    email: str
    name: str = ""
    error: str | None = None


class BroadcastResponse(BaseModel):
    """Per-batch delivery report."""

    success: bool = True
    totalRecipients: int
    succeeded: int
    failed: list[FailedRecipient] = []


class EmailStatusResponse(BaseModel):
    configured: bool
    available: bool
    verified: bool
    error: str | None = None


class SendOutcomeResponse(BaseModel):
    email: str
    name: str = ""
    succeeded: bool
    messageId: str | None = None
    error: str | None = None
