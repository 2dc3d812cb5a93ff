"""
OwnerGate Backend: Record Request/Response Schemas
===================================================

What:  Pydantic models for the four access-controlled entities.
Why:   Routes validate input and serialize ORM rows through these, so only
       whitelisted fields ever reach the store or the client.

Ownership fields:
    Create payloads accept `user_id` only so that a conflicting value can be
    sent and observed being replaced; AccessControlService always writes the
    caller's id there. Update payloads do not expose `user_id` at all.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

Role = Literal["USER", "ADMIN"]
ProjectStatus = Literal["PLANNING", "IN_PROGRESS", "COMPLETED", "ON_HOLD", "CANCELLED"]
InvoiceStatus = Literal["DRAFT", "SENT", "PAID", "OVERDUE", "CANCELLED"]


# ══════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════


class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    id: Optional[str] = Field(default=None, max_length=64)
    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=255)
    role: Role = "USER"


class UserUpdate(BaseModel):
    """Admins may change any field; non-admins are refused when `role` is present."""
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, max_length=255)
    role: Optional[Role] = None


# ══════════════════════════════════════════════════════════════════════════
# Projects
# ══════════════════════════════════════════════════════════════════════════


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    status: str
    due_date: Optional[datetime] = None
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProjectCreate(BaseModel):
    id: Optional[str] = Field(default=None, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    status: ProjectStatus = "PLANNING"
    due_date: Optional[datetime] = None
    user_id: Optional[str] = Field(
        default=None,
        description="Ignored: the owner is always the authenticated caller",
    )


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    due_date: Optional[datetime] = None


# ══════════════════════════════════════════════════════════════════════════
# Client profiles
# ══════════════════════════════════════════════════════════════════════════


class ClientProfileResponse(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ClientProfileCreate(BaseModel):
    id: Optional[str] = Field(default=None, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    company: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    user_id: Optional[str] = Field(
        default=None,
        description="Ignored: the owner is always the authenticated caller",
    )


class ClientProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    company: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)


# ══════════════════════════════════════════════════════════════════════════
# Invoices
# ══════════════════════════════════════════════════════════════════════════


class InvoiceResponse(BaseModel):
    id: str
    invoice_number: str
    amount: float
    status: str
    due_date: Optional[datetime] = None
    client_id: Optional[str] = None
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class InvoiceCreate(BaseModel):
    id: Optional[str] = Field(default=None, max_length=64)
    invoice_number: str = Field(min_length=1, max_length=64)
    amount: float = Field(ge=0)
    status: InvoiceStatus = "DRAFT"
    due_date: Optional[datetime] = None
    client_id: Optional[str] = Field(default=None, max_length=64)
    user_id: Optional[str] = Field(
        default=None,
        description="Ignored: the owner is always the authenticated caller",
    )


class InvoiceUpdate(BaseModel):
    invoice_number: Optional[str] = Field(default=None, min_length=1, max_length=64)
    amount: Optional[float] = Field(default=None, ge=0)
    status: Optional[InvoiceStatus] = None
    due_date: Optional[datetime] = None
    client_id: Optional[str] = Field(default=None, max_length=64)
