"""Admin profile schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, field_validator

from dropship_api.core.rbac import UserRole
from dropship_api.schemas.user import CamelModel, normalize_email


class AdminCreate(CamelModel):
    """Admin provisioning body.

    ``role`` is free text: only the exact value ``superadmin`` grants that
    role, anything else provisions a plain admin.
    """

    name: Optional[str] = None
    employee_id: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    role: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v)


class AdminResponse(CamelModel):
    id: str
    user_id: str
    employee_id: str
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    role: UserRole
    created_by: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_document(cls, doc: dict) -> "AdminResponse":
        return cls(
            id=str(doc["_id"]),
            user_id=str(doc["user_id"]),
            employee_id=doc["employee_id"],
            name=doc["name"],
            email=doc["email"],
            phone=doc.get("phone"),
            address=doc.get("address"),
            role=doc["role"],
            created_by=str(doc["created_by"]) if doc.get("created_by") else None,
            created_at=doc["created_at"],
        )


class AdminEnvelope(BaseModel):
    admin: AdminResponse


class AdminList(BaseModel):
    admins: List[AdminResponse]
