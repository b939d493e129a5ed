"""User schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel

from dropship_api.core.rbac import UserRole


class CamelModel(BaseModel):
    """Accepts and emits camelCase field names (``employeeId``, ``createdAt``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class RegisterRequest(CamelModel):
    """Registration body. Presence of required fields is checked by the service."""

    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    password: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v)


class ProfileUpdate(CamelModel):
    """Profile update body; ``name`` is required, the rest optional."""

    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class UserResponse(CamelModel):
    """User as returned by the API. The password hash is never included."""

    id: str
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    role: UserRole
    created_at: datetime
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None

    @classmethod
    def from_document(cls, doc: dict) -> "UserResponse":
        return cls(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            email=doc["email"],
            phone=doc.get("phone"),
            address=doc.get("address"),
            role=doc.get("role", UserRole.CUSTOMER.value),
            created_at=doc["created_at"],
            updated_at=doc.get("updated_at"),
            created_by=str(doc["created_by"]) if doc.get("created_by") else None,
        )


class UserEnvelope(BaseModel):
    user: UserResponse
