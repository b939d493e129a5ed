"""Admin provisioning.

An admin is two documents: a login-capable user in ``users`` and a profile in
``admins``. The store gives no transaction across them, so a failed profile
insert is undone by deleting the user that was just created.
"""

import logging
from datetime import datetime, timezone
from typing import List

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from dropship_api.core.errors import (
    ClientInputError,
    ConflictError,
    EmailConflictError,
    EmployeeIdConflictError,
    MissingFieldsError,
)
from dropship_api.core.rbac import TokenData, UserRole
from dropship_api.core.security import MAX_PASSWORD_BYTES, password_too_long
from dropship_api.schemas.admin import AdminCreate
from dropship_api.services.user_service import hash_password

logger = logging.getLogger("auth")

REQUIRED_FIELDS = ("name", "employee_id", "email", "password")


def _requested_role(role) -> UserRole:
    if isinstance(role, str) and role == UserRole.SUPERADMIN.value:
        return UserRole.SUPERADMIN
    return UserRole.ADMIN


def _conflict_from(exc: DuplicateKeyError):
    """Translate a unique index violation on the admins collection."""
    key_pattern = (exc.details or {}).get("keyPattern") or {}
    if "employee_id" in key_pattern or "employee_id" in str(exc):
        return EmployeeIdConflictError("Employee ID already exists")
    return ConflictError("Admin profile already exists")


async def _rollback_user(users, user_id: ObjectId) -> None:
    """Delete the user created for a failed provisioning.

    Scoped to the generated id, so repeating it is harmless. A failure here is
    logged and swallowed so the caller still sees the original error.
    """
    try:
        result = await users.delete_one({"_id": user_id})
        logger.warning(
            f"Rolled back user {user_id} after admin profile insert failed "
            f"(deleted={result.deleted_count})"
        )
    except Exception:
        logger.exception(f"Rollback of user {user_id} failed; manual cleanup required")


async def provision_admin(store, payload: AdminCreate, creator: TokenData) -> dict:
    """Create the user + admin profile pair and return the profile document."""
    missing = [
        f for f in REQUIRED_FIELDS
        if not (getattr(payload, f) or "").strip()
    ]
    if missing:
        raise MissingFieldsError(
            "Missing required fields: " + ", ".join(
                "employeeId" if f == "employee_id" else f for f in missing
            )
        )

    if password_too_long(payload.password):
        raise ClientInputError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

    email = payload.email.strip().lower()
    employee_id = payload.employee_id.strip()
    name = payload.name.strip()
    role = _requested_role(payload.role)
    creator_id = ObjectId(creator.user_id) if ObjectId.is_valid(creator.user_id) else None

    if await store.users.find_one({"email": email}):
        raise EmailConflictError("Email already registered")
    if await store.admins.find_one({"employee_id": employee_id}):
        raise EmployeeIdConflictError("Employee ID already exists")

    now = datetime.now(timezone.utc)
    user_doc = {
        "name": name,
        "email": email,
        "phone": payload.phone,
        "address": payload.address,
        "password_hash": await hash_password(payload.password),
        "role": role.value,
        "created_by": creator_id,
        "created_at": now,
    }
    try:
        user_result = await store.users.insert_one(user_doc)
    except DuplicateKeyError:
        raise EmailConflictError("Email already registered")
    user_id = user_result.inserted_id

    admin_doc = {
        "user_id": user_id,
        "employee_id": employee_id,
        "name": name,
        "email": email,
        "phone": payload.phone,
        "address": payload.address,
        "role": role.value,
        "created_by": creator_id,
        "created_at": now,
    }
    try:
        admin_result = await store.admins.insert_one(admin_doc)
    except DuplicateKeyError as e:
        await _rollback_user(store.users, user_id)
        raise _conflict_from(e) from e
    except BaseException:
        # Cancellation too
        await _rollback_user(store.users, user_id)
        raise

    admin_doc["_id"] = admin_result.inserted_id
    logger.info(
        f"Admin provisioned: {email} (employee {employee_id}, role: {role.value}) "
        f"by {creator.email}"
    )
    return admin_doc


async def list_admins(admins) -> List[dict]:
    cursor = admins.find({}).sort([("created_at", -1)])
    return await cursor.to_list(length=None)
