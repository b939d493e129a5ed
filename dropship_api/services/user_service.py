"""User account operations against the users collection."""

import logging
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError
from starlette.concurrency import run_in_threadpool

from dropship_api.core.errors import (
    AuthenticationError,
    ClientInputError,
    EmailConflictError,
    MissingFieldsError,
)
from dropship_api.core.rbac import UserRole
from dropship_api.core.security import (
    MAX_PASSWORD_BYTES,
    MIN_PASSWORD_LENGTH,
    get_password_hash,
    password_too_long,
    verify_password,
)
from dropship_api.schemas.user import ChangePasswordRequest, ProfileUpdate, RegisterRequest

logger = logging.getLogger("auth")

INVALID_CREDENTIALS = "Invalid credentials"


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _check_new_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ClientInputError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if password_too_long(password):
        raise ClientInputError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
        )


async def hash_password(password: str) -> str:
    """Hash off the event loop; bcrypt is deliberately slow."""
    return await run_in_threadpool(get_password_hash, password)


async def find_by_email(users, email: str) -> Optional[dict]:
    return await users.find_one({"email": email.strip().lower()})


async def register_user(users, payload: RegisterRequest) -> dict:
    """Create a customer account and return the stored document."""
    if _blank(payload.name) or _blank(payload.email) or not payload.password:
        raise MissingFieldsError("Name, email and password are required")
    _check_new_password(payload.password)

    email = payload.email.strip().lower()
    if await users.find_one({"email": email}):
        raise EmailConflictError("Email already registered")

    doc = {
        "name": payload.name.strip(),
        "email": email,
        "phone": _optional(payload.phone),
        "address": _optional(payload.address),
        "password_hash": await hash_password(payload.password),
        "role": UserRole.CUSTOMER.value,
        "created_at": datetime.now(timezone.utc),
    }
    try:
        result = await users.insert_one(doc)
    except DuplicateKeyError:
        # Lost the race against a concurrent registration for the same email
        raise EmailConflictError("Email already registered")

    doc["_id"] = result.inserted_id
    logger.info(f"New user registered: {email} (ID: {doc['_id']})")
    return doc


async def authenticate(users, email: str, password: str) -> dict:
    """Return the user for valid credentials, else raise a 401."""
    user = await find_by_email(users, email)
    if not user:
        raise AuthenticationError(INVALID_CREDENTIALS)
    valid = await run_in_threadpool(verify_password, password, user.get("password_hash", ""))
    if not valid:
        raise AuthenticationError(INVALID_CREDENTIALS)
    return user


async def get_user(users, user_id: str) -> dict:
    """Re-fetch the live user behind a token; a deleted account is no longer authenticated."""
    user = None
    if ObjectId.is_valid(user_id):
        user = await users.find_one({"_id": ObjectId(user_id)})
    if user is None:
        raise AuthenticationError("User not found")
    return user


async def update_profile(users, user_id: str, payload: ProfileUpdate) -> dict:
    if _blank(payload.name):
        raise MissingFieldsError("Name is required")

    user = await get_user(users, user_id)
    changes = {
        "name": payload.name.strip(),
        "phone": _optional(payload.phone),
        "address": _optional(payload.address),
        "updated_at": datetime.now(timezone.utc),
    }
    await users.update_one({"_id": user["_id"]}, {"$set": changes})
    return {**user, **changes}


async def change_password(users, user_id: str, payload: ChangePasswordRequest) -> None:
    """Replace the password after checking the current one.

    All input checks run before the store is touched.
    """
    if not payload.current_password or not payload.new_password:
        raise MissingFieldsError("Current password and new password are required")
    _check_new_password(payload.new_password)

    user = await get_user(users, user_id)
    valid = await run_in_threadpool(
        verify_password, payload.current_password, user.get("password_hash", "")
    )
    if not valid:
        raise AuthenticationError("Current password is incorrect")

    await users.update_one(
        {"_id": user["_id"]},
        {"$set": {
            "password_hash": await hash_password(payload.new_password),
            "updated_at": datetime.now(timezone.utc),
        }},
    )
    logger.info(f"Password changed for user: {user['email']} (ID: {user['_id']})")
