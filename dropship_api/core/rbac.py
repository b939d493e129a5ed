"""Role-Based Access Control (RBAC) utilities."""

from enum import Enum
from typing import Annotated, Iterable, Optional

from fastapi import Depends, Request

from dropship_api.core.config import settings
from dropship_api.core.errors import AuthenticationError, AuthorizationError
from dropship_api.core.security import decode_access_token


class UserRole(str, Enum):
    """User roles for RBAC."""

    CUSTOMER = "customer"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


STAFF_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPERADMIN})


class TokenData:
    """Decoded token data.

    Attributes:
        user_id: The user's store identifier (ObjectId as a string).
        email: The user's email address.
        role: The user's role (customer/admin/superadmin).
    """

    def __init__(self, user_id: str, email: str, role: UserRole):
        self.user_id = user_id
        self.email = email
        self.role = role

    def __repr__(self) -> str:
        return f"TokenData(user_id={self.user_id!r}, email={self.email!r}, role={self.role.value!r})"


def extract_token(request: Request) -> Optional[str]:
    """Return the session token from the request, if any.

    Checks in order:
    1. session cookie (HttpOnly)
    2. Authorization: Bearer <token> header
    """
    cookie_token = request.cookies.get(settings.session_cookie_name)
    if cookie_token:
        return cookie_token

    auth_header = request.headers.get("Authorization", "")
    if auth_header[:7].lower() == "bearer ":
        token = auth_header[7:].strip()
        if token:
            return token
    return None


async def get_current_user(request: Request) -> TokenData:
    """Get the current authenticated user from the session token.

    The identity is taken from the verified claims only; the user store is
    not consulted. On success it is also attached to ``request.state.user``.
    """
    token = extract_token(request)
    if token is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    user_id = payload.get("sub")
    email = payload.get("email")
    role = payload.get("role")

    if not user_id or not email or not role:
        raise AuthenticationError("Invalid token payload")

    try:
        user_role = UserRole(role)
    except ValueError:
        raise AuthenticationError("Invalid role in token")

    identity = TokenData(user_id=str(user_id), email=email, role=user_role)
    request.state.user = identity
    return identity


def ensure_role(identity: Optional[TokenData], allowed: Iterable[UserRole]) -> TokenData:
    """Check that ``identity`` holds one of the ``allowed`` roles.

    A missing identity is always forbidden.
    """
    if identity is None or identity.role not in set(allowed):
        raise AuthorizationError("Forbidden: insufficient role")
    return identity


def require_role(*roles: UserRole):
    """Dependency that authenticates the request, then requires one of ``roles``."""
    allowed = frozenset(roles)

    async def role_checker(
        current_user: Annotated[TokenData, Depends(get_current_user)]
    ) -> TokenData:
        return ensure_role(current_user, allowed)

    return role_checker


# Common role dependencies
CurrentUser = Annotated[TokenData, Depends(get_current_user)]
RequireSuperadmin = Annotated[TokenData, Depends(require_role(UserRole.SUPERADMIN))]
RequireStaff = Annotated[TokenData, Depends(require_role(*STAFF_ROLES))]
