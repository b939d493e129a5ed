"""Authentication routes."""

import logging

from fastapi import APIRouter, Request, Response, status

from dropship_api.core.errors import AuthenticationError
from dropship_api.core.rate_limit import limiter
from dropship_api.core.rbac import CurrentUser
from dropship_api.core.security import (
    clear_session_cookie,
    issue_session_token,
    set_session_cookie,
)
from dropship_api.db.mongo import ReadyStore
from dropship_api.schemas.auth import AuthResponse, LoginRequest, OkResponse
from dropship_api.schemas.user import (
    ChangePasswordRequest,
    ProfileUpdate,
    RegisterRequest,
    UserEnvelope,
    UserResponse,
)
from dropship_api.services import user_service

logger = logging.getLogger("auth")

router = APIRouter()


def _start_session(response: Response, user: dict) -> AuthResponse:
    token = issue_session_token(str(user["_id"]), user["role"], user["email"])
    set_session_cookie(response, token)
    return AuthResponse(user=UserResponse.from_document(user), token=token)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register(request: Request, response: Response, payload: RegisterRequest, store: ReadyStore):
    """Register a customer account and start a session."""
    user = await user_service.register_user(store.users, payload)
    return _start_session(response, user)


@router.post("/login", response_model=AuthResponse)
@limiter.limit("5/minute")
async def login(request: Request, response: Response, login_request: LoginRequest, store: ReadyStore):
    """Authenticate with email and password and start a session."""
    client_ip = request.client.host if request.client else "unknown"
    try:
        user = await user_service.authenticate(store.users, login_request.email, login_request.password)
    except AuthenticationError:
        logger.warning(f"Failed login attempt for email: {login_request.email} from IP: {client_ip}")
        raise

    logger.info(f"Successful login: {user['email']} (ID: {user['_id']}, role: {user['role']}) from IP: {client_ip}")
    return _start_session(response, user)


@router.post("/logout", response_model=OkResponse)
async def logout(response: Response):
    """Clear the session cookie. Tokens are stateless, so nothing is revoked server-side."""
    clear_session_cookie(response)
    return OkResponse()


@router.get("/me", response_model=UserEnvelope)
async def get_current_user_info(current_user: CurrentUser, store: ReadyStore):
    """Get the live profile of the current user."""
    user = await user_service.get_user(store.users, current_user.user_id)
    return UserEnvelope(user=UserResponse.from_document(user))


@router.put("/me", response_model=UserEnvelope)
async def update_current_user(payload: ProfileUpdate, current_user: CurrentUser, store: ReadyStore):
    """Update name, phone and address of the current user."""
    user = await user_service.update_profile(store.users, current_user.user_id, payload)
    return UserEnvelope(user=UserResponse.from_document(user))


@router.put("/change-password", response_model=OkResponse)
@limiter.limit("5/minute")
async def change_password(
    request: Request,
    data: ChangePasswordRequest,
    current_user: CurrentUser,
    store: ReadyStore,
):
    """Change password for the current user."""
    await user_service.change_password(store.users, current_user.user_id, data)
    return OkResponse()
