"""Authentication schemas."""

from pydantic import BaseModel, EmailStr, Field, field_validator

from dropship_api.schemas.user import UserResponse, normalize_email


class LoginRequest(BaseModel):
    """Login request body."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v)


class AuthResponse(BaseModel):
    """Login/registration response. The token is also set as the session cookie."""

    user: UserResponse
    token: str


class OkResponse(BaseModel):
    ok: bool = True
