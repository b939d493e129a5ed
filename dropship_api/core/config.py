"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "change-me-in-production"

# Local dev servers that may always call the API
LOCAL_DEV_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # MongoDB
    mongodb_uri: str = ""
    db_name: str = "Dropshipping"
    products_collection: str = Field(
        "Products", validation_alias=AliasChoices("PRODUCTS_COLLECTION", "COLLECTION")
    )
    users_collection: str = "users"
    admins_collection: str = "admins"
    server_selection_timeout_ms: int = 10000
    reconnect_delay_seconds: float = 5.0

    # Security
    secret_key: str = DEFAULT_SECRET_KEY
    algorithm: str = "HS256"
    token_expire_days: int = 7
    session_cookie_name: str = "access_token"
    bcrypt_rounds: int = Field(12, ge=10, le=31)

    # CORS - the deployed frontend plus optional comma-separated extras
    frontend_origin: str = ""
    cors_origins: str = ""

    # Server
    port: int = 3000
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Rate limiting
    rate_limit_enabled: bool = True

    @field_validator("frontend_origin")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        if v == DEFAULT_SECRET_KEY:
            import warnings
            warnings.warn(
                "Using default SECRET_KEY is insecure! Set SECRET_KEY environment variable.",
                UserWarning,
                stacklevel=2,
            )
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Refuse to run in production with a weak signing secret."""
        if not self.debug:
            if self.secret_key == DEFAULT_SECRET_KEY:
                raise ValueError(
                    "FATAL: Cannot start in production mode with default SECRET_KEY. "
                    "Set a secure SECRET_KEY environment variable (minimum 32 characters)."
                )
            if len(self.secret_key) < 32:
                raise ValueError(
                    f"FATAL: SECRET_KEY must be at least 32 characters in production mode "
                    f"(current length: {len(self.secret_key)})."
                )
        return self

    @property
    def cors_origins_list(self) -> List[str]:
        """Frontend origin, local dev servers and any extra configured origins."""
        origins = [self.frontend_origin, *LOCAL_DEV_ORIGINS]
        origins += [o.strip().rstrip("/") for o in self.cors_origins.split(",")]
        return list(dict.fromkeys(o for o in origins if o))

    @property
    def token_max_age(self) -> int:
        """Session lifetime in seconds (shared by the JWT and its cookie)."""
        return self.token_expire_days * 24 * 60 * 60


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
