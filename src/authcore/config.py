"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with AUTHCORE_ prefix
(an optional .env file is read too). 12-factor style: no YAML, no config
files checked into the repo.

Learn: Settings are loaded once by get_settings() and then passed
explicitly into create_app(): nothing below the app factory reads
the environment on its own.
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """All app configuration. Set via AUTHCORE_* env vars."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./authcore.db"
    db_create_all: bool = True  # create tables at startup (dev); use alembic otherwise
    storage_timeout_seconds: float = 5.0

    # Tokens
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    token_lifetime_hours: int = 24

    # Passwords
    bcrypt_rounds: int = 10
    password_min_length: int = 6

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5005

    # CORS
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(env_prefix="AUTHCORE_", env_file=".env", extra="ignore")

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        # bcrypt.gensalt() only accepts 4..31
        if not 4 <= v <= 31:
            raise ValueError("AUTHCORE_BCRYPT_ROUNDS must be between 4 and 31")
        return v

    @field_validator("token_lifetime_hours", "password_min_length")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure the signing secret is set outside development."""
        if not self.jwt_secret:
            raise ValueError("AUTHCORE_JWT_SECRET must not be empty")
        if (
            self.environment != "development"
            and self.jwt_secret == DEFAULT_JWT_SECRET
        ):
            raise ValueError(
                "AUTHCORE_JWT_SECRET must be set to a secure value in "
                "non-development environments. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
