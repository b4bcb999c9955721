"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for SmartSprint happen here. No module should
call os.getenv() or os.environ.get() directly -- the app factory and the CLI
call get_settings() once and pass the Settings object (or values taken from
it) into the store, the token issuer and the routes.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

Security notes:
  SECRET_KEY has no default. A missing or short key (<32 chars) is a hard
  startup failure. There is no development fallback key.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("smartsprint.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'smartsprint.db'}"

_MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    secret_key is the only required field. Everything else has a default so
    tests can build Settings(secret_key=...) without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    secret_key: str = Field(min_length=1)
    database_url: str = _DEFAULT_DB_URL
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_lifetime_seconds: int = Field(default=24 * 60 * 60, gt=0)
    # bcrypt cost factor. 10 keeps interactive login well under 100ms on
    # commodity hardware; tests lower it to 4.
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    self_registration_enabled: bool = True
    # Roles a caller may pick for themselves on POST /auth/register.
    # admin is never self-assignable; higher roles are handed out via POST /users.
    self_registration_roles: list[Literal["project_manager", "developer", "viewer"]] = ["developer", "viewer"]

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost", "testserver"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, value: str) -> str:
        """Reject signing keys too short to give HS256 meaningful entropy."""
        if len(value) < _MIN_SECRET_LENGTH:
            raise ValueError(f"SECRET_KEY must be at least {_MIN_SECRET_LENGTH} characters.")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    Raises pydantic.ValidationError if SECRET_KEY is missing or too short,
    which stops the process before it accepts any request.

    In tests: build Settings(...) directly and hand it to create_app(), or call
    get_settings.cache_clear() between cases that change the environment.
    """
    settings = Settings()
    logger.info("Configuration loaded (database=%s)", settings.database_url.split("?", 1)[0])
    return settings
