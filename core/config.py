"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for quoteshare happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, token_ttl_hours -> TOKEN_TTL_HOURS).

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. The token secret policy depends on the environment mode:
      development generates a key with a warning, every other mode refuses to
      start without one.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
db/, groups/, or quotes/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("quoteshare.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    port: int = 8080
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Tokens and credentials
    # ------------------------------------------------------------------

    # Empty string is the "not configured" sentinel; the validator below
    # either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    token_ttl_hours: float = Field(default=24, ge=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_path: str = "data/quoteshare.db"

    # ------------------------------------------------------------------
    # Rate limiting and CORS
    # ------------------------------------------------------------------

    rate_limit_requests: int = Field(default=100, ge=1)
    rate_limit_window_seconds: int = Field(default=60, ge=1)
    login_rate_limit: str = "10/minute"
    allowed_origins: str = "http://localhost:3000"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.database_path}"

    @property
    def default_rate_limit(self) -> str:
        """slowapi/limits notation, e.g. "100/60 seconds"."""
        return f"{self.rate_limit_requests}/{self.rate_limit_window_seconds} seconds"

    def get_allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the token secret policy.

        Development: auto-generate a random key with a warning. Tokens will
            not survive a restart, which is acceptable locally.

        Any other environment: refuse to start without SECRET_KEY. A random
            key there would silently invalidate every session on restart.

        All environments: reject keys shorter than 32 characters. HS256
            signing relies on key entropy.
        """
        if not self.secret_key:
            if self.is_development:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    f"SECRET_KEY is required when ENVIRONMENT={self.environment}. "
                    "Set SECRET_KEY in your environment or .env file."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() if you need to inject different
    environment variables.
    """
    return Settings()
