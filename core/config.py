"""
core/config.py -- TripNetwork settings, read from the environment.

Every environment lookup goes through Settings. Other modules call
get_settings() and never touch os.environ themselves.

get_settings() builds Settings on first use and caches it, so the signing
key, token lifetime and rate limits are fixed for the life of the process.
Values come from environment variables (SECRET_KEY, DATABASE_URL, ...) or a
local .env file.

Secret key policy:
  - unset: the fixed INSECURE_DEFAULT_SECRET_KEY is used and a warning is
    logged. Fine on a laptop, never in a deployment.
  [M6] set but shorter than 32 characters: startup fails. A short HS256 key
       can be brute-forced offline from any issued token.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("tripnetwork.config")

# Fixed fallback so tokens survive restarts during local development.
INSECURE_DEFAULT_SECRET_KEY = "tripnetwork-default-secret-key-change-in-production"

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'tripnetwork_auth.db'}"

_SEVEN_DAYS = 7 * 24 * 60 * 60


class Settings(BaseSettings):
    """Process-wide configuration. Each field reads the env var of the same name, uppercased.

    Every field has a default, so tests can build Settings(...) directly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    # Development mode: error responses carry stack traces.
    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below substitutes the insecure default, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = _SEVEN_DAYS

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    register_rate_limit: str = "20/minute"
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Missing key: substitute INSECURE_DEFAULT_SECRET_KEY and warn. Anyone
            who knows the default can mint tokens, so this is only tolerable
            on a developer machine.

        Configured key: reject keys shorter than 32 characters [M6].
        """
        if not self.secret_key:
            self.secret_key = INSECURE_DEFAULT_SECRET_KEY
            logger.warning(
                "WARNING: SECRET_KEY is not set. Using the built-in default key. "
                "This is NOT SECURE and must never be used in production."
            )
        elif len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.token_expire_seconds <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the cached Settings. Tests that change the environment call get_settings.cache_clear()."""
    return Settings()
