"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for SessionGate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Settings        -- server: cookie name, signing key, secure flag, login rate limit
ClientSettings  -- client: server URL and per-request timeout

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. The identity cookie
  is an HS256 JWT, so the key's entropy is the cookie's only protection.

  In production mode (DEBUG not set or false), a missing SECRET_KEY is a hard
  startup failure, and SECURE_COOKIES defaults to true. Local development
  (DEBUG=true) auto-generates a key and defaults SECURE_COOKIES to false so
  the cookie survives plain-HTTP loopback.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/ or client/.
"""

import logging
import secrets
from functools import lru_cache
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("sessiongate.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. Field names map to upper-case
    environment variables (cookie_name -> COOKIE_NAME).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured"; see the validator.
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Identity cookie
    # ------------------------------------------------------------------

    cookie_name: str = "sessiongate-identity"
    # None means "derive from debug": secure everywhere except local dev.
    secure_cookies: Optional[bool] = None

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str = "127.0.0.1"
    port: int = 8080
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    login_rate_limit: str = "10/minute"
    # Artificial latency before /auth/login answers. Zero in production;
    # raise it to reproduce out-of-order completions by hand.
    login_delay_seconds: float = 0.0

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy and resolve the secure-cookie default.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Identity cookies will not survive a restart.

        Production mode: refuse to start without SECRET_KEY.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning(
                    "WARNING: Using auto-generated SECRET_KEY. " "Identity cookies will not persist across restarts."
                )
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.secure_cookies is None:
            self.secure_cookies = not self.debug
        elif not self.secure_cookies and not self.debug:
            logger.warning("SECURE_COOKIES=false outside DEBUG mode -- identity cookie will be sent over plain HTTP")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()


class ClientSettings(BaseSettings):
    """Settings for the session client. Needs no SECRET_KEY.

    SESSIONGATE_SERVER_URL, SESSIONGATE_REQUEST_TIMEOUT_MS.
    """

    model_config = SettingsConfigDict(
        env_prefix="SESSIONGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server_url: str = "http://127.0.0.1:8080"
    request_timeout_ms: int = 5000


@lru_cache
def get_client_settings() -> ClientSettings:
    return ClientSettings()
