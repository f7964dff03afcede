"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for authgate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead,
or better, accept a Settings instance from the caller.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. The app
      lifespan builds the credential store and AuthService from that one
      object and passes it by reference; flows never look at the environment.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET, database_url -> DATABASE_URL).

  @model_validator(mode="after"): Resolves the signing secret once all fields
      are loaded.

Security notes:
  An unset JWT_SECRET falls back to DEFAULT_JWT_SECRET, a literal that is
  public in this repository. Anyone who reads it can mint valid session
  tokens. This is long-standing behaviour and is kept as-is, but it is never
  silent: the validator logs a WARNING and the API lifespan logs another one
  at startup. Set JWT_SECRET in every real deployment.

  An unset DATABASE_URL is tolerated: the credential store runs on the
  in-process volatile store for the whole process lifetime.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("authgate.config")

DEFAULT_JWT_SECRET = "your_super_secret_jwt_key_123"


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
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The validator swaps
    # in DEFAULT_JWT_SECRET, so callers never see "".
    jwt_secret: str = ""
    token_expire_seconds: int = 3600
    bcrypt_rounds: int = 10

    # ------------------------------------------------------------------
    # Credential store
    # ------------------------------------------------------------------

    # Empty string means no durable store: volatile store only.
    database_url: str = ""
    db_pool_size: int = 10

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    # Any origin is echoed back with credentials allowed.
    cors_origin_regex: str = ".*"
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def resolve_jwt_secret(self) -> "Settings":
        """Fall back to the public default secret, loudly."""
        if not self.jwt_secret:
            self.jwt_secret = DEFAULT_JWT_SECRET
            logger.warning(
                "WARNING: JWT_SECRET is not set. Using the built-in default secret; "
                "session tokens can be forged by anyone who knows it."
            )
        return self

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables, or construct Settings(...)
    directly and hand it to the code under test.
    """
    return Settings()
