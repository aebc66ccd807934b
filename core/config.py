"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for WordGate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. access_passwords -> ACCESS_PASSWORDS). Type coercion is built in.

Misconfiguration policy:
  An empty ACCESS_PASSWORDS is NOT a startup failure. It surfaces at login
  time as a server_misconfigured error, logged server-side and answered with
  a generic 500. Missing upstream API keys likewise surface per call.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
or auth/.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


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

    # Comma-separated plaintext passwords. Parsed into an AllowList by
    # auth.models.AllowList.from_csv(); empty means "not configured".
    access_passwords: str = ""

    secure_cookies: bool = True
    # 24 hours. The session credential has no server-side expiry; this
    # cookie lifetime is the only bound on how long it is presented.
    session_max_age: int = 86400

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"

    # Host header allow-list for TrustedHostMiddleware. JSON list in the env,
    # e.g. ALLOWED_HOSTS='["words.example.com"]'.
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Upstream APIs (empty string means the handler answers 500)
    # ------------------------------------------------------------------

    azure_speech_key: str = ""
    azure_speech_region: str = "eastasia"
    azure_speech_voice: str = "en-GB-SoniaNeural"

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("session_max_age")
    @classmethod
    def validate_session_max_age(cls, value: int) -> int:
        """Reject non-positive cookie lifetimes; Max-Age=0 would delete the cookie on set."""
        if value <= 0:
            raise ValueError("SESSION_MAX_AGE must be a positive number of seconds.")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
