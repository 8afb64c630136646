from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration.

    Values are loaded from environment variables and optional .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    # App
    app_name: str = "Restaurant Loyalty App"
    environment: str = "dev"  # dev|staging|prod
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./loyalty.db"
    db_timeout_seconds: float = 5.0
    create_tables_on_startup: bool = True

    # Salt for hashing session tokens
    secret_key: str = "CHANGE_ME"  # change in prod

    # Admin gate. A passlib hash takes precedence over the plaintext secret.
    admin_password: SecretStr = SecretStr("")
    admin_password_hash: str = ""

    # Admin sessions
    session_backend: str = "memory"  # memory|database
    session_cookie_name: str = "admin_session"
    session_cookie_secure: bool = False
    session_idle_minutes: int = 30
    session_max_age_minutes: int = 480

    # Rate limiting
    rate_limit_enabled: bool = True
    login_max_failures: int = 5
    login_lockout_minutes: int = 15

    # Customers
    min_phone_digits: int = 10
    max_phone_digits: int = 15
    count_return_visits: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
