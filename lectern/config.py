"""
Lectern settings.

Read from the environment (and a local .env) by pydantic-settings. Names are
case-insensitive: DATABASE_URL, ADMIN_EMAILS, OPENAI_API_KEY and so on.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEV_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    project_name: str = "Lectern"
    version: str = "0.3.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    api_v1_prefix: str = "/api/v1"

    # Storage: SQLite for local use, postgresql+asyncpg in deployments
    database_url: str = "sqlite+aiosqlite:///./lectern.db"

    # Bearer sessions
    secret_key: str = "change-this-in-production-minimum-32-characters-long"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(1440, ge=1)
    refresh_token_expire_days: int = Field(7, ge=1)

    # Comma separated; membership grants the admin panel
    admin_emails: str = ""

    # Browser origins allowed by CORS, comma separated. Empty means the dev
    # servers outside production and nothing extra in production.
    cors_origins: str = ""

    # Gamification
    elo_lecture_complete: int = 300
    elo_mastery_default: int = 5

    # Lecture breakdown; without a usable key the built-in generator is used
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_timeout_seconds: float = 60.0

    bcrypt_rounds: int = Field(12, ge=4, le=16)

    max_upload_mb: int = Field(20, ge=1)
    slow_request_ms: int = 1000

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def ai_configured(self) -> bool:
        """A key is set and it is not the placeholder from the sample env file."""
        key = self.openai_api_key.strip()
        return bool(key) and not key.startswith("sk-your-")

    @property
    def allowed_origins(self) -> List[str]:
        configured = [o.strip().rstrip("/") for o in self.cors_origins.split(",") if o.strip()]
        if self.is_production and not self.debug:
            return configured
        return configured + [o for o in _DEV_ORIGINS if o not in configured]


@lru_cache
def get_settings() -> Settings:
    return Settings()
