from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import AnyHttpUrl, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # URL the client library posts generation requests to
    BACKEND_API_URL: AnyHttpUrl = "http://localhost:8000/api/v1/aiProxy"

    # Upstream Gemini API
    GEMINI_API_KEY: SecretStr = SecretStr("")
    GEMINI_API_BASE: AnyHttpUrl = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_MODEL: str = "gemini-2.5-flash"
    UPSTREAM_TIMEOUT_SECONDS: float = 60.0

    # Persistence
    DATABASE_URL: str = "sqlite:///novachat.db"

    # Authentication
    AUTH_TOKEN_TTL_HOURS: int = 24 * 7

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def split_cors_origins(cls, value: object) -> List[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value  # type: ignore[return-value]

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, value: str) -> str:
        if not value.startswith("sqlite:///"):
            raise ValueError("Only sqlite:/// URLs are supported for DATABASE_URL")
        return value

    @field_validator("GEMINI_MODEL")
    @classmethod
    def validate_model(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("GEMINI_MODEL cannot be empty")
        return value

    @property
    def database_path(self) -> Path:
        return Path(self.DATABASE_URL.replace("sqlite:///", "")).expanduser().resolve()

    @property
    def gemini_api_key(self) -> str:
        """Upstream credential, stripped; empty when not configured."""

        return self.GEMINI_API_KEY.get_secret_value().strip()

    @property
    def generate_content_url(self) -> str:
        base_url = str(self.GEMINI_API_BASE).rstrip("/")
        return f"{base_url}/models/{self.GEMINI_MODEL}:generateContent"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
