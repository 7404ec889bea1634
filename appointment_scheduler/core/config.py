from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_ssl: bool = False

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Env
    env: str = "development"
    log_level: str = "INFO"

    # Upstream availability feed (weekly recurring slots per provider)
    feed_base_url: str = ""
    feed_timeout_seconds: float = 10.0
    feed_timezone: str = "UTC"
    availability_sync_weeks: int = 4

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def feed_enabled(self) -> bool:
        return bool(self.feed_base_url)


settings = Settings()
