"""Runtime configuration.

``load_environment`` reads the first ``.env`` found among a few candidate
locations into the process environment; ``Settings`` then reads typed values
from the environment.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging_setup import get_logger


logger = get_logger("taxpal.config")

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_CORS_ORIGINS = "http://localhost:4200,http://127.0.0.1:4200"


def env_candidates() -> list[Path]:
    return [
        Path.cwd() / ".env",
        PACKAGE_DIR.parent / ".env",
        PACKAGE_DIR.parent.parent / ".env",
    ]


def load_environment(candidates: list[Path] | None = None) -> Path | None:
    tried = candidates if candidates is not None else env_candidates()
    for path in tried:
        if path.is_file():
            load_dotenv(path)
            logger.info("[env] loaded: %s", path)
            return path
    logger.warning("[env] .env not found; tried: %s", [str(p) for p in tried])
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    port: int = Field(default=5000, ge=0, le=65535)
    host: str = "0.0.0.0"
    cors_origin: str = DEFAULT_CORS_ORIGINS
    database_url: str = Field(
        default="sqlite:///data/taxpal.db",
        validation_alias=AliasChoices("database_url", "mongodb_uri", "mongo_uri"),
    )
    db_timeout_seconds: float = Field(default=5.0, gt=0)
    auth_secret: str = "change-me"
    environment: str = "development"
    log_level: str = "INFO"
    smtp_host: str | None = None
    smtp_port: int = 587

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    @property
    def database_path(self) -> str:
        prefix = "sqlite:///"
        if self.database_url.startswith(prefix):
            return self.database_url[len(prefix):]
        return self.database_url

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"
