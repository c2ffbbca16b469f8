from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SHAREPOINT_BASE_PATH = "本社共有（Re-iDea)/04.リフォーム/Renova"


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "RenovaFlow"
    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2])
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")
    UPLOAD_DIR: Path | None = None
    DB_URL: str = Field(default="", validation_alias=AliasChoices("DATABASE_URL", "DB_URL"))

    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: list[str] = Field(default_factory=list)

    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "password123"
    ADMIN_NAME: str = "管理者"

    MICROSOFT_CLIENT_ID: str = ""
    MICROSOFT_CLIENT_SECRET: str = ""
    MICROSOFT_TENANT_ID: str = ""
    SHAREPOINT_SITE_ID: str = ""
    SHAREPOINT_DRIVE_ID: str = ""
    SHAREPOINT_BASE_PATH: str = DEFAULT_SHAREPOINT_BASE_PATH
    GRAPH_BASE_URL: str = "https://graph.microsoft.com/v1.0"
    GRAPH_LOGIN_URL: str = "https://login.microsoftonline.com"
    GRAPH_TIMEOUT_SECONDS: float = 30.0

    BACKUP_ENABLED: bool = True
    BACKUP_INTERVAL_SECONDS: int = 60 * 60
    BACKUP_INITIAL_DELAY_SECONDS: int = 5

    @property
    def upload_dir(self) -> Path:
        return self.UPLOAD_DIR if self.UPLOAD_DIR is not None else self.DATA_DIR / "uploads"

    @property
    def database_url(self) -> str:
        return self.DB_URL or f"sqlite:///{self.DATA_DIR / 'renovaflow.db'}"

    @property
    def sqlite_path(self) -> Path | None:
        """Filesystem path of the database when it is a file-backed SQLite URL."""

        url = self.database_url
        if not url.startswith("sqlite:///"):
            return None
        raw = url[len("sqlite:///"):]
        if not raw or raw == ":memory:":
            return None
        return Path(raw)

    @property
    def sharepoint_configured(self) -> bool:
        return all(
            (
                self.MICROSOFT_CLIENT_ID,
                self.MICROSOFT_CLIENT_SECRET,
                self.MICROSOFT_TENANT_ID,
                self.SHAREPOINT_SITE_ID,
                self.SHAREPOINT_DRIVE_ID,
            )
        )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("ALLOWED_ORIGINS must be a comma separated string or list")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    return settings
