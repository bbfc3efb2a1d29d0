from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Shared files live on the host user's desktop unless overridden
DEFAULT_STORAGE_DIR = Path.home() / "Desktop" / "shared"


class Settings(BaseSettings):
    # Storage

    storage_dir: Path = Field(
        default=DEFAULT_STORAGE_DIR,
        validation_alias=AliasChoices("storage_dir", "STORAGE_DIR")
    )

    # Network

    host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("host", "HOST")
    )

    http_port: int = Field(
        default=5000,
        validation_alias=AliasChoices("http_port", "HTTP_PORT")
    )

    ws_port: int = Field(
        default=5001,
        validation_alias=AliasChoices("ws_port", "WS_PORT")
    )

    # Port the browser UI is served from; used to build the LAN origin
    frontend_port: int = Field(
        default=3000,
        validation_alias=AliasChoices("frontend_port", "FRONTEND_PORT")
    )

    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        validation_alias=AliasChoices("cors_origins", "CORS_ORIGINS")
    )

    # Upload limits

    max_upload_files: int = Field(
        default=30,
        validation_alias=AliasChoices("max_upload_files", "MAX_UPLOAD_FILES")
    )

    max_file_size: int = Field(
        default=10 * 1024 * 1024,
        validation_alias=AliasChoices("max_file_size", "MAX_FILE_SIZE")
    )

    log_level: str = Field(
        default="info",
        validation_alias=AliasChoices("log_level", "LOG_LEVEL")
    )

    @field_validator("storage_dir")
    @classmethod
    def expand_storage_dir(cls, value: Path) -> Path:
        return value.expanduser()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        extra="ignore",
        case_sensitive=False
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
