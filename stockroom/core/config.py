from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Stockroom"
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent)
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent.parent / "data")

    DB_URL: str | None = Field(default=None, validation_alias=AliasChoices("DB_URL", "DATABASE_URL"))

    HOST: str = "0.0.0.0"
    PORT: int = 8089
    # Comma separated list of origins allowed by CORS.
    ALLOWED_ORIGINS: str = ""

    # ---- Blob storage for item documents
    BLOB_BACKEND: str = "local"
    BLOB_DIR: Path | None = None
    S3_BUCKET: str | None = None
    R2_BUCKET: str | None = None
    S3_REGION: str | None = None
    S3_ACCESS_KEY: str | None = None
    S3_SECRET_KEY: str | None = None
    S3_ENDPOINT_URL: str | None = None
    S3_PUBLIC_URL: str | None = None

    # ---- Reporting / notifications
    RECENT_MOVEMENT_DAYS: int = 30
    SEED_DEMO_DATA: bool = False

    @property
    def database_url(self) -> str:
        return self.DB_URL or f"sqlite:///{self.DATA_DIR / 'stockroom.db'}"

    @property
    def blob_dir(self) -> Path:
        return self.BLOB_DIR if self.BLOB_DIR is not None else self.DATA_DIR / "blobs"

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def s3_bucket_name(self) -> str | None:
        return self.S3_BUCKET or self.R2_BUCKET

    @field_validator("BLOB_BACKEND")
    @classmethod
    def validate_blob_backend(cls, value: str) -> str:
        backend = (value or "").strip().lower()
        if backend not in ("local", "s3"):
            raise ValueError("BLOB_BACKEND must be 'local' or 's3'")
        return backend


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings


settings = get_settings()
