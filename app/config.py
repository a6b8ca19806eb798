# app/config.py — Pydantic settings (env vars)

from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Supabase
    supabase_url: str
    supabase_service_key: str

    # Table / bucket names
    pengajuan_table: str = "pengajuan_tera"
    storage_bucket: str = "uploads"

    # Submission form
    max_file_surat_bytes: int = 10 * 1024 * 1024
    admin_redirect_path: str = "/admin/perpanjang"

    # Admin listing
    file_download_timeout_seconds: int = 30
    # created_at is stored in UTC; dates are shown in local office time
    display_timezone: str = "Asia/Jakarta"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @field_validator("supabase_url", "supabase_service_key")
    @classmethod
    def _validate_required(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set and non-empty")
        return cleaned

    @field_validator("display_timezone")
    @classmethod
    def _validate_display_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"DISPLAY_TIMEZONE is not a known IANA zone: {value}") from exc
        return value

    @field_validator("max_file_surat_bytes")
    @classmethod
    def _validate_max_file_surat_bytes(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("MAX_FILE_SURAT_BYTES must be positive")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
