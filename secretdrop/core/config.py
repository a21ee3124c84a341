"""Application settings loaded from environment with validation."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
StorageBackend = Literal["memory", "firestore"]


class Settings(BaseSettings):
    """Secret service settings from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    service_name: str = Field(default="secretdrop", min_length=1)

    # Payload policy
    max_payload_bytes: int = Field(
        default=64 * 1024,
        ge=1,
        description="Largest payload accepted at store time, in bytes",
    )

    # Expiry
    default_ttl_seconds: int = Field(
        default=3600,
        ge=0,
        description=(
            "TTL applied when the caller sends none. "
            "0 = no time limit; the secret lives until it is read."
        ),
    )
    max_ttl_seconds: int = Field(
        default=7 * 24 * 3600,
        ge=1,
        description="Upper bound for caller-supplied TTLs (longer values are clamped)",
    )
    sweep_interval_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Seconds between expiry sweeps. 0 disables the background sweeper",
    )

    # Keys
    key_bytes: int = Field(
        default=32,
        ge=16,
        le=128,
        description="Random bytes per key (16 bytes = 128 bits minimum)",
    )
    key_max_attempts: int = Field(default=5, ge=1, le=50)

    # Storage
    storage_backend: StorageBackend = Field(default="memory")
    store_shards: int = Field(
        default=16,
        ge=1,
        le=1024,
        description="Lock shards for the in-memory store",
    )
    gcp_project_id: str = Field(
        default="",
        description="GCP project for Firestore storage and Cloud Trace (optional)",
    )
    firestore_collection_secrets: str = Field(
        default="secrets",
        min_length=1,
        description="Firestore collection holding secret documents",
    )

    # API
    public_base_url: str = Field(
        default="",
        description="Base URL for retrieval links (e.g. https://drop.example.com); request URL if empty",
    )

    # Logging
    log_level: LogLevel = Field(default="INFO")

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        u = (v or "INFO").upper()
        if u not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return u

    @field_validator("public_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
