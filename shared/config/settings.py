"""Application configuration powered by ``pydantic-settings``."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Top-level settings for the patient registry."""

    service_name: str = Field(default="patient_registry", description="Name attached to log entries")
    log_level: str = Field(default="INFO", description="Minimum level for emitted log records")

    storage_backend: Literal["memory", "json"] = Field(
        default="memory", description="Backend used to persist patient records"
    )
    storage_path: str = Field(
        default="./data/patients.json", description="File used by the json storage backend"
    )
    max_key_size: int = Field(default=44, gt=0, description="Maximum patient identifier size in bytes")
    max_value_size: int = Field(default=1024, gt=0, description="Maximum serialized record size in bytes")

    host: str = Field(default="0.0.0.0", description="Interface the HTTP server binds to")
    port: int = Field(default=8003, description="Port the HTTP server listens on")

    model_config = SettingsConfigDict(env_prefix="PATIENT_REGISTRY_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance for application use."""

    return Settings()


__all__ = ["Settings", "get_settings"]
