"""Construction of stores and services from configuration."""

from __future__ import annotations

from repositories.patient_store import InMemoryPatientStore, JsonFilePatientStore, PatientStore
from shared.config.settings import Settings, get_settings
from shared.observability.logger import get_logger

from .service import PatientRegistryService

logger = get_logger("services.patient_registry.factory")


def build_store(settings: Settings | None = None) -> PatientStore:
    """Return the store selected by ``settings.storage_backend``."""

    resolved = settings or get_settings()
    if resolved.storage_backend == "json":
        store: PatientStore = JsonFilePatientStore(
            resolved.storage_path,
            max_key_size=resolved.max_key_size,
            max_value_size=resolved.max_value_size,
        )
    else:
        store = InMemoryPatientStore(
            max_key_size=resolved.max_key_size,
            max_value_size=resolved.max_value_size,
        )
    logger.info("patient_store_ready", backend=resolved.storage_backend)
    return store


def build_service(settings: Settings | None = None) -> PatientRegistryService:
    return PatientRegistryService(build_store(settings))


__all__ = ["build_service", "build_store"]
