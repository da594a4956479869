from __future__ import annotations

import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from repositories.patient_store import InMemoryPatientStore, JsonFilePatientStore
from services.patient_registry.factory import build_service, build_store
from shared.config.settings import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PATIENT_REGISTRY_STORAGE_BACKEND", raising=False)

    settings = Settings(_env_file=None)

    assert settings.storage_backend == "memory"
    assert settings.max_key_size == 44
    assert settings.max_value_size == 1024


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PATIENT_REGISTRY_STORAGE_BACKEND", "json")
    monkeypatch.setenv("PATIENT_REGISTRY_STORAGE_PATH", str(tmp_path / "p.json"))
    monkeypatch.setenv("PATIENT_REGISTRY_MAX_VALUE_SIZE", "2048")

    settings = Settings(_env_file=None)

    assert settings.storage_backend == "json"
    assert settings.storage_path == str(tmp_path / "p.json")
    assert settings.max_value_size == 2048


def test_unknown_backend_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, storage_backend="redis")


def test_build_store_follows_backend(tmp_path: Path) -> None:
    memory = build_store(Settings(_env_file=None, storage_backend="memory", max_key_size=10))
    on_disk = build_store(
        Settings(_env_file=None, storage_backend="json", storage_path=str(tmp_path / "p.json"))
    )

    assert isinstance(memory, InMemoryPatientStore)
    assert memory.max_key_size == 10
    assert isinstance(on_disk, JsonFilePatientStore)
    assert on_disk.path == tmp_path / "p.json"


def test_build_service_wraps_store() -> None:
    service = build_service(Settings(_env_file=None))

    assert isinstance(service.store, InMemoryPatientStore)
