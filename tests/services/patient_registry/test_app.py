from __future__ import annotations

import sys
from pathlib import Path
from typing import AsyncIterator, Iterator

import pytest
from httpx import ASGITransport, AsyncClient

PROJECT_ROOT = Path(__file__).resolve().parents[3]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from repositories.patient_store import InMemoryPatientStore, StorageError
from services.patient_registry import app as app_module
from services.patient_registry.app import app, get_service
from services.patient_registry.main import get_app
from services.patient_registry.service import PatientRegistryService
from shared.config.settings import get_settings
from shared.models.patient import Patient
from shared.observability.audit import InMemoryAuditRepository, set_audit_repository


class _BrokenStore(InMemoryPatientStore):
    def values(self) -> list[Patient]:
        raise StorageError("backend offline")


@pytest.fixture
def service() -> PatientRegistryService:
    return PatientRegistryService(InMemoryPatientStore())


@pytest.fixture
def audit() -> Iterator[InMemoryAuditRepository]:
    repository = InMemoryAuditRepository()
    set_audit_repository(repository)
    yield repository
    set_audit_repository(None)


@pytest.fixture
async def client(
    service: PatientRegistryService, audit: InMemoryAuditRepository
) -> AsyncIterator[AsyncClient]:
    app.dependency_overrides[get_service] = lambda: service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


async def _create(client: AsyncClient, first: str = "Ann", last: str = "Lee") -> dict:
    response = await client.post(
        "/patients", json={"firstName": first, "lastName": last, "birthDate": 100}
    )
    assert response.status_code == 201
    return response.json()


def test_get_app_returns_fastapi_instance() -> None:
    assert get_app() is app


@pytest.mark.anyio("asyncio")
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "patient_registry"}


@pytest.mark.anyio("asyncio")
async def test_create_patient_returns_camel_case_record(
    client: AsyncClient, audit: InMemoryAuditRepository
) -> None:
    payload = await _create(client)

    assert set(payload) == {
        "id",
        "firstName",
        "lastName",
        "birthDate",
        "status",
        "createdAt",
        "updatedAt",
    }
    assert payload["status"] == "active"
    assert payload["updatedAt"] is None
    assert [entry.event for entry in audit.entries] == ["patient_added"]
    assert audit.entries[0].patient_id == payload["id"]
    assert audit.entries[0].success is True


@pytest.mark.anyio("asyncio")
async def test_create_patient_with_blank_name_is_problem(
    client: AsyncClient, audit: InMemoryAuditRepository
) -> None:
    response = await client.post(
        "/patients", json={"firstName": "  ", "lastName": "Lee", "birthDate": 1}
    )

    assert response.status_code == 422
    assert response.headers["content-type"].startswith("application/problem+json")
    problem = response.json()
    assert problem["title"] == "Invalid Patient Data"
    assert problem["detail"] == "Couldn't add Patient. First or Last name is invalid"
    assert (await client.get("/patients")).json() == []

    entry = audit.entries[-1]
    assert entry.success is False
    assert entry.error_kind == "validation"
    assert entry.metadata["request"]["lastName"] == "[redacted]"


@pytest.mark.anyio("asyncio")
async def test_create_patient_rejects_negative_birth_date(client: AsyncClient) -> None:
    response = await client.post(
        "/patients", json={"firstName": "Ann", "lastName": "Lee", "birthDate": -1}
    )

    assert response.status_code == 422
    assert response.json()["title"] == "Request Validation Failed"


@pytest.mark.anyio("asyncio")
async def test_read_patient_and_unknown_patient(client: AsyncClient) -> None:
    created = await _create(client)

    found = await client.get(f"/patients/{created['id']}")
    missing = await client.get("/patients/does-not-exist")

    assert found.status_code == 200
    assert found.json() == created
    assert missing.status_code == 404
    problem = missing.json()
    assert problem["patientId"] == "does-not-exist"
    assert problem["detail"] == "Couldn't get Patient with id=does-not-exist. Patient not found."


@pytest.mark.anyio("asyncio")
async def test_update_patient_keeps_status_and_sets_updated_at(client: AsyncClient) -> None:
    created = await _create(client)
    await client.patch(f"/patients/{created['id']}/status", json={"status": "inactive"})

    response = await client.put(
        f"/patients/{created['id']}",
        json={"firstName": "Anna", "lastName": "Leigh", "birthDate": 200},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["id"] == created["id"]
    assert payload["createdAt"] == created["createdAt"]
    assert payload["status"] == "inactive"
    assert payload["firstName"] == "Anna"
    assert payload["updatedAt"] >= payload["createdAt"]


@pytest.mark.anyio("asyncio")
async def test_update_unknown_patient_is_not_found(client: AsyncClient) -> None:
    response = await client.put(
        "/patients/missing", json={"firstName": "A", "lastName": "B", "birthDate": 1}
    )

    assert response.status_code == 404


@pytest.mark.anyio("asyncio")
async def test_status_update_and_filtering(client: AsyncClient) -> None:
    first = await _create(client, "Ann", "Lee")
    second = await _create(client, "Bo", "Kim")

    response = await client.patch(f"/patients/{first['id']}/status", json={"status": "inactive"})
    assert response.status_code == 200
    assert response.json() == {"status": "inactive"}

    inactive = await client.get("/patients", params={"status": "inactive"})
    active = await client.get("/patients", params={"status": "active"})
    everyone = await client.get("/patients")

    assert [patient["id"] for patient in inactive.json()] == [first["id"]]
    assert [patient["id"] for patient in active.json()] == [second["id"]]
    assert len(everyone.json()) == 2


@pytest.mark.anyio("asyncio")
async def test_invalid_status_values_are_rejected(client: AsyncClient) -> None:
    created = await _create(client)

    update = await client.patch(f"/patients/{created['id']}/status", json={"status": "bogus"})
    listing = await client.get("/patients", params={"status": "unknown"})

    assert update.status_code == 422
    assert listing.status_code == 422
    assert listing.json()["detail"] == "Couldn't get Patients. Status is invalid"
    assert (await client.get(f"/patients/{created['id']}")).json()["status"] == "active"


@pytest.mark.anyio("asyncio")
async def test_delete_patient(client: AsyncClient, audit: InMemoryAuditRepository) -> None:
    created = await _create(client)

    deleted = await client.delete(f"/patients/{created['id']}")
    again = await client.delete(f"/patients/{created['id']}")
    lookup = await client.get(f"/patients/{created['id']}")

    assert deleted.status_code == 200
    assert deleted.json() == created
    assert again.status_code == 404
    assert lookup.status_code == 404
    assert [entry.event for entry in audit.entries] == [
        "patient_added",
        "patient_deleted",
        "patient_deleted",
    ]


@pytest.mark.anyio("asyncio")
async def test_storage_fault_maps_to_service_unavailable(client: AsyncClient) -> None:
    app.dependency_overrides[get_service] = lambda: PatientRegistryService(_BrokenStore())

    response = await client.get("/patients")

    assert response.status_code == 503
    assert response.json()["detail"] == "Failed to get patients: backend offline"


@pytest.mark.anyio("asyncio")
async def test_request_id_is_echoed(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"
    assert response.headers["X-Response-Time"].endswith("s")


@pytest.fixture
def fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    get_settings.cache_clear()
    monkeypatch.setattr(app_module, "_service", None)
    yield monkeypatch
    get_settings.cache_clear()


@pytest.mark.anyio("asyncio")
async def test_health_reports_configured_service_name(
    fresh_settings: pytest.MonkeyPatch,
) -> None:
    fresh_settings.setenv("PATIENT_REGISTRY_SERVICE_NAME", "registry-east")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/health")

    assert response.json() == {"status": "ok", "service": "registry-east"}


@pytest.mark.anyio("asyncio")
async def test_corrupt_store_file_is_reported_as_unavailable(
    fresh_settings: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    store_path = tmp_path / "patients.json"
    store_path.write_text("{not json", encoding="utf-8")
    fresh_settings.setenv("PATIENT_REGISTRY_STORAGE_BACKEND", "json")
    fresh_settings.setenv("PATIENT_REGISTRY_STORAGE_PATH", str(store_path))

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/patients")

    assert response.status_code == 503
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["title"] == "Patient Store Unavailable"
    assert app_module._service is None


@pytest.mark.anyio("asyncio")
async def test_get_service_builds_a_single_instance(fresh_settings: pytest.MonkeyPatch) -> None:
    first = await get_service()
    second = await get_service()

    assert first is second
