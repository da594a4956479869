"""FastAPI application exposing the patient registry operations."""

from __future__ import annotations

from typing import Any, TypeVar

from fastapi import APIRouter, Body, Depends, FastAPI, Query, status

from repositories.patient_store import StorageError
from shared.config.settings import get_settings
from shared.http.errors import PatientStorageError, raise_for_error, register_exception_handlers
from shared.models.patient import Patient, PatientPayload, PatientStatusUpdate
from shared.models.result import Err, Result
from shared.observability.audit import record_patient_audit
from shared.observability.logger import configure_logging
from shared.observability.middleware import (
    CorrelationIdMiddleware,
    RequestTimingMiddleware,
)

from .factory import build_service
from .observability import scrub_for_logging
from .service import PatientRegistryService

T = TypeVar("T")

configure_logging(service_name=get_settings().service_name, level=get_settings().log_level)

app = FastAPI(title="Patient Registry Service")
router = APIRouter(prefix="/patients", tags=["patients"])

app.add_middleware(RequestTimingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
register_exception_handlers(app)

_service: PatientRegistryService | None = None


async def get_service() -> PatientRegistryService:
    """Return the process-wide :class:`PatientRegistryService`, building it on first use.

    Runs on the event loop so concurrent first requests share one store.
    """

    global _service
    if _service is None:
        try:
            _service = build_service()
        except StorageError as exc:
            raise PatientStorageError(f"Failed to open patient store: {exc}") from exc
    return _service


async def _audited(
    result: Result[T],
    event: str,
    *,
    patient_id: str | None = None,
    payload: Any = None,
) -> T:
    """Record an audit entry for a mutation and unwrap its result."""

    if isinstance(result, Err):
        await record_patient_audit(
            event,
            patient_id=patient_id,
            success=False,
            error_kind=result.kind.value,
            metadata={"request": scrub_for_logging(payload)} if payload is not None else None,
        )
        raise_for_error(result, patient_id=patient_id)

    value = result.value
    resolved_id = patient_id or getattr(value, "id", None)
    await record_patient_audit(event, patient_id=resolved_id, success=True)
    return value


def _unwrap(result: Result[T], *, patient_id: str | None = None) -> T:
    if isinstance(result, Err):
        raise_for_error(result, patient_id=patient_id)
    return result.value


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Return a simple health payload for orchestration checks."""

    return {"status": "ok", "service": get_settings().service_name}


@router.post("", response_model=Patient, status_code=status.HTTP_201_CREATED)
async def add_patient(
    payload: PatientPayload, service: PatientRegistryService = Depends(get_service)
) -> Patient:
    """Create an active patient record."""

    result = service.add_patient(payload.first_name, payload.last_name, payload.birth_date)
    return await _audited(result, "patient_added", payload=payload)


@router.get("", response_model=list[Patient])
async def list_patients(
    status_filter: str | None = Query(
        default=None, alias="status", description="Only return patients with this status"
    ),
    service: PatientRegistryService = Depends(get_service),
) -> list[Patient]:
    """Return every patient, or those matching ``status`` when given."""

    if status_filter is None:
        return _unwrap(service.get_patients())
    return _unwrap(service.get_patients_by_status(status_filter))


@router.get("/{patient_id}", response_model=Patient)
async def read_patient(
    patient_id: str, service: PatientRegistryService = Depends(get_service)
) -> Patient:
    return _unwrap(service.get_patient(patient_id), patient_id=patient_id)


@router.put("/{patient_id}", response_model=Patient)
async def update_patient(
    patient_id: str,
    payload: PatientPayload,
    service: PatientRegistryService = Depends(get_service),
) -> Patient:
    """Replace the name and birth date of ``patient_id``; status is left alone."""

    result = service.update_patient(
        patient_id, payload.first_name, payload.last_name, payload.birth_date
    )
    return await _audited(result, "patient_updated", patient_id=patient_id, payload=payload)


@router.patch("/{patient_id}/status", response_model=PatientStatusUpdate)
async def update_patient_status(
    patient_id: str,
    payload: PatientStatusUpdate = Body(...),
    service: PatientRegistryService = Depends(get_service),
) -> PatientStatusUpdate:
    result = service.update_patient_status(patient_id, payload.status)
    new_status = await _audited(
        result, "patient_status_updated", patient_id=patient_id, payload=payload
    )
    return PatientStatusUpdate(status=new_status)


@router.delete("/{patient_id}", response_model=Patient)
async def delete_patient(
    patient_id: str, service: PatientRegistryService = Depends(get_service)
) -> Patient:
    """Remove ``patient_id`` and return the deleted record."""

    return await _audited(service.delete_patient(patient_id), "patient_deleted", patient_id=patient_id)


app.include_router(router)


__all__ = ["app", "get_service", "health"]
