"""Audit helpers for recording changes made to patient records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

import structlog

from .logger import get_logger, get_request_id

__all__ = [
    "AuditRepository",
    "InMemoryAuditRepository",
    "PatientAudit",
    "StdoutAuditRepository",
    "get_audit_repository",
    "record_patient_audit",
    "set_audit_repository",
]


@dataclass(slots=True)
class PatientAudit:
    """Structured payload describing one attempted patient mutation."""

    event: str
    patient_id: str | None = None
    request_id: str | None = None
    service: str | None = None
    success: bool | None = None
    error_kind: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation of the audit entry."""

        return {
            "event": self.event,
            "patientId": self.patient_id,
            "requestId": self.request_id,
            "service": self.service,
            "success": self.success,
            "errorKind": self.error_kind,
            "metadata": dict(self.metadata),
            "createdAt": self.created_at.isoformat(),
        }


class AuditRepository(Protocol):
    """Destination for patient audit events."""

    async def persist(self, audit: PatientAudit) -> None:  # pragma: no cover - interface definition
        """Persist ``audit`` to the underlying storage backend."""


class StdoutAuditRepository:
    """Persist audit entries to the configured logger."""

    def __init__(self) -> None:
        self._logger = get_logger("audit")

    async def persist(self, audit: PatientAudit) -> None:
        self._logger.info("patient_audit", **audit.to_dict())


class InMemoryAuditRepository:
    """Keep audit entries in a list; used by tests and local tooling."""

    def __init__(self) -> None:
        self.entries: list[PatientAudit] = []

    async def persist(self, audit: PatientAudit) -> None:
        self.entries.append(audit)


_DEFAULT_REPOSITORY: AuditRepository | None = None


def get_audit_repository() -> AuditRepository:
    """Return the globally configured audit repository."""

    global _DEFAULT_REPOSITORY
    if _DEFAULT_REPOSITORY is None:
        _DEFAULT_REPOSITORY = StdoutAuditRepository()
    return _DEFAULT_REPOSITORY


def set_audit_repository(repository: AuditRepository | None) -> None:
    """Replace the global audit repository; ``None`` restores the default."""

    global _DEFAULT_REPOSITORY
    _DEFAULT_REPOSITORY = repository


async def record_patient_audit(
    event: str,
    *,
    patient_id: str | None = None,
    success: bool | None = None,
    error_kind: str | None = None,
    metadata: dict[str, Any] | None = None,
    repository: AuditRepository | None = None,
    request_id: str | None = None,
    service: str | None = None,
) -> PatientAudit:
    """Capture an audit event and persist it using the configured repository."""

    repo = repository or get_audit_repository()
    context = structlog.contextvars.get_contextvars()

    audit_entry = PatientAudit(
        event=event,
        patient_id=patient_id,
        request_id=request_id or get_request_id(),
        service=service or context.get("service"),
        success=success,
        error_kind=error_kind,
        metadata=dict(metadata or {}),
    )

    await repo.persist(audit_entry)
    return audit_entry
