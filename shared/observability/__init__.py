"""Observability utilities shared across patient registry entrypoints."""

from .logger import (
    configure_logging,
    generate_request_id,
    get_logger,
    get_request_id,
    request_context,
)
from .middleware import CorrelationIdMiddleware, RequestTimingMiddleware
from .audit import (
    AuditRepository,
    InMemoryAuditRepository,
    PatientAudit,
    StdoutAuditRepository,
    get_audit_repository,
    record_patient_audit,
    set_audit_repository,
)

__all__ = [
    "AuditRepository",
    "CorrelationIdMiddleware",
    "InMemoryAuditRepository",
    "PatientAudit",
    "RequestTimingMiddleware",
    "StdoutAuditRepository",
    "configure_logging",
    "generate_request_id",
    "get_audit_repository",
    "get_logger",
    "get_request_id",
    "record_patient_audit",
    "request_context",
    "set_audit_repository",
]
