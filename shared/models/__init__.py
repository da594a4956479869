"""Data models shared across the patient registry."""

from .patient import (
    CamelModel,
    Patient,
    PatientPayload,
    PatientStatus,
    PatientStatusUpdate,
    U64_MAX,
    to_camel,
)
from .result import Err, ErrorKind, Ok, Result

__all__ = [
    "CamelModel",
    "Err",
    "ErrorKind",
    "Ok",
    "Patient",
    "PatientPayload",
    "PatientStatus",
    "PatientStatusUpdate",
    "Result",
    "U64_MAX",
    "to_camel",
]
