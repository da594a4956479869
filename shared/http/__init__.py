"""HTTP helpers and exception definitions used by the registry API."""

from .errors import (
    PatientNotFoundError,
    PatientStorageError,
    PatientValidationError,
    ProblemDetails,
    ProblemDetailsException,
    raise_for_error,
    register_exception_handlers,
)

__all__ = [
    "PatientNotFoundError",
    "PatientStorageError",
    "PatientValidationError",
    "ProblemDetails",
    "ProblemDetailsException",
    "raise_for_error",
    "register_exception_handlers",
]
