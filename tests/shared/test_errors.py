from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from shared.http.errors import (
    PatientNotFoundError,
    PatientStorageError,
    PatientValidationError,
    ProblemDetailsException,
    raise_for_error,
)
from shared.models.result import Err, ErrorKind, Ok


@pytest.mark.parametrize(
    ("kind", "exc_type", "status_code"),
    [
        (ErrorKind.VALIDATION, PatientValidationError, 422),
        (ErrorKind.NOT_FOUND, PatientNotFoundError, 404),
        (ErrorKind.STORAGE, PatientStorageError, 503),
    ],
)
def test_raise_for_error_maps_kinds(
    kind: ErrorKind, exc_type: type[ProblemDetailsException], status_code: int
) -> None:
    with pytest.raises(exc_type) as excinfo:
        raise_for_error(Err(kind, "boom"), patient_id="p-1")

    problem = excinfo.value.to_problem_details(instance="http://test/patients/p-1")
    assert problem.status == status_code
    assert problem.detail == "boom"
    assert problem.instance == "http://test/patients/p-1"


def test_not_found_problem_carries_patient_id() -> None:
    problem = PatientNotFoundError("p-9").to_problem_details()

    assert problem.detail == "Patient 'p-9' was not found."
    assert problem.model_dump()["patientId"] == "p-9"


def test_result_unwrap() -> None:
    assert Ok(3).unwrap() == 3
    assert Ok(3).is_ok
    assert not Err(ErrorKind.NOT_FOUND, "gone").is_ok
    with pytest.raises(ValueError):
        Err(ErrorKind.NOT_FOUND, "gone").unwrap()
