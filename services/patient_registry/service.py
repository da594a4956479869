"""Patient registry operations over an injected key-value store.

Every public method returns a :class:`~shared.models.result.Result` instead of
raising. Validation and lookup failures never touch the store, and storage
faults raised by the backend are reported as ``ErrorKind.STORAGE``.
"""

from __future__ import annotations

import time
import uuid
from typing import Callable

from repositories.patient_store import PatientStore, StorageError
from shared.models.patient import U64_MAX, Patient, PatientStatus
from shared.models.result import Err, ErrorKind, Ok, Result
from shared.observability.logger import get_logger

Clock = Callable[[], int]
IdGenerator = Callable[[], str]

logger = get_logger("services.patient_registry")


class MonotonicClock:
    """Wall-clock nanoseconds that never go backwards between calls."""

    def __init__(self, source: Clock = time.time_ns) -> None:
        self._source = source
        self._last = 0

    def __call__(self) -> int:
        now = max(self._source(), self._last)
        self._last = now
        return now


def generate_patient_id() -> str:
    """Return a fresh random UUID4 string."""

    return str(uuid.uuid4())


def is_valid_name(first_name: str, last_name: str) -> bool:
    return bool(first_name.strip()) and bool(last_name.strip())


def is_valid_birth_date(birth_date: int) -> bool:
    return isinstance(birth_date, int) and not isinstance(birth_date, bool) and 0 <= birth_date <= U64_MAX


def _invalid_id(patient_id: str) -> bool:
    return not isinstance(patient_id, str) or not patient_id.strip()


class PatientRegistryService:
    """Create, read, update and delete patient records held in ``store``."""

    def __init__(
        self,
        store: PatientStore,
        *,
        clock: Clock | None = None,
        id_generator: IdGenerator = generate_patient_id,
    ) -> None:
        self.store = store
        self._clock = clock or MonotonicClock()
        self._generate_id = id_generator

    def add_patient(self, first_name: str, last_name: str, birth_date: int) -> Result[Patient]:
        """Store a new active patient and return it."""

        if not is_valid_name(first_name, last_name):
            return self._reject(
                "add",
                ErrorKind.VALIDATION,
                "Couldn't add Patient. First or Last name is invalid",
            )
        if not is_valid_birth_date(birth_date):
            return self._reject("add", ErrorKind.VALIDATION, "Couldn't add Patient. Birth date is invalid")

        patient = Patient(
            id=self._generate_id(),
            first_name=first_name,
            last_name=last_name,
            birth_date=birth_date,
            status=PatientStatus.ACTIVE,
            created_at=self._clock(),
            updated_at=None,
        )
        try:
            self.store.insert(patient.id, patient)
        except StorageError as exc:
            return self._fault("add", exc, "Failed to add patient")

        logger.info("patient_added", patient_id=patient.id)
        return Ok(patient)

    def update_patient(
        self, patient_id: str, first_name: str, last_name: str, birth_date: int
    ) -> Result[Patient]:
        """Replace the name and birth date of an existing patient.

        ``status``, ``id`` and ``createdAt`` are preserved; ``updatedAt`` is
        set to the current time.
        """

        if _invalid_id(patient_id):
            return self._reject("update", ErrorKind.VALIDATION, "Invalid patient ID")
        if not is_valid_name(first_name, last_name):
            return self._reject(
                "update",
                ErrorKind.VALIDATION,
                "Couldn't update Patient. First or Last name is invalid",
                patient_id=patient_id,
            )
        if not is_valid_birth_date(birth_date):
            return self._reject(
                "update",
                ErrorKind.VALIDATION,
                "Couldn't update Patient. Birth date is invalid",
                patient_id=patient_id,
            )

        try:
            existing = self.store.get(patient_id)
            if existing is None:
                return self._not_found("update", "update", patient_id)

            updated = existing.model_copy(
                update={
                    "first_name": first_name,
                    "last_name": last_name,
                    "birth_date": birth_date,
                    "updated_at": max(self._clock(), existing.created_at),
                }
            )
            self.store.insert(existing.id, updated)
        except StorageError as exc:
            return self._fault("update", exc, "Failed to update patient", patient_id=patient_id)

        logger.info("patient_updated", patient_id=patient_id)
        return Ok(updated)

    def delete_patient(self, patient_id: str) -> Result[Patient]:
        """Remove a patient and return the record that was deleted."""

        if _invalid_id(patient_id):
            return self._reject("delete", ErrorKind.VALIDATION, "Invalid patient ID")

        try:
            removed = self.store.remove(patient_id)
        except StorageError as exc:
            return self._fault("delete", exc, "Failed to delete patient", patient_id=patient_id)
        if removed is None:
            return self._not_found("delete", "delete", patient_id)

        logger.info("patient_deleted", patient_id=patient_id)
        return Ok(removed)

    def update_patient_status(self, patient_id: str, status: str) -> Result[str]:
        """Set only the status of an existing patient; ``updatedAt`` is untouched."""

        if _invalid_id(patient_id):
            return self._reject("update_status", ErrorKind.VALIDATION, "Invalid patient ID")

        try:
            existing = self.store.get(patient_id)
            if existing is None:
                return self._not_found("update_status", "update", patient_id)

            new_status = PatientStatus.parse(status)
            if new_status is None:
                return self._reject(
                    "update_status",
                    ErrorKind.VALIDATION,
                    f"Couldn't update Patient with id={patient_id}. Status is invalid.",
                    patient_id=patient_id,
                )

            self.store.insert(existing.id, existing.model_copy(update={"status": new_status}))
        except StorageError as exc:
            return self._fault(
                "update_status", exc, "Failed to update patient status", patient_id=patient_id
            )

        logger.info("patient_status_updated", patient_id=patient_id, status=new_status.value)
        return Ok(new_status.value)

    def get_patient(self, patient_id: str) -> Result[Patient]:
        if _invalid_id(patient_id):
            return self._reject("get", ErrorKind.VALIDATION, "Invalid patient ID")

        try:
            patient = self.store.get(patient_id)
        except StorageError as exc:
            return self._fault("get", exc, "Failed to get patient", patient_id=patient_id)
        if patient is None:
            return self._not_found("get", "get", patient_id)
        return Ok(patient)

    def get_patients(self) -> Result[list[Patient]]:
        try:
            return Ok(self.store.values())
        except StorageError as exc:
            return self._fault("list", exc, "Failed to get patients")

    def get_patients_by_status(self, status: str) -> Result[list[Patient]]:
        """Return the stored patients whose status equals ``status``."""

        wanted = PatientStatus.parse(status)
        if wanted is None:
            return self._reject(
                "list_by_status", ErrorKind.VALIDATION, "Couldn't get Patients. Status is invalid"
            )

        try:
            patients = self.store.values()
        except StorageError as exc:
            return self._fault("list_by_status", exc, "Failed to get patients by status")
        return Ok([patient for patient in patients if patient.status == wanted])

    def _not_found(self, operation: str, verb: str, patient_id: str) -> Err:
        return self._reject(
            operation,
            ErrorKind.NOT_FOUND,
            f"Couldn't {verb} Patient with id={patient_id}. Patient not found.",
            patient_id=patient_id,
        )

    @staticmethod
    def _reject(operation: str, kind: ErrorKind, message: str, **context: str) -> Err:
        logger.info("patient_operation_rejected", operation=operation, kind=kind.value, **context)
        return Err(kind, message)

    @staticmethod
    def _fault(operation: str, exc: StorageError, prefix: str, **context: str) -> Err:
        logger.bind(operation=operation, **context).exception(
            "patient_storage_fault", error=str(exc)
        )
        return Err(ErrorKind.STORAGE, f"{prefix}: {exc}")


__all__ = [
    "Clock",
    "IdGenerator",
    "MonotonicClock",
    "PatientRegistryService",
    "generate_patient_id",
    "is_valid_birth_date",
    "is_valid_name",
]
