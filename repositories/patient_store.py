"""Key-value persistence backends holding serialized patient records."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Iterable, Protocol

from pydantic import ValidationError

from shared.models.patient import Patient

DEFAULT_MAX_KEY_SIZE = 44
DEFAULT_MAX_VALUE_SIZE = 1024


class StorageError(RuntimeError):
    """Raised when the backing store cannot complete an operation."""


class CapacityExceededError(StorageError):
    """Raised when a key or serialized record exceeds the configured limits."""

    def __init__(self, what: str, size: int, limit: int) -> None:
        super().__init__(f"{what} is {size} bytes, exceeding the {limit} byte limit")
        self.size = size
        self.limit = limit


class PatientStore(Protocol):
    """Map from patient identifier to record used by the registry service."""

    def get(self, key: str) -> Patient | None:
        """Return the record stored under ``key``, if any."""

    def insert(self, key: str, record: Patient) -> None:
        """Store ``record`` under ``key``, replacing any previous value."""

    def remove(self, key: str) -> Patient | None:
        """Delete ``key`` and return the record it held, if any."""

    def values(self) -> list[Patient]:
        """Return every stored record ordered by key."""


class InMemoryPatientStore:
    """Process-local store keeping records serialized as JSON text.

    Records are serialized on insert and parsed on every read, so callers
    always receive independent copies of the stored state.
    """

    def __init__(
        self,
        *,
        max_key_size: int = DEFAULT_MAX_KEY_SIZE,
        max_value_size: int = DEFAULT_MAX_VALUE_SIZE,
    ) -> None:
        self._records: dict[str, str] = {}
        self.max_key_size = max_key_size
        self.max_value_size = max_value_size

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def get(self, key: str) -> Patient | None:
        raw = self._records.get(key)
        if raw is None:
            return None
        return self._decode(key, raw)

    def insert(self, key: str, record: Patient) -> None:
        self._check_key(key)
        self._records[key] = self._encode(record)

    def remove(self, key: str) -> Patient | None:
        raw = self._records.pop(key, None)
        if raw is None:
            return None
        return self._decode(key, raw)

    def values(self) -> list[Patient]:
        return [self._decode(key, self._records[key]) for key in sorted(self._records)]

    def _check_key(self, key: str) -> None:
        size = len(key.encode("utf-8"))
        if size > self.max_key_size:
            raise CapacityExceededError("Key", size, self.max_key_size)

    def _encode(self, record: Patient) -> str:
        try:
            raw = record.to_json()
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Unable to serialize patient '{record.id}': {exc}") from exc
        size = len(raw.encode("utf-8"))
        if size > self.max_value_size:
            raise CapacityExceededError("Serialized patient", size, self.max_value_size)
        return raw

    @staticmethod
    def _decode(key: str, raw: str) -> Patient:
        try:
            return Patient.from_json(raw)
        except ValidationError as exc:
            raise StorageError(f"Stored record for '{key}' is corrupt: {exc}") from exc


class JsonFilePatientStore(InMemoryPatientStore):
    """Store persisted to a JSON file so records survive process restarts.

    The whole map is rewritten through a temporary file and ``os.replace``
    after every mutation. A failed write rolls the in-memory map back.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        max_key_size: int = DEFAULT_MAX_KEY_SIZE,
        max_value_size: int = DEFAULT_MAX_VALUE_SIZE,
        encoding: str = "utf-8",
    ) -> None:
        super().__init__(max_key_size=max_key_size, max_value_size=max_value_size)
        self._path = Path(path)
        self._encoding = encoding
        self._load()

    @property
    def path(self) -> Path:
        """Return the file backing this store."""

        return self._path

    def insert(self, key: str, record: Patient) -> None:
        previous = self._records.get(key)
        super().insert(key, record)
        try:
            self._flush()
        except StorageError:
            self._restore(key, previous)
            raise

    def remove(self, key: str) -> Patient | None:
        previous = self._records.get(key)
        removed = super().remove(key)
        if previous is None:
            return removed
        try:
            self._flush()
        except StorageError:
            self._restore(key, previous)
            raise
        return removed

    def _restore(self, key: str, previous: str | None) -> None:
        if previous is None:
            self._records.pop(key, None)
        else:
            self._records[key] = previous

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            payload = json.loads(self._path.read_text(encoding=self._encoding) or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Unable to read patient store {self._path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise StorageError(f"{self._path}: top-level JSON payload must be an object")

        for key, value in self._iter_entries(payload):
            self._records[key] = json.dumps(value, separators=(",", ":"))
            # Corrupt entries fail construction.
            self._decode(key, self._records[key])

    def _iter_entries(self, payload: dict) -> Iterable[tuple[str, dict]]:
        for key, value in payload.items():
            if not isinstance(value, dict):
                raise StorageError(f"{self._path}: entry '{key}' must be an object")
            if value.get("id") != str(key):
                raise StorageError(
                    f"{self._path}: entry '{key}' holds patient id {value.get('id')!r}"
                )
            yield str(key), value

    def _flush(self) -> None:
        document = {key: json.loads(raw) for key, raw in sorted(self._records.items())}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", dir=self._path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding=self._encoding) as handle:
                    json.dump(document, handle, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Unable to write patient store {self._path}: {exc}") from exc


__all__ = [
    "CapacityExceededError",
    "DEFAULT_MAX_KEY_SIZE",
    "DEFAULT_MAX_VALUE_SIZE",
    "InMemoryPatientStore",
    "JsonFilePatientStore",
    "PatientStore",
    "StorageError",
]
