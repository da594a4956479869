"""Observability helpers for registry entrypoints."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from typing import Any, Iterator

from shared.observability import request_context

# Record fields that carry no personal data.
SAFE_PATIENT_FIELDS = frozenset(
    {"id", "patient_id", "patientId", "status", "createdAt", "updatedAt", "created_at", "updated_at"}
)


@contextmanager
def cli_request_context(*, request_id: str | None = None, **extra: Any) -> Iterator[str]:
    """Bind a request identifier for command-line invocations."""

    cli_context = {"channel": "cli"}
    cli_context.update(extra)

    with request_context(request_id=request_id, **cli_context) as bound_request_id:
        yield bound_request_id


def scrub_for_logging(
    payload: Any,
    *,
    allow_keys: Iterable[str] | None = SAFE_PATIENT_FIELDS,
    max_depth: int = 3,
    max_items: int = 5,
) -> Any:
    """Return a copy of ``payload`` with personal data replaced by placeholders.

    Strings are replaced with ``"[redacted]"`` unless their key is listed in
    ``allow_keys``. Mappings, dataclasses and pydantic models are traversed up
    to ``max_depth`` levels; sequences are cut to ``max_items`` entries.
    """

    allowed = set(allow_keys or ())

    def _scrub(value: Any, depth: int) -> Any:
        if depth <= 0:
            return "[scrubbed]"

        if isinstance(value, Mapping):
            sanitized: dict[str, Any] = {}
            for key, item in value.items():
                key_str = str(key)
                if key_str in allowed:
                    sanitized[key_str] = item
                else:
                    sanitized[key_str] = _scrub(item, depth - 1)
            return sanitized

        if is_dataclass(value) and not isinstance(value, type):
            return _scrub(asdict(value), depth)

        if hasattr(value, "model_dump"):
            mapping = value.model_dump(mode="json", by_alias=True)
            if isinstance(mapping, Mapping):
                return _scrub(mapping, depth)

        if isinstance(value, str):
            return value if not value else "[redacted]"

        if isinstance(value, bytes):
            return "[bytes]"

        if isinstance(value, Sequence):
            sample = [_scrub(item, depth - 1) for item in list(value)[:max_items]]
            if isinstance(value, tuple):
                return tuple(sample)
            return sample

        if isinstance(value, (int, float, bool)) or value is None:
            return value

        return str(value)

    return _scrub(payload, max_depth)


__all__ = ["SAFE_PATIENT_FIELDS", "cli_request_context", "scrub_for_logging"]
