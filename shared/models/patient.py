"""Patient record models shared by the registry service, store and CLI."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

U64_MAX = 2**64 - 1


def to_camel(value: str) -> str:
    """Convert ``snake_case`` ``value`` into ``camelCase`` for JSON aliases."""

    components = value.split("_")
    if not components:
        return value
    first, *rest = components
    return first + "".join(token.capitalize() for token in rest)


class CamelModel(BaseModel):
    """Base model applying camelCase aliases and ignoring unknown fields."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class PatientStatus(str, Enum):
    """Closed set of values accepted for :attr:`Patient.status`."""

    ACTIVE = "active"
    INACTIVE = "inactive"

    @classmethod
    def parse(cls, value: Any) -> Optional["PatientStatus"]:
        """Return the member matching ``value`` exactly, or ``None``."""

        if isinstance(value, cls):
            return value
        for member in cls:
            if value == member.value:
                return member
        return None


class PatientPayload(CamelModel):
    """Fields supplied by callers when adding or updating a patient."""

    first_name: str = Field(description="Patient given name")
    last_name: str = Field(description="Patient family name")
    birth_date: int = Field(
        ge=0, le=U64_MAX, description="Birth date as an unsigned 64-bit timestamp"
    )


class Patient(CamelModel):
    """A stored patient record."""

    id: str = Field(description="Generated unique identifier")
    first_name: str
    last_name: str
    birth_date: int = Field(ge=0, le=U64_MAX)
    status: PatientStatus = Field(default=PatientStatus.ACTIVE)
    created_at: int = Field(
        ge=0, le=U64_MAX, description="Creation time in nanoseconds since the epoch"
    )
    updated_at: Optional[int] = Field(
        default=None,
        ge=0,
        le=U64_MAX,
        description="Time of the last full update; absent until the first update",
    )

    def to_json(self) -> str:
        """Serialize the record using its camelCase field names."""

        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, payload: str | bytes) -> "Patient":
        """Parse a record previously produced by :meth:`to_json`."""

        return cls.model_validate_json(payload)


class PatientStatusUpdate(CamelModel):
    """Request and response body for the status-only update path."""

    status: str


__all__ = [
    "CamelModel",
    "Patient",
    "PatientPayload",
    "PatientStatus",
    "PatientStatusUpdate",
    "U64_MAX",
    "to_camel",
]
