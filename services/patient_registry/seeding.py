"""Synthetic patient data for demos and local fixtures, generated with Faker.

Birth dates produced here are encoded as ``YYYYMMDD`` integers so they stay
within the unsigned range of ``birthDate`` for people born before 1970.
"""

from __future__ import annotations

import random
from datetime import date
from typing import Optional

from faker import Faker

from shared.models.patient import Patient, PatientPayload, PatientStatus

from .service import PatientRegistryService


def encode_birth_date(value: date) -> int:
    """Return ``value`` as a ``YYYYMMDD`` integer."""

    return value.year * 10_000 + value.month * 100 + value.day


def decode_birth_date(value: int) -> date:
    """Inverse of :func:`encode_birth_date`."""

    return date(value // 10_000, (value // 100) % 100, value % 100)


def generate_patient_payloads(
    count: int,
    *,
    seed: Optional[int] = None,
    locale: str = "en_US",
    minimum_age: int = 0,
    maximum_age: int = 95,
) -> list[PatientPayload]:
    """Return ``count`` synthetic payloads; the same ``seed`` yields the same list."""

    faker = Faker(locale)
    if seed is not None:
        faker.seed_instance(seed)

    payloads: list[PatientPayload] = []
    for _ in range(max(count, 0)):
        dob = faker.date_of_birth(minimum_age=minimum_age, maximum_age=maximum_age)
        payloads.append(
            PatientPayload(
                first_name=faker.first_name(),
                last_name=faker.last_name(),
                birth_date=encode_birth_date(dob),
            )
        )
    return payloads


def seed_registry(
    service: PatientRegistryService,
    count: int,
    *,
    seed: Optional[int] = None,
    inactive_ratio: float = 0.0,
) -> list[Patient]:
    """Add ``count`` synthetic patients to ``service`` and return them.

    Roughly ``inactive_ratio`` of the new patients are switched to inactive
    through the status update path.
    """

    rng = random.Random(seed)
    created: list[Patient] = []
    for payload in generate_patient_payloads(count, seed=seed):
        patient = service.add_patient(payload.first_name, payload.last_name, payload.birth_date).unwrap()
        if inactive_ratio > 0 and rng.random() < inactive_ratio:
            service.update_patient_status(patient.id, PatientStatus.INACTIVE.value).unwrap()
            patient = patient.model_copy(update={"status": PatientStatus.INACTIVE})
        created.append(patient)
    return created


__all__ = [
    "decode_birth_date",
    "encode_birth_date",
    "generate_patient_payloads",
    "seed_registry",
]
