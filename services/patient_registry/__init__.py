"""Patient registry service: CRUD over a durable map of patient records."""

from .service import MonotonicClock, PatientRegistryService, generate_patient_id

__all__ = ["MonotonicClock", "PatientRegistryService", "generate_patient_id"]
