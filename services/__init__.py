"""Service modules for the patient registry."""

__all__ = ["patient_registry"]
