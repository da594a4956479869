"""Persistence backends for patient records."""
