"""Shared models, configuration, HTTP and observability helpers."""
