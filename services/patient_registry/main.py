"""Entrypoint for running the patient registry with uvicorn."""

from fastapi import FastAPI

from shared.config.settings import get_settings

from .app import app


def get_app() -> FastAPI:
    """Return the FastAPI app instance."""
    return app


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "services.patient_registry.main:app",
        host=settings.host,
        port=settings.port,
    )
