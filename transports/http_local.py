"""HTTP transport for local development (FastAPI + uvicorn).

Serves the application named by ``CLOUDAPP_APPLICATION`` (``module:attribute``).
"""

from __future__ import annotations

import os

import uvicorn

from cloudapp.exceptions import ConfigurationError
from cloudapp.hosting import load_application
from cloudapp.settings import get_settings


def create_app():
    settings = get_settings()
    if not settings.application:
        raise ConfigurationError("Set CLOUDAPP_APPLICATION to 'module:attribute' to serve an application.")
    return load_application(settings.application).create_asgi_app()


if __name__ == "__main__":  # pragma: no cover - manual run helper
    settings = get_settings()
    reload = os.getenv("DEV_RELOAD", "false").lower() in {"1", "true", "yes"}
    uvicorn.run(
        "transports.http_local:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=reload,
    )
