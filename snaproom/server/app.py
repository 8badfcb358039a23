"""
SnapRoom FastAPI entrypoint.

Provides a ``create_app`` factory that configures logging, CORS, error handlers
and loads every API router found under ``snaproom.server.modules``.
"""

from __future__ import annotations

import importlib
import logging
import os
import pkgutil
from pathlib import Path
from typing import Iterable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from snaproom import __version__
from snaproom.config import ServerSettings, load_settings
from snaproom.logging_config import init_logging
from snaproom.server.core.coordinator import get_hub
from snaproom.server.core.errors import register_exception_handlers
from snaproom.server.core.middleware_ex import RequestContextMiddleware

LOGGER = logging.getLogger(__name__)
APP_VERSION = os.getenv("SNAPROOM_VERSION", __version__)
MODULE_PACKAGE = "snaproom.server.modules"
MODULE_PATH = Path(__file__).resolve().parent / "modules"


def _iter_module_names(
    base_path: Path = MODULE_PATH, package: str = MODULE_PACKAGE
) -> Iterable[str]:
    for module_info in pkgutil.iter_modules([str(base_path)], f"{package}."):
        if not module_info.ispkg:
            yield module_info.name


def _include_routers(app: FastAPI) -> list[str]:
    registry: list[str] = []
    for module_name in sorted(_iter_module_names()):
        module = importlib.import_module(module_name)
        router = getattr(module, "router", None)
        if router is None or not getattr(router, "routes", None):
            continue
        app.include_router(router)
        registry.append(module_name)
        LOGGER.debug(
            "Included router: %s (prefix=%s)",
            module_name,
            getattr(router, "prefix", ""),
        )
    return registry


def create_app(settings: Optional[ServerSettings] = None) -> FastAPI:
    """Application factory used by both CLI launches and ASGI servers."""
    settings = settings or load_settings()
    log_path = init_logging(settings.log_dir, level=settings.log_level)
    LOGGER.info(
        "Server logging configured",
        extra={"log_path": str(log_path), "log_level": settings.log_level},
    )

    app = FastAPI(title="SnapRoom", version=APP_VERSION)
    app.state.version = APP_VERSION
    app.state.settings = settings
    app.state.log_path = log_path
    app.state.hub = get_hub()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    LOGGER.info("CORS enabled", extra={"origins": list(settings.cors_origins)})

    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    app.state.router_catalog = _include_routers(app)

    @app.get("/health", tags=["System"], summary="Simple health probe")
    async def core_health():
        return {"status": "ok"}

    @app.get("/healthz", include_in_schema=False)
    async def _healthz():
        return {"ok": True}

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        hub = app.state.hub
        LOGGER.info("Shutting down coordinator", extra={"stats": hub.stats()})
        hub.shutdown()

    LOGGER.info(
        "FastAPI application ready",
        extra={
            "routes": len(app.routes),
            "routers_loaded": len(app.state.router_catalog),
            "version": APP_VERSION,
        },
    )
    return app


if os.getenv("SNAPROOM_SKIP_APP_AUTOLOAD", "").strip().lower() in {
    "1",
    "true",
    "yes",
    "on",
}:
    app: FastAPI | None = None
else:
    app = create_app()
