"""Application factory and top-level wiring for Stockroom.

Configuration, logging, the database, the API routers and error handling are
brought together here. ``create_app`` builds a fresh application so tests can
construct one with their own dependency overrides; ``app`` is the instance
served by uvicorn.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import (
    InventoryError,
    http_exception_handler,
    inventory_exception_handler,
    validation_exception_handler,
)
from .core.logging import configure_logging
from .db.seed import seed_reference_data
from .db.session import Base, SessionLocal, engine
from .middlewares import RequestIdMiddleware
from .services.storage import LOCAL_URL_PREFIX

# Importing the models registers them with the metadata before create_all.
from . import models as _models  # noqa: F401
from .routers import (
    api_items,
    api_loans,
    api_locations,
    api_movements,
    api_notifications,
    api_reference,
    api_reports,
)

ROUTERS = (
    api_reference,
    api_locations,
    api_items,
    api_movements,
    api_loans,
    api_notifications,
    api_reports,
)


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME)

    app.add_middleware(RequestIdMiddleware)
    if settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(InventoryError, inventory_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    for module in ROUTERS:
        app.include_router(module.router)

    if settings.BLOB_BACKEND == "local":
        settings.blob_dir.mkdir(parents=True, exist_ok=True)
        app.mount(LOCAL_URL_PREFIX, StaticFiles(directory=str(settings.blob_dir)), name="files")

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.on_event("startup")
    async def _startup() -> None:
        Base.metadata.create_all(bind=engine)
        if settings.SEED_DEMO_DATA:
            with SessionLocal() as db:
                seed_reference_data(db)

    Instrumentator().instrument(app).expose(app)
    return app


app = create_app()

__all__ = ["app", "create_app"]
