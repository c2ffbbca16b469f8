"""Application factory for the RenovaFlow API.

``create_app`` wires configuration, the database store, the SharePoint
integration, routers and error handling into one FastAPI instance. Nothing is
created at import time; the ASGI entry point in :mod:`renovaflow.main` calls
the factory once per process.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator

from .core.config import AppSettings, get_settings
from .core.errors import register_exception_handlers
from .crud.users import ensure_admin
from .db.session import Store
from .middlewares import RequestIdMiddleware
from .routers import api_auth, api_documents, api_files, api_items, api_projects, api_users
from .services.backup import BackupScheduler
from .services.dispatch import DocumentDispatcher
from .services.documents import GraphDocumentStore

logger = logging.getLogger(__name__)


def _seed_admin(store: Store, settings: AppSettings) -> None:
    db = store.session()
    try:
        ensure_admin(
            db,
            email=settings.ADMIN_EMAIL,
            password=settings.ADMIN_PASSWORD,
            name=settings.ADMIN_NAME,
            new_id=store.id_factory,
        )
    finally:
        db.close()


def create_app(
    settings: Optional[AppSettings] = None,
    *,
    store: Optional[Store] = None,
    documents: Optional[GraphDocumentStore] = None,
) -> FastAPI:
    settings = settings or get_settings()
    store = store or Store(settings.database_url)
    store.create_all()
    _seed_admin(store, settings)

    documents = documents or GraphDocumentStore(settings)
    dispatcher = DocumentDispatcher(documents, settings.sqlite_path)
    backups = BackupScheduler(
        dispatcher,
        interval=settings.BACKUP_INTERVAL_SECONDS,
        initial_delay=settings.BACKUP_INITIAL_DELAY_SECONDS,
    )

    app = FastAPI(title=settings.APP_NAME)
    app.state.settings = settings
    app.state.store = store
    app.state.documents = documents
    app.state.dispatcher = dispatcher
    app.state.backups = backups

    app.add_middleware(RequestIdMiddleware)
    if settings.ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.ALLOWED_ORIGINS,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    register_exception_handlers(app)

    for module in (api_auth, api_projects, api_items, api_files, api_users, api_documents):
        app.include_router(module.router)

    upload_dir = settings.upload_dir
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, bool]:
        return {"ok": True}

    # One registry per app instance.
    Instrumentator(registry=CollectorRegistry()).instrument(app).expose(app, include_in_schema=False)

    @app.on_event("startup")
    async def _start_backups() -> None:
        if settings.BACKUP_ENABLED and documents.configured and settings.sqlite_path is not None:
            backups.start()
            logger.info("backup.scheduled", extra={"extra_data": {"interval": backups.interval}})

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await backups.stop()
        store.dispose()

    return app


__all__ = ["create_app"]
