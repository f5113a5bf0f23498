import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from localcooks import __version__
from localcooks.adapters.sqlite.migrator import MigrationError, SQLiteMigrator
from localcooks.adapters.sqlite_db import SQLiteSubscriptionStore
from localcooks.api.deps import Settings, get_settings
from localcooks.api.errors import install_error_handlers
from localcooks.api.routes import public_contact, public_newsletter
from localcooks.rules.loader import load_rules
from localcooks.shell.http.health import (
    DatabaseCheck,
    HealthCheckRegistry,
    ProcessCheck,
    StartupTracker,
    create_health_router,
)

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the API application.

    Rules are loaded here so a bad rules file stops the process before it
    binds a port.
    """
    settings = settings or get_settings()
    rules = load_rules(settings.rules_path)
    logger.info("Rules loaded from %s", settings.rules_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        if settings.auto_migrate:
            os.makedirs(os.path.dirname(settings.db_path) or ".", exist_ok=True)
            try:
                SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()
            except MigrationError:
                logger.critical("Database migration failed at startup", exc_info=True)
                raise
        StartupTracker.mark_started()
        yield

    app = FastAPI(
        title="LocalCooks API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    install_error_handlers(app)

    # --- Routers ---
    app.include_router(public_newsletter.router, prefix="/api", tags=["Newsletter"])
    app.include_router(public_contact.router, prefix="/api", tags=["Contact"])

    store = SQLiteSubscriptionStore(settings.db_path, timeout=rules.storage.busy_timeout_seconds)
    registry = HealthCheckRegistry()
    registry.register(ProcessCheck())
    registry.register(DatabaseCheck(store.ping))
    app.include_router(create_health_router(registry, version=__version__))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=rules.cors.allow_origins,
        allow_methods=rules.cors.allow_methods,
        allow_headers=rules.cors.allow_headers,
        max_age=rules.cors.max_age_seconds,
    )
    return app


app = create_app()
