"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from ledgerport.api.routes import health, imports
from ledgerport.core.config import AppSettings
from ledgerport.ingest.orchestrator import ImportOrchestrator
from ledgerport.persistence import create_persistence


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        resolved = settings or AppSettings()
        logging.basicConfig(
            level=resolved.log_level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        persistence = create_persistence(resolved)
        app.state.settings = resolved
        app.state.persistence = persistence
        app.state.orchestrator = ImportOrchestrator(
            directory=persistence.directory, sink=persistence.sink, config=resolved.imports,
        )
        yield

    app = FastAPI(
        title="LedgerPort Import Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(health.router)
    app.include_router(imports.router, prefix="/imports")
    return app
