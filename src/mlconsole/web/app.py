"""FastAPI application for the ML admin console.

Serves the dataset and training wizards plus read-mostly catalogue
endpoints over the training backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from mlconsole.api.source import DataSource, create_data_source
from mlconsole.core.config import Settings
from mlconsole.web.catalog_router import router as catalog_router
from mlconsole.web.wizard_router import router as wizard_router
from mlconsole.wizard.hyperparameters import HyperparameterCatalogue, load_catalogue
from mlconsole.wizard.store import WizardStore

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str = "0.1.0"
    data_source: str
    active_wizards: int


# --- Application factory ---


def create_app(
    settings: Settings | None = None,
    data_source: DataSource | None = None,
    catalogue: HyperparameterCatalogue | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances
    with fake dependencies.

    Args:
        settings: Application settings. Defaults to Settings().
        data_source: Optional pre-built data source. Defaults to the one
            selected by ``settings.api``.
        catalogue: Optional hyperparameter catalogue. Defaults to the one
            at ``settings.wizard.hyperparameters_path``.

    Returns:
        A configured FastAPI instance.
    """
    if settings is None:
        settings = Settings()

    logging.getLogger("mlconsole").setLevel(settings.log_level.upper())

    if data_source is None:
        data_source = create_data_source(settings.api)
    if catalogue is None:
        catalogue = load_catalogue(settings.wizard.hyperparameters_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Starting ML console (%s, %s data source)",
            settings.environment,
            type(data_source).__name__,
        )
        yield
        await data_source.close()

    app = FastAPI(
        title="ML Console",
        description="Admin console for ASR dataset curation and training runs",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Store on app state for access in route handlers
    app.state.settings = settings
    app.state.data_source = data_source
    app.state.catalogue = catalogue
    app.state.wizard_store = WizardStore(max_sessions=settings.wizard.max_sessions)

    app.include_router(wizard_router)
    app.include_router(catalog_router)

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service="mlconsole",
            data_source=type(data_source).__name__,
            active_wizards=app.state.wizard_store.count,
        )

    return app
