from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smartlearn.api.enrollments import router as enrollments_router
from smartlearn.api.health import router as health_router
from smartlearn.api.metrics_endpoint import router as metrics_router
from smartlearn.api.progress import router as progress_router
from smartlearn.api.quiz_results import router as quiz_results_router
from smartlearn.api.ratings import router as ratings_router
from smartlearn.core.config import SETTINGS, Settings
from smartlearn.core.logging import setup_logging
from smartlearn.middleware.metrics import MetricsMiddleware
from smartlearn.middleware.request_context import RequestContextMiddleware
from smartlearn.repos.collection_store import CollectionStore
from smartlearn.repos.store_factory import create_store
from smartlearn.services.enrollment_ledger import EnrollmentLedger
from smartlearn.services.progress_tracker import ProgressTracker
from smartlearn.services.quiz_results import QuizResultsService
from smartlearn.services.rating_service import RatingService
from smartlearn.services.seeder import DatabaseSeeder

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


def create_app(
    store: CollectionStore | None = None, settings: Settings = SETTINGS
) -> FastAPI:
    """Compose the app around one collection store.

    The store is constructed here but opened by the lifespan, so requests
    that arrive before startup completes (or after shutdown began) see
    NotInitialized and get a 503 instead of touching a half-open backend.
    """
    if store is None:
        store = create_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        await store.init()
        try:
            if settings.seed_on_startup:
                await DatabaseSeeder(store).check_and_seed()
            yield
        finally:
            await store.close()

    app = FastAPI(
        title="smartlearn-store",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_dev else None,
        redoc_url="/redoc" if settings.is_dev else None,
    )

    app.state.store = store
    app.state.ledger = EnrollmentLedger(store)
    app.state.tracker = ProgressTracker(store)
    app.state.ratings = RatingService(store)
    app.state.quiz_results = QuizResultsService(store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Last-added runs first: RequestContext → Metrics → CORS → route.
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestContextMiddleware)

    app.include_router(metrics_router)
    app.include_router(health_router)
    app.include_router(enrollments_router)
    app.include_router(progress_router)
    app.include_router(ratings_router)
    app.include_router(quiz_results_router)

    logger.info(
        "smartlearn-store configured  env=%s backend=%s port=%d docs=%s",
        settings.app_env,
        store.backend,
        settings.port,
        "on" if settings.is_dev else "off",
        extra={"backend": store.backend},
    )
    return app


app = create_app()
