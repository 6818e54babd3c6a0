"""Request-scoped access to the services composed in main.create_app().

The store and the services built on it live on ``app.state``; handlers
receive them through these dependencies instead of importing module
globals, so tests can compose an app around any store they like.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from smartlearn.repos.collection_store import (
    CollectionStore,
    DuplicateKey,
    NotInitialized,
    StoreUnavailable,
)
from smartlearn.services.enrollment_ledger import (
    CourseNotFoundError,
    EnrollmentLedger,
    EnrollmentNotFound,
)
from smartlearn.services.progress_tracker import ProgressTracker
from smartlearn.services.quiz_results import QuizResultsService
from smartlearn.services.rating_service import RatingNotFound, RatingService

logger = logging.getLogger(__name__)


def get_store(request: Request) -> CollectionStore:
    return request.app.state.store


def get_ledger(request: Request) -> EnrollmentLedger:
    return request.app.state.ledger


def get_tracker(request: Request) -> ProgressTracker:
    return request.app.state.tracker


def get_ratings(request: Request) -> RatingService:
    return request.app.state.ratings


def get_quiz_results(request: Request) -> QuizResultsService:
    return request.app.state.quiz_results


def http_error_for(exc: Exception) -> HTTPException:
    """Translate a domain or store failure into an HTTP error.

    Domain errors wrap the store error that caused them, so the cause is
    inspected too: an EnrollmentFailed caused by NotInitialized is a 503,
    not a 500.
    """
    causes = (exc, exc.__cause__)

    if isinstance(exc, (EnrollmentNotFound, RatingNotFound, CourseNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        )
    if any(isinstance(c, DuplicateKey) for c in causes):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if any(isinstance(c, (NotInitialized, StoreUnavailable)) for c in causes):
        logger.error("Store unavailable while handling request: %s", exc)
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="store unavailable",
        )

    logger.error("Unhandled domain failure: %s", exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
    )
