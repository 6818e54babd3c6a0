"""Health and readiness endpoints.

  /health (liveness):
    "Is this process alive?"  Always 200 while the process can answer.
    The body reports the store backend and whether it is open, so an
    operator can tell "alive but not connected" apart from "fine".

  /ready (readiness):
    "Can this instance handle traffic right now?"
    503 until the collection store has been opened by the lifespan, and
    again after it has been closed on shutdown.  A load balancer stops
    routing here without restarting the container.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from smartlearn.api.dependencies import get_store
from smartlearn.repos.collection_store import CollectionStore

router = APIRouter(tags=["health"])

Store = Annotated[CollectionStore, Depends(get_store)]


@router.get("/health")
async def health(store: Store) -> dict:
    """Liveness probe + store status.

    Returns 200 even when degraded; the status field carries the verdict.
    """
    initialized = store.is_initialized
    return {
        "status": "ok" if initialized else "degraded",
        "checks": {
            "store": {
                "backend": store.backend,
                "initialized": initialized,
            }
        },
    }


@router.get("/ready")
async def ready(store: Store) -> Response:
    if not store.is_initialized:
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
