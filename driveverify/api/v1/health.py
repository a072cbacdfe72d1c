"""Health check endpoint."""

import platform
import sys

from fastapi import APIRouter

from driveverify.api.v1 import verification as verification_api

router = APIRouter()


@router.get("/health")
def health_check():
    """Service health and gdrive CLI readiness.

    Plain def so the blocking gdrive probe runs in the threadpool.
    """
    orchestrator = verification_api._orchestrator
    gdrive_ready = orchestrator.is_ready() if orchestrator is not None else False

    return {
        "status": "healthy" if gdrive_ready else "degraded",
        "gdrive_ready": gdrive_ready,
        "python_version": sys.version,
        "platform": platform.platform(),
    }
