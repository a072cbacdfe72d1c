"""Drive replica verifier - FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from driveverify.config import settings
from driveverify.api.v1.router import v1_router
from driveverify.api.v1.health import router as health_root_router
from driveverify.api.v1 import verification as verification_api
from driveverify.db.redis_client import get_redis
from driveverify.io.gdrive_cli import GdriveCli
from driveverify.jobs.in_process_queue import InProcessQueue
from driveverify.storage.job_store import JobStore
from driveverify.verification.orchestrator import VerificationOrchestrator

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_orchestrator(dispatcher=None) -> VerificationOrchestrator:
    """Wire the job store and gdrive CLI from settings."""
    store = JobStore(
        get_redis(),
        key_prefix=settings.redis_key_prefix,
        registration_ttl=settings.registration_ttl_seconds,
        job_ttl=settings.job_ttl_seconds,
    )
    cli = GdriveCli(settings.gdrive_bin, settings.gdrive_config_dir)
    return VerificationOrchestrator(store, cli, dispatcher=dispatcher, settings=settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    logger.info(f"Starting drive replica verifier on port {settings.port}")
    logger.info(f"gdrive binary: {settings.gdrive_bin}")
    logger.info(f"Download caching: {settings.cache_downloaded_files}")

    dispatcher = InProcessQueue()
    await dispatcher.start()
    logger.info("Job dispatcher started")

    verification_api.set_orchestrator(build_orchestrator(dispatcher))

    yield

    logger.info("Shutting down drive replica verifier")
    await dispatcher.stop()
    verification_api.set_orchestrator(None)


app = FastAPI(
    title="Drive Replica Verifier",
    description="Checks that a Google Drive folder is a faithful copy of another",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health_root_router, tags=["health"])  # GET /health at root
app.include_router(v1_router)  # All /api/v1/* endpoints
