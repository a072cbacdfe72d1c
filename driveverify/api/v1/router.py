"""Aggregate all v1 API routers."""

from fastapi import APIRouter
from driveverify.api.v1.health import router as health_router
from driveverify.api.v1.verification import router as verification_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(verification_router, tags=["verification"])
