"""API router for v1 endpoints."""

from fastapi import APIRouter

from app.api import auth, readiness, settlements

router = APIRouter()

# Caller identity and capabilities
router.include_router(auth.router)

# Readiness weight configuration
router.include_router(readiness.router)

# Settlement score board
router.include_router(settlements.router)
