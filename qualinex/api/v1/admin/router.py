"""
Admin API router.

All routes in this module require admin authentication.
"""

from fastapi import APIRouter

from .warranties import router as warranties_router
from .reports import router as reports_router

router = APIRouter()

# Warranty triage endpoints
router.include_router(
    warranties_router,
    prefix="/warranties",
    tags=["Admin Warranties"],
)

# Dashboard and user listings
router.include_router(
    reports_router,
    tags=["Admin Reports"],
)
