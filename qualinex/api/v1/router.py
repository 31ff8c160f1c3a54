"""
Main API v1 router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .warranties import router as warranties_router
from .admin.router import router as admin_router

api_router = APIRouter()

# Public routes
api_router.include_router(
    auth_router,
    prefix="/auth",
    tags=["Authentication"],
)

# Owner routes
api_router.include_router(
    warranties_router,
    prefix="/warranties",
    tags=["Warranties"],
)

# Admin-only routes
api_router.include_router(
    admin_router,
    prefix="/admin",
    tags=["Admin"],
)
