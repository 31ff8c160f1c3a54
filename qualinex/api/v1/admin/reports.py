"""
Admin dashboard statistics and user listings.
"""

from fastapi import APIRouter

from qualinex.api.deps import AdminUser, DbSession
from qualinex.models.report import AdminReportResponse
from qualinex.models.user import AdminList, AdminListResponse
from qualinex.services import users
from qualinex.services import warranty as warranty_service

router = APIRouter()


@router.get("/stats", response_model=AdminReportResponse)
async def get_dashboard_stats(admin: AdminUser, db: DbSession):
    """
    Dashboard statistics.

    Overview counts, status / priority / category distributions, monthly
    trend for the last 12 months, top brands, per-admin workload and user
    counts. Computed on every request.
    """
    report = await warranty_service.admin_report(db, admin)
    return AdminReportResponse(data=report)


@router.get("/users/admins", response_model=AdminListResponse)
async def list_admins(admin: AdminUser, db: DbSession):
    """Active admins available for assignment."""
    admins = await users.list_active_admins(db)
    return AdminListResponse(data=AdminList(admins=admins))
