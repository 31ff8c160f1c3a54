"""
Admin warranty triage endpoints.
"""

from fastapi import APIRouter

from qualinex.api.deps import AdminUser, DbSession, ListParams
from qualinex.models.warranty import (
    AssignRequest,
    BulkUpdateRequest,
    MessageResponse,
    WarrantyListResponse,
    WarrantyPayload,
    WarrantyResponse,
    WarrantyUpdate,
)
from qualinex.services import warranty as warranty_service
from qualinex.services.warranty import ScopeMode

router = APIRouter()


@router.get("", response_model=WarrantyListResponse)
async def list_all_warranties(params: ListParams, admin: AdminUser, db: DbSession):
    """
    List every warranty with filtering, search, sorting and pagination.

    Query params:
        status, priority, category, warrantyType: exact match filters
        startDate, endDate: submission date range (inclusive)
        assignedTo, owner: filter by user id
        unassigned: only claims without an assignee
        search: case-insensitive substring over text fields
        sortBy, sortOrder: ordering (default submittedAt desc)
    """
    page = await warranty_service.list_warranties(db, admin, params, mode=ScopeMode.ADMIN)
    return WarrantyListResponse(data=page)


@router.get("/assigned", response_model=WarrantyListResponse)
async def list_my_assignments(params: ListParams, admin: AdminUser, db: DbSession):
    """Warranties assigned to the calling admin."""
    page = await warranty_service.list_warranties(db, admin, params, mode=ScopeMode.ASSIGNED)
    return WarrantyListResponse(data=page)


@router.put("/bulk-update", response_model=MessageResponse)
async def bulk_update_warranties(request: BulkUpdateRequest, admin: AdminUser, db: DbSession):
    """
    Apply the same status, priority, assignee, notes or resolution to many claims.

    Every id is validated before anything is written.
    """
    result = await warranty_service.bulk_update(db, admin, request.warranty_ids, request.update_data)
    return MessageResponse(
        message=f"Updated {result.modified_count} warranties",
        data=result.model_dump(),
    )


@router.put("/{warranty_id}", response_model=WarrantyResponse)
async def admin_update_warranty(
    warranty_id: str,
    payload: WarrantyUpdate,
    admin: AdminUser,
    db: DbSession,
):
    warranty = await warranty_service.update_warranty(db, admin, warranty_id, payload)
    return WarrantyResponse(
        message="Warranty updated successfully",
        data=WarrantyPayload(warranty=warranty),
    )


@router.put("/{warranty_id}/assign", response_model=WarrantyResponse)
async def assign_warranty(
    warranty_id: str,
    request: AssignRequest,
    admin: AdminUser,
    db: DbSession,
):
    """Assign to an active admin, or unassign with null."""
    warranty = await warranty_service.assign_warranty(db, admin, warranty_id, request.assigned_to)
    return WarrantyResponse(
        message="Warranty assigned successfully" if request.assigned_to else "Warranty unassigned",
        data=WarrantyPayload(warranty=warranty),
    )


@router.delete("/{warranty_id}", response_model=MessageResponse)
async def admin_delete_warranty(warranty_id: str, admin: AdminUser, db: DbSession):
    await warranty_service.delete_warranty(db, admin, warranty_id)
    return MessageResponse(message="Warranty deleted successfully")
