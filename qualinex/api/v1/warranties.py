"""
Warranty endpoints for owners.

Authenticated users register warranties and manage their own claims; the
code lookup is public.
"""

from fastapi import APIRouter, status

from qualinex.api.deps import CurrentUser, DbSession, ListParams, OptionalUser
from qualinex.models.report import OwnerSummaryResponse
from qualinex.models.warranty import (
    MessageResponse,
    WarrantyCreate,
    WarrantyListResponse,
    WarrantyLookupPayload,
    WarrantyLookupResponse,
    WarrantyPayload,
    WarrantyResponse,
    WarrantyUpdate,
)
from qualinex.services import warranty as warranty_service

router = APIRouter()


@router.post("", response_model=WarrantyResponse, status_code=status.HTTP_201_CREATED)
async def create_warranty(payload: WarrantyCreate, current_user: CurrentUser, db: DbSession):
    """
    Register a warranty for the current user.

    New claims start pending with medium priority and no assignee.
    """
    warranty = await warranty_service.create_warranty(db, current_user, payload)
    return WarrantyResponse(
        message="Warranty registered successfully",
        data=WarrantyPayload(warranty=warranty),
    )


@router.get("", response_model=WarrantyListResponse)
async def list_warranties(params: ListParams, current_user: CurrentUser, db: DbSession):
    """
    List warranties.

    Regular users see their own claims; admins see every claim.
    """
    page = await warranty_service.list_warranties(db, current_user, params)
    return WarrantyListResponse(data=page)


@router.get("/stats", response_model=OwnerSummaryResponse)
async def get_my_stats(current_user: CurrentUser, db: DbSession):
    """Counts of the caller's claims by status and product series."""
    summary = await warranty_service.owner_summary(db, current_user)
    return OwnerSummaryResponse(data=summary)


@router.get("/lookup/{code}", response_model=WarrantyLookupResponse)
async def lookup_warranty(code: str, current_user: OptionalUser, db: DbSession):
    """Public status check by warranty code."""
    warranty = await warranty_service.lookup_by_code(db, current_user, code)
    return WarrantyLookupResponse(data=WarrantyLookupPayload(warranty=warranty))


@router.get("/{warranty_id}", response_model=WarrantyResponse)
async def get_warranty(warranty_id: str, current_user: CurrentUser, db: DbSession):
    warranty = await warranty_service.get_warranty(db, current_user, warranty_id)
    return WarrantyResponse(data=WarrantyPayload(warranty=warranty))


@router.put("/{warranty_id}", response_model=WarrantyResponse)
async def update_warranty(
    warranty_id: str,
    payload: WarrantyUpdate,
    current_user: CurrentUser,
    db: DbSession,
):
    """
    Update a warranty.

    Owners may change descriptive fields while the claim is open; status,
    priority, assignee, notes and resolution are ignored unless the caller
    is an admin.
    """
    warranty = await warranty_service.update_warranty(db, current_user, warranty_id, payload)
    return WarrantyResponse(
        message="Warranty updated successfully",
        data=WarrantyPayload(warranty=warranty),
    )


@router.delete("/{warranty_id}", response_model=MessageResponse)
async def delete_warranty(warranty_id: str, current_user: CurrentUser, db: DbSession):
    """Delete a warranty. Owners can only delete pending claims."""
    await warranty_service.delete_warranty(db, current_user, warranty_id)
    return MessageResponse(message="Warranty deleted successfully")
