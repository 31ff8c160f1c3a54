"""
Database models using SQLModel.
"""

from .user import (
    User,
    UserRole,
    LocalIdentity,
    FederatedIdentity,
    UserCreate,
    UserRead,
    UserPublic,
    ProfileUpdate,
    PasswordChange,
    AdminSummary,
    AdminList,
    AdminListResponse,
    UserPayload,
    UserResponse,
)
from .warranty import (
    Warranty,
    WarrantyStatus,
    WarrantyPriority,
    WarrantyCreate,
    WarrantyUpdate,
    WarrantyRead,
    WarrantyLookup,
    WarrantyLookupPayload,
    WarrantyLookupResponse,
    WarrantyPage,
    WarrantyListResponse,
    WarrantyResponse,
    WarrantyPayload,
    BulkUpdateRequest,
    BulkUpdateData,
    BulkUpdateResult,
    AssignRequest,
    Pagination,
    MessageResponse,
)
from .report import (
    AdminReport,
    AdminReportResponse,
    OwnerSummary,
    OwnerSummaryResponse,
)

__all__ = [
    # Identity
    "User",
    "UserRole",
    "LocalIdentity",
    "FederatedIdentity",
    "UserCreate",
    "UserRead",
    "UserPublic",
    "ProfileUpdate",
    "PasswordChange",
    "AdminSummary",
    "AdminList",
    "AdminListResponse",
    "UserPayload",
    "UserResponse",
    # Warranties
    "Warranty",
    "WarrantyStatus",
    "WarrantyPriority",
    "WarrantyCreate",
    "WarrantyUpdate",
    "WarrantyRead",
    "WarrantyLookup",
    "WarrantyLookupPayload",
    "WarrantyLookupResponse",
    "WarrantyPage",
    "WarrantyListResponse",
    "WarrantyResponse",
    "WarrantyPayload",
    "BulkUpdateRequest",
    "BulkUpdateData",
    "BulkUpdateResult",
    "AssignRequest",
    "Pagination",
    "MessageResponse",
    # Reporting
    "AdminReport",
    "AdminReportResponse",
    "OwnerSummary",
    "OwnerSummaryResponse",
]
