"""
Warranty claim models.

A warranty is registered by its owner with a set of descriptive fields
(vehicle film installation details and/or product purchase details) and is
then triaged by administrators through the admin-managed fields.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import ConfigDict, field_validator
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from .user import UserPublic, utcnow


class WarrantyStatus(str, Enum):
    """Claim lifecycle status."""
    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class WarrantyPriority(str, Enum):
    """Triage priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


# Statuses in which the owner may still edit descriptive fields
OWNER_EDITABLE_STATUSES = frozenset({WarrantyStatus.PENDING, WarrantyStatus.IN_REVIEW})

# Fields an owner may set and edit
DESCRIPTIVE_FIELDS = (
    "country",
    "product_series",
    "construction_shop",
    "car_colour",
    "license_plate",
    "car_model",
    "application_date",
    "contact_number",
    "detail_technician",
    "film_core_serial",
    "tags",
    "product_name",
    "product_brand",
    "product_model",
    "serial_number",
    "retailer",
    "category",
    "warranty_type",
    "purchase_price",
    "issue_description",
)

# Fields only administrators may change
ADMIN_FIELDS = (
    "status",
    "priority",
    "assigned_to_id",
    "admin_notes",
    "resolution",
)

TAG_MAX_LENGTH = 30
NOTE_MAX_LENGTH = 1000


def _clean_tags(tags: Optional[list[str]]) -> Optional[list[str]]:
    if tags is None:
        return None
    cleaned = []
    for tag in tags:
        tag = tag.strip()
        if not 1 <= len(tag) <= TAG_MAX_LENGTH:
            raise ValueError(f"Each tag must be between 1 and {TAG_MAX_LENGTH} characters")
        cleaned.append(tag)
    return cleaned


class Warranty(SQLModel, table=True):
    """
    Warranty claim database model.

    Attributes:
        id: Primary key.
        warranty_code: Generated public code (e.g. "WR-3F9A0C12B7DE"), never reused.
        user_id: Owner, set once at creation.
        status: Lifecycle status.
        priority: Triage priority.
        assigned_to_id: Admin handling the claim, if any.
        admin_notes: Internal notes, hidden from owners.
        resolution: Outcome text shown to the owner.
        version: Incremented on every write; guards against lost updates.
        submitted_at: When the claim was registered.
    """

    __tablename__ = "warranties"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    warranty_code: str = Field(unique=True, index=True, max_length=32)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    # Vehicle / installation details
    country: str
    product_series: str = Field(index=True)
    construction_shop: Optional[str] = None
    car_colour: Optional[str] = None
    license_plate: str = Field(index=True)
    car_model: Optional[str] = None
    application_date: Optional[date] = None
    contact_number: Optional[str] = None
    detail_technician: Optional[str] = None
    film_core_serial: Optional[str] = None
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Product / purchase details
    product_name: Optional[str] = None
    product_brand: Optional[str] = Field(default=None, index=True)
    product_model: Optional[str] = None
    serial_number: Optional[str] = None
    retailer: Optional[str] = None
    category: Optional[str] = Field(default=None, index=True)
    warranty_type: Optional[str] = Field(default=None, index=True)
    purchase_price: Optional[float] = None
    issue_description: Optional[str] = None

    # Admin-managed
    status: WarrantyStatus = Field(default=WarrantyStatus.PENDING, index=True)
    priority: WarrantyPriority = Field(default=WarrantyPriority.MEDIUM, index=True)
    assigned_to_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", index=True)
    admin_notes: Optional[str] = None
    resolution: Optional[str] = None

    version: int = Field(default=1)
    submitted_at: datetime = Field(default_factory=utcnow, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def days_since_submission(self) -> int:
        return (utcnow() - self.submitted_at).days


class WarrantyDetails(SQLModel):
    """Optional descriptive fields shared by create and update payloads."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    construction_shop: Optional[str] = None
    car_colour: Optional[str] = None
    car_model: Optional[str] = None
    application_date: Optional[date] = None
    contact_number: Optional[str] = None
    detail_technician: Optional[str] = None
    film_core_serial: Optional[str] = None
    tags: Optional[list[str]] = None

    product_name: Optional[str] = None
    product_brand: Optional[str] = None
    product_model: Optional[str] = None
    serial_number: Optional[str] = None
    retailer: Optional[str] = None
    category: Optional[str] = None
    warranty_type: Optional[str] = None
    purchase_price: Optional[float] = Field(default=None, ge=0)
    issue_description: Optional[str] = None

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        return _clean_tags(value)


class WarrantyCreate(WarrantyDetails):
    """Schema for registering a warranty."""
    country: str = Field(min_length=1)
    product_series: str = Field(min_length=1)
    license_plate: str = Field(min_length=1)


class WarrantyUpdate(WarrantyDetails):
    """
    Schema for updating a warranty.

    Admin-managed fields are accepted from every caller; the service drops
    them silently unless the caller is an administrator.
    """
    country: Optional[str] = Field(default=None, min_length=1)
    product_series: Optional[str] = Field(default=None, min_length=1)
    license_plate: Optional[str] = Field(default=None, min_length=1)

    status: Optional[WarrantyStatus] = None
    priority: Optional[WarrantyPriority] = None
    assigned_to: Optional[uuid.UUID] = Field(default=None, alias="assignedTo")
    admin_notes: Optional[str] = Field(default=None, max_length=NOTE_MAX_LENGTH)
    resolution: Optional[str] = Field(default=None, max_length=NOTE_MAX_LENGTH)

    # Version the client last read; a mismatch is rejected as a conflict
    version: Optional[int] = None


class BulkUpdateData(SQLModel):
    """Admin fields that may be applied to many warranties at once."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, populate_by_name=True)

    status: Optional[WarrantyStatus] = None
    priority: Optional[WarrantyPriority] = None
    assigned_to: Optional[uuid.UUID] = Field(default=None, alias="assignedTo")
    admin_notes: Optional[str] = Field(default=None, max_length=NOTE_MAX_LENGTH)
    resolution: Optional[str] = Field(default=None, max_length=NOTE_MAX_LENGTH)


class BulkUpdateRequest(SQLModel):
    """Body of the bulk update endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    warranty_ids: list[str] = Field(default_factory=list, alias="warrantyIds")
    update_data: BulkUpdateData = Field(default_factory=BulkUpdateData, alias="updateData")


class BulkUpdateResult(SQLModel):
    matched_count: int
    modified_count: int


class AssignRequest(SQLModel):
    """Assign to an admin, or unassign with null."""

    model_config = ConfigDict(populate_by_name=True)

    assigned_to: Optional[uuid.UUID] = Field(default=None, alias="assignedTo")


class WarrantyRead(SQLModel):
    """Warranty as returned to callers, with people projected to public fields."""

    id: uuid.UUID
    warranty_code: str
    owner: UserPublic
    assigned_to: Optional[UserPublic] = None

    country: str
    product_series: str
    construction_shop: Optional[str] = None
    car_colour: Optional[str] = None
    license_plate: str
    car_model: Optional[str] = None
    application_date: Optional[date] = None
    contact_number: Optional[str] = None
    detail_technician: Optional[str] = None
    film_core_serial: Optional[str] = None
    tags: list[str] = []

    product_name: Optional[str] = None
    product_brand: Optional[str] = None
    product_model: Optional[str] = None
    serial_number: Optional[str] = None
    retailer: Optional[str] = None
    category: Optional[str] = None
    warranty_type: Optional[str] = None
    purchase_price: Optional[float] = None
    issue_description: Optional[str] = None

    status: WarrantyStatus
    priority: WarrantyPriority
    admin_notes: Optional[str] = None
    resolution: Optional[str] = None

    version: int
    days_since_submission: int
    submitted_at: datetime
    created_at: datetime
    updated_at: datetime


class WarrantyLookup(SQLModel):
    """Reduced status view served to anonymous callers by warranty code."""
    warranty_code: str
    status: WarrantyStatus
    product_series: str
    submitted_at: datetime
    updated_at: datetime


class WarrantyLookupPayload(SQLModel):
    warranty: WarrantyLookup


class WarrantyLookupResponse(SQLModel):
    success: bool = True
    data: WarrantyLookupPayload


class Pagination(SQLModel):
    page: int
    limit: int
    total: int
    pages: int


class WarrantyPage(SQLModel):
    warranties: list[WarrantyRead]
    pagination: Pagination


class WarrantyListResponse(SQLModel):
    success: bool = True
    data: WarrantyPage


class WarrantyPayload(SQLModel):
    warranty: WarrantyRead


class WarrantyResponse(SQLModel):
    success: bool = True
    message: Optional[str] = None
    data: WarrantyPayload


class MessageResponse(SQLModel):
    success: bool = True
    message: str
    data: Optional[dict[str, Any]] = None
