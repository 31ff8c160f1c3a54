"""
Translate list/search request parameters into a store-independent query.

The builder knows the warranty field names but nothing about SQL; the
store layer turns a :class:`WarrantyQuery` into a statement.
"""

import math
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel

from qualinex.core.config import settings
from qualinex.models.warranty import Warranty, WarrantyPriority, WarrantyStatus


class ScopeMode(str, Enum):
    """Which warranties a listing may see."""
    USER = "user"          # only the caller's own warranties
    ADMIN = "admin"        # every warranty
    ASSIGNED = "assigned"  # warranties assigned to the calling admin


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


# Searchable text fields, matched case-insensitively with OR semantics
USER_SEARCH_FIELDS = (
    "warranty_code",
    "country",
    "product_series",
    "construction_shop",
    "car_colour",
    "license_plate",
    "car_model",
    "contact_number",
    "detail_technician",
    "film_core_serial",
    "product_name",
    "product_brand",
    "product_model",
    "serial_number",
    "retailer",
    "issue_description",
)
ADMIN_SEARCH_FIELDS = USER_SEARCH_FIELDS + ("admin_notes", "resolution")

DEFAULT_SORT_FIELD = "submitted_at"
TIEBREAK_FIELD = "id"

# Every column a caller may sort by
SORTABLE_FIELDS = frozenset(Warranty.model_fields) - {"tags"}


class WarrantyListParams(BaseModel):
    """Validated list/search parameters, before scoping."""

    page: Optional[int] = None
    limit: Optional[int] = None
    status: Optional[WarrantyStatus] = None
    priority: Optional[WarrantyPriority] = None
    category: Optional[str] = None
    warranty_type: Optional[str] = None
    start_date: Optional[Union[date, datetime]] = None
    end_date: Optional[Union[date, datetime]] = None
    assigned_to: Optional[uuid.UUID] = None
    owner: Optional[uuid.UUID] = None
    unassigned: bool = False
    search: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None


@dataclass(frozen=True)
class Equals:
    value: Any


@dataclass(frozen=True)
class IsNull:
    pass


@dataclass(frozen=True)
class Between:
    """Inclusive range; either bound may be open."""
    lower: Optional[datetime] = None
    upper: Optional[datetime] = None


Predicate = Union[Equals, IsNull, Between]


@dataclass(frozen=True)
class TextSearch:
    term: str
    fields: tuple[str, ...]


@dataclass
class WarrantyQuery:
    """
    Structured listing query.

    ``filters`` maps a field name to one predicate; a later predicate for the
    same field replaces an earlier one.
    """
    filters: dict[str, Predicate] = field(default_factory=dict)
    search: Optional[TextSearch] = None
    sort: list[tuple[str, SortDirection]] = field(default_factory=list)
    page: int = 1
    limit: int = 10

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def pages_for(self, total: int) -> int:
        return math.ceil(total / self.limit) if total else 0


def _to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _as_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _lower_bound(value: Union[datetime, date]) -> datetime:
    if isinstance(value, datetime):
        return _as_utc_naive(value)
    return datetime.combine(value, time.min)


def _upper_bound(value: Union[datetime, date]) -> datetime:
    # A bare date includes the whole day
    if isinstance(value, datetime):
        return _as_utc_naive(value)
    return datetime.combine(value, time.max)


def resolve_pagination(page: Optional[int], limit: Optional[int], mode: ScopeMode) -> tuple[int, int]:
    """Clamp page/limit; missing or non-positive values fall back to the defaults."""
    default_limit = settings.user_page_limit if mode == ScopeMode.USER else settings.admin_page_limit
    page = page if page and page >= 1 else 1
    limit = limit if limit and limit >= 1 else default_limit
    return page, min(limit, settings.max_page_limit)


def resolve_sort(sort_by: Optional[str], sort_order: Optional[str]) -> list[tuple[str, SortDirection]]:
    """
    Build the ordering. Unknown sort fields are ignored rather than rejected,
    leaving only the stable id tie-break.
    """
    if not sort_by:
        return [(DEFAULT_SORT_FIELD, SortDirection.DESC), (TIEBREAK_FIELD, SortDirection.ASC)]

    direction = SortDirection.ASC if (sort_order or "").lower() == "asc" else SortDirection.DESC
    field_name = _to_snake(sort_by.strip())
    sort: list[tuple[str, SortDirection]] = []
    if field_name in SORTABLE_FIELDS and field_name != TIEBREAK_FIELD:
        sort.append((field_name, direction))
    sort.append((TIEBREAK_FIELD, SortDirection.ASC))
    return sort


def build_query(
    params: WarrantyListParams,
    mode: ScopeMode,
    actor_id: Optional[uuid.UUID] = None,
) -> WarrantyQuery:
    """
    Map request parameters to a :class:`WarrantyQuery`.

    Args:
        params: Validated request parameters.
        mode: Scope of the listing.
        actor_id: Calling user, required for USER and ASSIGNED scopes.

    Returns:
        WarrantyQuery: Filters, search, ordering and pagination.
    """
    if mode != ScopeMode.ADMIN and actor_id is None:
        raise ValueError(f"{mode.value} listings need the calling user")

    page, limit = resolve_pagination(params.page, params.limit, mode)
    query = WarrantyQuery(page=page, limit=limit, sort=resolve_sort(params.sort_by, params.sort_order))

    simple_filters = {
        "status": params.status,
        "priority": params.priority,
        "category": params.category,
        "warranty_type": params.warranty_type,
        "user_id": params.owner,
    }
    for field_name, value in simple_filters.items():
        if value is not None and value != "":
            query.filters[field_name] = Equals(value)

    if params.start_date is not None or params.end_date is not None:
        query.filters["submitted_at"] = Between(
            lower=_lower_bound(params.start_date) if params.start_date is not None else None,
            upper=_upper_bound(params.end_date) if params.end_date is not None else None,
        )

    # assigned_to and unassigned share one slot; unassigned is applied last and wins
    if params.assigned_to is not None:
        query.filters["assigned_to_id"] = Equals(params.assigned_to)
    if params.unassigned:
        query.filters["assigned_to_id"] = IsNull()

    term = (params.search or "").strip()
    if term:
        fields = ADMIN_SEARCH_FIELDS if mode != ScopeMode.USER else USER_SEARCH_FIELDS
        query.search = TextSearch(term=term, fields=fields)

    if mode == ScopeMode.USER:
        query.filters["user_id"] = Equals(actor_id)
    elif mode == ScopeMode.ASSIGNED:
        query.filters["assigned_to_id"] = Equals(actor_id)

    return query
