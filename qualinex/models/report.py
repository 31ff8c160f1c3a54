"""
Read-only reporting schemas for admin statistics and owner summaries.
"""

import uuid
from typing import Optional

from sqlmodel import SQLModel


class StatusCounts(SQLModel):
    """Claim counts per lifecycle status."""
    total: int = 0
    pending: int = 0
    in_review: int = 0
    approved: int = 0
    rejected: int = 0
    completed: int = 0
    cancelled: int = 0


class OverviewStats(StatusCounts):
    unassigned: int = 0
    avg_purchase_price: Optional[float] = None


class DistributionEntry(SQLModel):
    """One group of a breakdown; ``key`` is None for records without a value."""
    key: Optional[str] = None
    count: int
    avg_price: Optional[float] = None


class MonthlyTrend(SQLModel):
    year: int
    month: int
    count: int


class AdminWorkload(SQLModel):
    admin_id: uuid.UUID
    admin_name: str
    admin_email: str
    total_assigned: int
    pending_count: int
    in_review_count: int
    by_status: dict[str, int]


class UserStats(SQLModel):
    total_users: int = 0
    active_users: int = 0
    admin_users: int = 0
    regular_users: int = 0
    federated_users: int = 0


class AdminReport(SQLModel):
    overview: OverviewStats
    status_distribution: list[DistributionEntry]
    priority_distribution: list[DistributionEntry]
    category_distribution: list[DistributionEntry]
    monthly_trends: list[MonthlyTrend]
    top_brands: list[DistributionEntry]
    admin_workload: list[AdminWorkload]
    user_stats: UserStats


class AdminReportResponse(SQLModel):
    success: bool = True
    data: AdminReport


class OwnerSummary(SQLModel):
    overview: StatusCounts
    by_product_series: list[DistributionEntry]


class OwnerSummaryResponse(SQLModel):
    success: bool = True
    data: OwnerSummary
