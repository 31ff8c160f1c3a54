"""
Reporting service for the admin dashboard and owner statistics.

Every aggregate is a separate query evaluated at request time. Nothing is
cached, and the sections of one report are not read in a shared snapshot,
so totals can disagree slightly under concurrent writes.
"""

import calendar
import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import case, extract
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select, func

from qualinex.core.config import settings
from qualinex.models.report import (
    AdminReport,
    AdminWorkload,
    DistributionEntry,
    MonthlyTrend,
    OverviewStats,
    OwnerSummary,
    StatusCounts,
    UserStats,
)
from qualinex.models.user import User, UserRole, utcnow
from qualinex.models.warranty import Warranty, WarrantyStatus
from qualinex.services.access_policy import Action, ResourceKind, require

logger = logging.getLogger(__name__)


def _count_where(condition):
    return func.sum(case((condition, 1), else_=0))


def _round(value: Optional[float]) -> Optional[float]:
    return round(float(value), 2) if value is not None else None


def _key(value) -> Optional[str]:
    if value is None:
        return None
    # Enum columns come back as members
    return str(getattr(value, "value", value))


def _status_columns():
    return [
        _count_where(Warranty.status == status).label(status.value)
        for status in WarrantyStatus
    ]


async def _status_counts(session: AsyncSession, owner_id: Optional[uuid.UUID] = None) -> dict:
    statement = select(func.count(Warranty.id).label("total"), *_status_columns())
    if owner_id is not None:
        statement = statement.where(Warranty.user_id == owner_id)
    row = (await session.execute(statement)).one()
    return {name: value or 0 for name, value in row._mapping.items()}


async def overview(session: AsyncSession) -> OverviewStats:
    """Total and per-status counts, unassigned claims and average purchase price."""
    counts = await _status_counts(session)
    extra = (await session.execute(
        select(
            _count_where(Warranty.assigned_to_id.is_(None)).label("unassigned"),
            func.avg(Warranty.purchase_price).label("avg_purchase_price"),
        )
    )).one()
    return OverviewStats(
        **counts,
        unassigned=extra.unassigned or 0,
        avg_purchase_price=_round(extra.avg_purchase_price),
    )


async def _distribution(
    session: AsyncSession,
    column,
    with_price: bool = False,
    limit: Optional[int] = None,
    skip_null: bool = False,
    owner_id: Optional[uuid.UUID] = None,
) -> list[DistributionEntry]:
    count = func.count(Warranty.id).label("claim_count")
    columns = [column.label("key"), count]
    if with_price:
        columns.append(func.avg(Warranty.purchase_price).label("avg_price"))

    statement = select(*columns).group_by(column).order_by(count.desc(), column)
    if skip_null:
        statement = statement.where(column.is_not(None))
    if owner_id is not None:
        statement = statement.where(Warranty.user_id == owner_id)
    if limit is not None:
        statement = statement.limit(limit)

    rows = (await session.execute(statement)).all()
    return [
        DistributionEntry(
            key=_key(row.key),
            count=row.claim_count,
            avg_price=_round(row.avg_price) if with_price else None,
        )
        for row in rows
    ]


async def status_distribution(session: AsyncSession) -> list[DistributionEntry]:
    return await _distribution(session, Warranty.status)


async def priority_distribution(session: AsyncSession) -> list[DistributionEntry]:
    return await _distribution(session, Warranty.priority)


async def category_distribution(session: AsyncSession) -> list[DistributionEntry]:
    return await _distribution(session, Warranty.category, with_price=True)


async def top_brands(session: AsyncSession, limit: Optional[int] = None) -> list[DistributionEntry]:
    """Most claimed product brands with their average purchase price."""
    return await _distribution(
        session,
        Warranty.product_brand,
        with_price=True,
        limit=limit or settings.top_brands_limit,
        skip_null=True,
    )


def trend_cutoff(now: Optional[datetime] = None, months: Optional[int] = None) -> datetime:
    """Same moment ``months`` calendar months ago, clamped to the end of shorter months."""
    now = now or utcnow()
    months = months or settings.trend_months
    year, month_index = divmod(now.year * 12 + now.month - 1 - months, 12)
    day = min(now.day, calendar.monthrange(year, month_index + 1)[1])
    return now.replace(year=year, month=month_index + 1, day=day)


async def monthly_trends(session: AsyncSession, now: Optional[datetime] = None) -> list[MonthlyTrend]:
    """Claims per (year, month) over the trailing months, oldest first."""
    year = extract("year", Warranty.submitted_at).label("year")
    month = extract("month", Warranty.submitted_at).label("month")
    rows = (await session.execute(
        select(year, month, func.count(Warranty.id).label("claim_count"))
        .where(Warranty.submitted_at >= trend_cutoff(now))
        .group_by(year, month)
        .order_by(year, month)
    )).all()
    return [MonthlyTrend(year=int(row.year), month=int(row.month), count=row.claim_count) for row in rows]


async def admin_workload(session: AsyncSession) -> list[AdminWorkload]:
    """Assignment counts for every admin holding at least one warranty."""
    rows = (await session.execute(
        select(User.id, User.full_name, User.email, Warranty.status, func.count(Warranty.id).label("claim_count"))
        .join(Warranty, Warranty.assigned_to_id == User.id)
        .where(User.role == UserRole.ADMIN)
        .group_by(User.id, User.full_name, User.email, Warranty.status)
    )).all()

    workloads: dict[uuid.UUID, AdminWorkload] = {}
    for row in rows:
        entry = workloads.get(row.id)
        if entry is None:
            entry = workloads[row.id] = AdminWorkload(
                admin_id=row.id,
                admin_name=row.full_name,
                admin_email=row.email,
                total_assigned=0,
                pending_count=0,
                in_review_count=0,
                by_status={},
            )
        entry.total_assigned += row.claim_count
        entry.by_status[row.status.value] = row.claim_count
        if row.status == WarrantyStatus.PENDING:
            entry.pending_count = row.claim_count
        elif row.status == WarrantyStatus.IN_REVIEW:
            entry.in_review_count = row.claim_count

    return sorted(workloads.values(), key=lambda w: (-w.total_assigned, w.admin_name))


async def user_stats(session: AsyncSession) -> UserStats:
    row = (await session.execute(
        select(
            func.count(User.id).label("total_users"),
            _count_where(User.is_active.is_(True)).label("active_users"),
            _count_where(User.role == UserRole.ADMIN).label("admin_users"),
            _count_where(User.role == UserRole.USER).label("regular_users"),
            _count_where(User.external_id.is_not(None)).label("federated_users"),
        )
    )).one()
    return UserStats(**{name: value or 0 for name, value in row._mapping.items()})


async def admin_report(session: AsyncSession, actor: User) -> AdminReport:
    """Full admin dashboard: overview, distributions, trends, workload and users."""
    require(actor, ResourceKind.REPORT, Action.REPORTING)
    report = AdminReport(
        overview=await overview(session),
        status_distribution=await status_distribution(session),
        priority_distribution=await priority_distribution(session),
        category_distribution=await category_distribution(session),
        monthly_trends=await monthly_trends(session),
        top_brands=await top_brands(session),
        admin_workload=await admin_workload(session),
        user_stats=await user_stats(session),
    )
    logger.debug("Admin report built for %s: %s warranties", actor.id, report.overview.total)
    return report


async def owner_summary(session: AsyncSession, actor: User) -> OwnerSummary:
    """The caller's own claims counted by status and by product series."""
    require(actor, ResourceKind.REPORT, Action.LIST_OWN)
    return OwnerSummary(
        overview=StatusCounts(**await _status_counts(session, owner_id=actor.id)),
        by_product_series=await _distribution(session, Warranty.product_series, owner_id=actor.id),
    )
