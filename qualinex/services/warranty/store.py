"""
SQL translation of warranty queries and small store helpers.
"""

import uuid
from typing import Iterable, Optional

from sqlalchemy import Select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from qualinex.models.user import User
from qualinex.models.warranty import Warranty

from .query_builder import Between, Equals, IsNull, SortDirection, WarrantyQuery


def _column(field_name: str):
    return getattr(Warranty, field_name)


def query_conditions(query: WarrantyQuery) -> list:
    """WHERE clauses for the filters and search of ``query``."""
    conditions = []
    for field_name, predicate in query.filters.items():
        column = _column(field_name)
        if isinstance(predicate, Equals):
            conditions.append(column == predicate.value)
        elif isinstance(predicate, IsNull):
            conditions.append(column.is_(None))
        elif isinstance(predicate, Between):
            if predicate.lower is not None:
                conditions.append(column >= predicate.lower)
            if predicate.upper is not None:
                conditions.append(column <= predicate.upper)

    if query.search is not None:
        conditions.append(or_(*(
            _column(field_name).icontains(query.search.term, autoescape=True)
            for field_name in query.search.fields
        )))
    return conditions


def apply_query(statement: Select, query: WarrantyQuery) -> Select:
    """Apply filters, ordering and pagination to a select over warranties."""
    statement = statement.where(*query_conditions(query))
    for field_name, direction in query.sort:
        column = _column(field_name)
        statement = statement.order_by(column.asc() if direction == SortDirection.ASC else column.desc())
    return statement.offset(query.skip).limit(query.limit)


async def count_matching(session: AsyncSession, query: WarrantyQuery) -> int:
    result = await session.execute(
        select(func.count()).select_from(Warranty).where(*query_conditions(query))
    )
    return result.scalar_one()


async def fetch_page(session: AsyncSession, query: WarrantyQuery) -> list[Warranty]:
    result = await session.execute(apply_query(select(Warranty), query))
    return list(result.scalars().all())


async def load_people(session: AsyncSession, ids: Iterable[Optional[uuid.UUID]]) -> dict[uuid.UUID, User]:
    """Fetch the users behind owner/assignee references in one query."""
    wanted = {user_id for user_id in ids if user_id is not None}
    if not wanted:
        return {}
    result = await session.execute(select(User).where(User.id.in_(wanted)))
    return {user.id: user for user in result.scalars().all()}
