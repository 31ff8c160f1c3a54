"""
Warranty service: create, read, list, update, delete, assign and bulk update.

Every operation checks the access policy before touching the store, and
store failures are mapped to the error taxonomy here so driver messages
never reach callers.
"""

import logging
import secrets
import uuid
from typing import Any, Iterable, Optional, Union

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select, func

from qualinex.core.config import settings
from qualinex.core.database import store_errors
from qualinex.core.errors import ConflictError, NotFoundError, ValidationError
from qualinex.models.user import User, UserPublic, utcnow
from qualinex.models.warranty import (
    ADMIN_FIELDS,
    DESCRIPTIVE_FIELDS,
    BulkUpdateData,
    BulkUpdateResult,
    Pagination,
    Warranty,
    WarrantyCreate,
    WarrantyLookup,
    WarrantyPage,
    WarrantyRead,
    WarrantyUpdate,
)
from qualinex.services.access_policy import Action, ResourceKind, require

from .query_builder import ScopeMode, WarrantyListParams, build_query
from .store import count_matching, fetch_page, load_people

logger = logging.getLogger(__name__)

# Admin fields with NOT NULL columns
NOT_NULL_ADMIN_FIELDS = ("status", "priority")


def generate_warranty_code() -> str:
    """Random public code, e.g. ``WR-3F9A0C12B7DE`` (48 random bits)."""
    return f"{settings.code_prefix}-{secrets.token_hex(6).upper()}"


def parse_warranty_id(raw: Union[str, uuid.UUID]) -> uuid.UUID:
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise ValidationError(
            "Invalid warranty ID",
            errors=[{"field": "id", "message": "Must be a valid identifier", "value": str(raw)}],
        )


def to_read(warranty: Warranty, people: dict[uuid.UUID, User], viewer: User) -> WarrantyRead:
    """
    Project a warranty for ``viewer``.

    Owner and assignee are reduced to public fields; admin notes are only
    shown to administrators.
    """
    owner = people[warranty.user_id]
    assignee = people.get(warranty.assigned_to_id) if warranty.assigned_to_id else None
    payload = {
        field_name: getattr(warranty, field_name)
        for field_name in WarrantyRead.model_fields
        if field_name not in ("owner", "assigned_to", "days_since_submission")
    }
    if not viewer.is_admin:
        payload["admin_notes"] = None
    return WarrantyRead(
        **payload,
        owner=UserPublic.model_validate(owner),
        assigned_to=UserPublic.model_validate(assignee) if assignee else None,
        days_since_submission=warranty.days_since_submission,
    )


async def _project(session: AsyncSession, warranty: Warranty, viewer: User) -> WarrantyRead:
    people = await load_people(session, [warranty.user_id, warranty.assigned_to_id])
    return to_read(warranty, people, viewer)


async def _get_or_404(session: AsyncSession, warranty_id: Union[str, uuid.UUID]) -> Warranty:
    warranty = await session.get(Warranty, parse_warranty_id(warranty_id))
    if warranty is None:
        raise NotFoundError("Warranty not found")
    return warranty


async def _code_taken(session: AsyncSession, code: str) -> bool:
    result = await session.execute(select(Warranty.id).where(Warranty.warranty_code == code))
    return result.first() is not None


async def _commit(session: AsyncSession, action: str) -> None:
    async with store_errors(session, action):
        await session.commit()


def _reject_nulls(changes: dict[str, Any], fields: Iterable[str]) -> None:
    """Fields backed by NOT NULL columns cannot be cleared."""
    errors = [
        {"field": name, "message": "Cannot be null"}
        for name in fields
        if name in changes and changes[name] is None
    ]
    if errors:
        raise ValidationError("Validation failed", errors=errors)


async def _check_assignee(
    session: AsyncSession,
    actor: User,
    action: Action,
    assignee_id: Optional[uuid.UUID],
    warranty: Optional[Warranty] = None,
) -> None:
    assignee = await session.get(User, assignee_id) if assignee_id is not None else None
    require(
        actor,
        ResourceKind.WARRANTY,
        action,
        warranty,
        assignee_id=assignee_id,
        assignee=assignee,
    )


async def _write(
    session: AsyncSession,
    warranty: Warranty,
    changes: dict[str, Any],
    expected_version: Optional[int] = None,
) -> None:
    """
    Apply ``changes`` with a compare-and-swap on ``version``.

    Raises ConflictError when the row changed since it was read (or since the
    version the client says it saw).
    """
    seen_version = warranty.version
    if expected_version is not None and expected_version != seen_version:
        raise ConflictError("Warranty was modified by someone else; reload and try again")

    async with store_errors(session, "update warranty"):
        result = await session.execute(
            update(Warranty)
            .where(Warranty.id == warranty.id, Warranty.version == seen_version)
            .values(**changes, version=Warranty.version + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
    if result.rowcount == 0:
        await session.rollback()
        raise ConflictError("Warranty was modified by someone else; reload and try again")

    await _commit(session, "update warranty")
    await session.refresh(warranty)


async def create_warranty(session: AsyncSession, actor: User, payload: WarrantyCreate) -> WarrantyRead:
    """
    Register a warranty owned by ``actor``.

    New claims start pending, medium priority and unassigned. A generated
    code that already exists is regenerated once before giving up.
    """
    require(actor, ResourceKind.WARRANTY, Action.CREATE)

    code = generate_warranty_code()
    if await _code_taken(session, code):
        logger.warning("Warranty code collision on %s, regenerating", code)
        code = generate_warranty_code()
        if await _code_taken(session, code):
            raise ConflictError("Duplicate warranty code, please try again")

    data = payload.model_dump(exclude_unset=True)
    if data.get("tags") is None:
        data.pop("tags", None)
    warranty = Warranty(**data, user_id=actor.id, warranty_code=code)
    session.add(warranty)
    await _commit(session, "create warranty")
    await session.refresh(warranty)

    logger.info("Warranty %s created by %s", warranty.warranty_code, actor.id)
    return to_read(warranty, {actor.id: actor}, actor)


async def get_warranty(session: AsyncSession, actor: User, warranty_id: Union[str, uuid.UUID]) -> WarrantyRead:
    warranty = await _get_or_404(session, warranty_id)
    require(actor, ResourceKind.WARRANTY, Action.READ, warranty)
    return await _project(session, warranty, actor)


async def lookup_by_code(session: AsyncSession, actor: Optional[User], code: str) -> WarrantyLookup:
    """Public status check by warranty code; exposes no personal data."""
    require(actor, ResourceKind.WARRANTY, Action.PUBLIC_LOOKUP)
    result = await session.execute(
        select(Warranty).where(Warranty.warranty_code == code.strip().upper())
    )
    warranty = result.scalars().first()
    if warranty is None:
        raise NotFoundError("Warranty not found")
    return WarrantyLookup.model_validate(warranty)


async def list_warranties(
    session: AsyncSession,
    actor: User,
    params: WarrantyListParams,
    mode: Optional[ScopeMode] = None,
) -> WarrantyPage:
    """
    List warranties visible to ``actor``.

    Without an explicit mode, admins see every warranty and other users only
    their own.
    """
    if mode is None:
        mode = ScopeMode.ADMIN if actor.is_admin else ScopeMode.USER
    action = Action.LIST_OWN if mode == ScopeMode.USER else Action.LIST_ALL
    require(actor, ResourceKind.WARRANTY, action)

    query = build_query(params, mode, actor.id)
    total = await count_matching(session, query)
    warranties = await fetch_page(session, query)

    people = await load_people(
        session,
        [w.user_id for w in warranties] + [w.assigned_to_id for w in warranties],
    )
    return WarrantyPage(
        warranties=[to_read(w, people, actor) for w in warranties],
        pagination=Pagination(
            page=query.page,
            limit=query.limit,
            total=total,
            pages=query.pages_for(total),
        ),
    )


async def update_warranty(
    session: AsyncSession,
    actor: User,
    warranty_id: Union[str, uuid.UUID],
    payload: WarrantyUpdate,
) -> WarrantyRead:
    """
    Update a warranty.

    Owners change descriptive fields only; admin-managed fields they send are
    dropped. Admins may change everything, including the assignee.
    """
    warranty = await _get_or_404(session, warranty_id)
    require(actor, ResourceKind.WARRANTY, Action.UPDATE, warranty)

    data = payload.model_dump(exclude_unset=True)
    expected_version = data.pop("version", None)
    if "assigned_to" in data:
        data["assigned_to_id"] = data.pop("assigned_to")

    allowed = DESCRIPTIVE_FIELDS + ADMIN_FIELDS if actor.is_admin else DESCRIPTIVE_FIELDS
    ignored = sorted(set(data) - set(allowed))
    if ignored:
        logger.info("Ignoring non-editable fields %s from %s on %s", ignored, actor.id, warranty.id)
    changes = {name: value for name, value in data.items() if name in allowed}

    # Required descriptive fields cannot be cleared, tags cannot be null
    for name in ("country", "product_series", "license_plate", "tags"):
        if name in changes and changes[name] is None:
            changes.pop(name)
    _reject_nulls(changes, NOT_NULL_ADMIN_FIELDS)

    if "assigned_to_id" in changes:
        await _check_assignee(session, actor, Action.ADMIN_MUTATE, changes["assigned_to_id"], warranty)

    if changes:
        await _write(session, warranty, changes, expected_version)
    return await _project(session, warranty, actor)


async def assign_warranty(
    session: AsyncSession,
    actor: User,
    warranty_id: Union[str, uuid.UUID],
    assignee_id: Optional[uuid.UUID],
) -> WarrantyRead:
    """Assign a warranty to an active admin, or unassign it with None."""
    require(actor, ResourceKind.WARRANTY, Action.ASSIGN)
    warranty = await _get_or_404(session, warranty_id)
    await _check_assignee(session, actor, Action.ASSIGN, assignee_id, warranty)

    await _write(session, warranty, {"assigned_to_id": assignee_id})
    logger.info(
        "Warranty %s %s by %s",
        warranty.warranty_code,
        f"assigned to {assignee_id}" if assignee_id else "unassigned",
        actor.id,
    )
    return await _project(session, warranty, actor)


async def delete_warranty(session: AsyncSession, actor: User, warranty_id: Union[str, uuid.UUID]) -> None:
    """Hard-delete a warranty; owners may only delete pending claims."""
    warranty = await _get_or_404(session, warranty_id)
    require(actor, ResourceKind.WARRANTY, Action.DELETE, warranty)

    code = warranty.warranty_code
    await session.delete(warranty)
    await _commit(session, "delete warranty")
    logger.info("Warranty %s deleted by %s", code, actor.id)


def split_ids(raw_ids: Iterable[Any]) -> tuple[list[uuid.UUID], list[str]]:
    """Separate well-formed identifiers from malformed ones."""
    valid, invalid = [], []
    for raw in raw_ids:
        try:
            valid.append(uuid.UUID(str(raw)))
        except ValueError:
            invalid.append(str(raw))
    return valid, invalid


async def bulk_update(
    session: AsyncSession,
    actor: User,
    warranty_ids: list[str],
    update_data: BulkUpdateData,
) -> BulkUpdateResult:
    """
    Apply the same admin fields to many warranties.

    All ids are validated before anything is written. The write itself is a
    single multi-row UPDATE with no per-record guarantees; ``matched_count``
    and ``modified_count`` report what happened.
    """
    require(actor, ResourceKind.WARRANTY, Action.ADMIN_MUTATE)

    if not warranty_ids:
        raise ValidationError("Warranty IDs array is required")

    ids, invalid_ids = split_ids(warranty_ids)
    if invalid_ids:
        raise ValidationError(
            "Invalid warranty IDs found",
            errors=[
                {"field": "warranty_ids", "message": "Must be a valid identifier", "value": raw}
                for raw in invalid_ids
            ],
            invalid_ids=invalid_ids,
        )

    changes = update_data.model_dump(exclude_unset=True)
    if "assigned_to" in changes:
        changes["assigned_to_id"] = changes.pop("assigned_to")
    if not changes:
        raise ValidationError("Update data is required")
    _reject_nulls(changes, NOT_NULL_ADMIN_FIELDS)

    if "assigned_to_id" in changes:
        await _check_assignee(session, actor, Action.ADMIN_MUTATE, changes["assigned_to_id"])

    matched = await session.execute(
        select(func.count()).select_from(Warranty).where(Warranty.id.in_(ids))
    )
    matched_count = matched.scalar_one()

    differs = or_(*(
        getattr(Warranty, name).is_distinct_from(value) for name, value in changes.items()
    ))
    async with store_errors(session, "bulk update warranties"):
        result = await session.execute(
            update(Warranty)
            .where(Warranty.id.in_(ids), differs)
            .values(**changes, version=Warranty.version + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
    modified_count = result.rowcount
    await _commit(session, "bulk update warranties")

    # Loaded instances of the updated rows are stale
    touched = set(ids)
    for instance in list(session.identity_map.values()):
        if isinstance(instance, Warranty) and instance.id in touched:
            await session.refresh(instance)

    logger.info(
        "Bulk update by %s: %s matched, %s modified, fields %s",
        actor.id,
        matched_count,
        modified_count,
        sorted(changes),
    )
    return BulkUpdateResult(matched_count=matched_count, modified_count=modified_count)
