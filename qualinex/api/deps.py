"""
API Dependencies.

Shared dependencies for authentication, database sessions and list parameters.
"""

from typing import Annotated, Optional

import pydantic
from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from qualinex.core.database import get_db
from qualinex.core.errors import ForbiddenError, ValidationError
from qualinex.core.security import decode_access_token
from qualinex.models.user import User
from qualinex.services.access_policy import DENY_MESSAGES, Action, DenyReason, ResourceKind, require
from qualinex.services.warranty.query_builder import WarrantyListParams

# OAuth2 scheme for token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def get_current_user(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Dependency to get the current authenticated user.

    Args:
        token: JWT access token from the Authorization header.
        db: Database session.

    Returns:
        User: The authenticated user.

    Raises:
        HTTPException: If token is invalid or the user is not found.
        ForbiddenError: If the account is disabled.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    token_data = decode_access_token(token)
    if token_data is None or token_data.user_id is None:
        raise credentials_exception

    user = await db.get(User, token_data.user_id)
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise ForbiddenError(DenyReason.INACTIVE.value, DENY_MESSAGES[DenyReason.INACTIVE])

    return user


async def get_optional_user(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Optional[User]:
    """
    Dependency to get the current user if authenticated, otherwise None.
    Used for public endpoints such as the warranty code lookup.
    """
    if not token:
        return None

    try:
        return await get_current_user(token, db)
    except (HTTPException, ForbiddenError):
        return None


async def get_current_admin_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """
    Dependency to ensure current user is an admin.

    Raises:
        ForbiddenError: If user is not an admin.
    """
    require(current_user, ResourceKind.USER, Action.ADMIN_ACCESS)
    return current_user


def _lenient_int(value: Optional[str]) -> Optional[int]:
    # Unparseable paging values fall back to the defaults
    try:
        return int(value) if value else None
    except ValueError:
        return None


async def get_list_params(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    priority: Optional[str] = None,
    category: Optional[str] = None,
    warranty_type: Annotated[Optional[str], Query(alias="warrantyType")] = None,
    start_date: Annotated[Optional[str], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[str], Query(alias="endDate")] = None,
    assigned_to: Annotated[Optional[str], Query(alias="assignedTo")] = None,
    owner: Optional[str] = None,
    unassigned: bool = False,
    search: Optional[str] = None,
    sort_by: Annotated[Optional[str], Query(alias="sortBy")] = None,
    sort_order: Annotated[Optional[str], Query(alias="sortOrder")] = None,
) -> WarrantyListParams:
    """
    Collect list/search query parameters.

    Values arrive as raw strings and are validated together so that every
    bad parameter is reported in one response.
    """
    raw = {
        "page": _lenient_int(page),
        "limit": _lenient_int(limit),
        "status": status_filter,
        "priority": priority,
        "category": category,
        "warranty_type": warranty_type,
        "start_date": start_date,
        "end_date": end_date,
        "assigned_to": assigned_to,
        "owner": owner,
        "unassigned": unassigned,
        "search": search,
        "sort_by": sort_by,
        "sort_order": sort_order,
    }
    try:
        return WarrantyListParams(**{key: value for key, value in raw.items() if value not in (None, "")})
    except pydantic.ValidationError as exc:
        raise ValidationError(
            "Invalid query parameters",
            errors=[
                {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                for error in exc.errors()
            ],
        )


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(get_current_admin_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
ListParams = Annotated[WarrantyListParams, Depends(get_list_params)]
