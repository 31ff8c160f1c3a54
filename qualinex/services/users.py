"""
Identity store operations: registration, login, profile and admin bootstrap.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from qualinex.core.database import store_errors
from qualinex.core.errors import AuthenticationError, ConflictError, ForbiddenError, ValidationError
from qualinex.core.security import check_password_strength, get_password_hash, verify_password
from qualinex.models.user import (
    AdminSummary,
    PasswordChange,
    ProfileUpdate,
    User,
    UserCreate,
    UserRole,
    normalize_email,
    utcnow,
)
from qualinex.services.access_policy import DENY_MESSAGES, DenyReason

logger = logging.getLogger(__name__)


def _check_password(password: str, field: str = "password") -> None:
    problem = check_password_strength(password)
    if problem:
        raise ValidationError(problem, errors=[{"field": field, "message": problem}])


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def register_user(
    session: AsyncSession,
    user_in: UserCreate,
    role: UserRole = UserRole.USER,
) -> User:
    """
    Create a local (password) account.

    Raises:
        ValidationError: If the password is too weak.
        ConflictError: If the email is already registered.
    """
    _check_password(user_in.password)

    if await get_user_by_email(session, user_in.email):
        raise ConflictError("Email already registered")

    user = User.local(
        email=user_in.email,
        full_name=user_in.full_name,
        hashed_password=get_password_hash(user_in.password),
        role=role,
    )
    session.add(user)
    async with store_errors(session, "register user", conflict_message="Email already registered"):
        await session.commit()
    await session.refresh(user)

    logger.info("Registered %s user %s", role.value, user.id)
    return user


async def authenticate(session: AsyncSession, email: str, password: str) -> User:
    """
    Check credentials and stamp ``last_login``.

    Raises:
        AuthenticationError: Unknown email or wrong password.
        ForbiddenError: The account is disabled.
    """
    user = await get_user_by_email(session, email)
    if not user or not verify_password(password, user.hashed_password):
        logger.info("Failed login for %s", normalize_email(email))
        raise AuthenticationError("Incorrect email or password")

    if not user.is_active:
        raise ForbiddenError(DenyReason.INACTIVE.value, DENY_MESSAGES[DenyReason.INACTIVE])

    user.last_login = utcnow()
    session.add(user)
    async with store_errors(session, "record login"):
        await session.commit()
    await session.refresh(user)
    return user


async def update_profile(session: AsyncSession, user: User, profile: ProfileUpdate) -> User:
    changes = profile.model_dump(exclude_unset=True)
    if changes.get("full_name") is None:
        changes.pop("full_name", None)

    for key, value in changes.items():
        setattr(user, key, value)
    user.updated_at = utcnow()

    session.add(user)
    async with store_errors(session, "update profile"):
        await session.commit()
    await session.refresh(user)
    return user


async def change_password(session: AsyncSession, user: User, payload: PasswordChange) -> None:
    """
    Replace the caller's password.

    Federated accounts have no password to change and are rejected like a
    wrong current password.
    """
    if not verify_password(payload.current_password, user.hashed_password):
        raise ValidationError(
            "Current password is incorrect",
            errors=[{"field": "current_password", "message": "Current password is incorrect"}],
        )
    _check_password(payload.new_password, field="new_password")

    user.hashed_password = get_password_hash(payload.new_password)
    user.updated_at = utcnow()
    session.add(user)
    async with store_errors(session, "change password"):
        await session.commit()
    logger.info("Password changed for user %s", user.id)


async def admin_exists(session: AsyncSession) -> bool:
    result = await session.execute(select(User.id).where(User.role == UserRole.ADMIN).limit(1))
    return result.first() is not None


async def ensure_admin(session: AsyncSession, user_in: UserCreate) -> User:
    """
    Create the first admin account.

    Only allowed while no admin exists; afterwards admins are promoted
    through the database.
    """
    if await admin_exists(session):
        raise ValidationError("Admin user already exists. Use regular registration.")
    return await register_user(session, user_in, role=UserRole.ADMIN)


async def list_active_admins(session: AsyncSession) -> list[AdminSummary]:
    """Active administrators, the candidates for assignment."""
    result = await session.execute(
        select(User)
        .where(User.role == UserRole.ADMIN, User.is_active.is_(True))
        .order_by(User.full_name)
    )
    return [AdminSummary.model_validate(user) for user in result.scalars().all()]
