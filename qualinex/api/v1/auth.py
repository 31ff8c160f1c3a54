"""
Authentication endpoints.

Handles user registration, login, profile and token management.
"""

from datetime import timedelta
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm

from qualinex.core.config import settings
from qualinex.core.security import Token, create_access_token
from qualinex.models.user import (
    PasswordChange,
    ProfileUpdate,
    User,
    UserCreate,
    UserPayload,
    UserRead,
    UserResponse,
)
from qualinex.models.warranty import MessageResponse
from qualinex.api.deps import CurrentUser, DbSession
from qualinex.services import users

router = APIRouter()


def _user_response(user: User, message: Optional[str] = None) -> UserResponse:
    return UserResponse(message=message, data=UserPayload(user=UserRead.model_validate(user)))


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserCreate, db: DbSession):
    """
    Register a new user.

    Args:
        user_in: User registration data.
        db: Database session.

    Returns:
        UserResponse: Created user data.

    Raises:
        ConflictError: If email already registered.
        ValidationError: If the password is too weak.
    """
    user = await users.register_user(db, user_in)
    return _user_response(user, "User registered successfully")


@router.post("/login", response_model=Token)
async def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: DbSession,
):
    """
    Authenticate user and return access token.

    The body keeps the plain OAuth2 token shape so standard clients can use it.

    Args:
        form_data: OAuth2 form with username (email) and password.
        db: Database session.

    Returns:
        Token: JWT access token.
    """
    user = await users.authenticate(db, form_data.username, form_data.password)

    access_token = create_access_token(
        data={
            "sub": user.id,
            "email": user.email,
            "role": user.role.value,
        },
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )

    return Token(access_token=access_token)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: CurrentUser):
    """Get current authenticated user's information."""
    return _user_response(current_user)


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: CurrentUser):
    return _user_response(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(profile: ProfileUpdate, current_user: CurrentUser, db: DbSession):
    """Update the caller's display name or avatar."""
    user = await users.update_profile(db, current_user, profile)
    return _user_response(user, "Profile updated successfully")


@router.put("/change-password", response_model=MessageResponse)
async def change_password(payload: PasswordChange, current_user: CurrentUser, db: DbSession):
    await users.change_password(db, current_user, payload)
    return MessageResponse(message="Password changed successfully")


@router.post("/create-admin", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_first_admin(user_in: UserCreate, db: DbSession):
    """
    Create the first admin user.

    This endpoint only works if no admin users exist yet.
    Use this for initial setup.
    """
    user = await users.ensure_admin(db, user_in)
    return _user_response(user, "Admin user created successfully")
