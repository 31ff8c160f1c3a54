"""
User model for authentication and authorization.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, EmailStr, field_validator
from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_email(email: str) -> str:
    """Emails are stored trimmed and lower-cased."""
    return email.strip().lower()


class UserRole(str, Enum):
    """User role enumeration."""
    ADMIN = "admin"
    USER = "user"


class LocalIdentity(BaseModel):
    """Password-authenticated account."""
    hashed_password: str


class FederatedIdentity(BaseModel):
    """Account authenticated by an external identity provider."""
    provider: str
    external_id: str


class UserBase(SQLModel):
    """Base user fields shared across schemas."""
    email: str = Field(unique=True, index=True, max_length=255)
    full_name: str = Field(max_length=50)
    is_active: bool = True
    role: UserRole = Field(default=UserRole.USER, index=True)


class User(UserBase, table=True):
    """
    User database model.

    A user is either local (has ``hashed_password``) or federated (has
    ``external_id``). Build instances with :meth:`local` or :meth:`federated`
    so the rule holds before the row reaches the database; the CHECK
    constraint backs it up in the store.

    Attributes:
        id: Primary key.
        email: Unique, normalized email address.
        full_name: Display name.
        hashed_password: Bcrypt hash, absent for federated accounts.
        external_id: Identity provider subject, unique when present.
        external_provider: Identity provider name (e.g. "google").
        is_active: Whether user can log in or be assigned work.
        role: User role (admin or user).
        last_login: Timestamp of the last successful login.
        email_verified: Whether the email address was verified.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "hashed_password IS NOT NULL OR external_id IS NOT NULL",
            name="ck_users_credential_or_external_id",
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    hashed_password: Optional[str] = None
    external_id: Optional[str] = Field(default=None, unique=True, index=True)
    external_provider: Optional[str] = None
    avatar: Optional[str] = None
    last_login: Optional[datetime] = None
    email_verified: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def local(
        cls,
        email: str,
        full_name: str,
        hashed_password: str,
        role: UserRole = UserRole.USER,
        **kwargs,
    ) -> "User":
        """Create a password-authenticated user."""
        if not hashed_password:
            raise ValueError("Local users require a password hash")
        return cls(
            email=normalize_email(email),
            full_name=full_name.strip(),
            hashed_password=hashed_password,
            role=role,
            **kwargs,
        )

    @classmethod
    def federated(
        cls,
        email: str,
        full_name: str,
        external_id: str,
        provider: str = "google",
        role: UserRole = UserRole.USER,
        **kwargs,
    ) -> "User":
        """Create a user authenticated by an external identity provider."""
        if not external_id:
            raise ValueError("Federated users require an external identity reference")
        return cls(
            email=normalize_email(email),
            full_name=full_name.strip(),
            external_id=external_id,
            external_provider=provider,
            email_verified=True,
            role=role,
            **kwargs,
        )

    @property
    def identity(self) -> Union[LocalIdentity, FederatedIdentity]:
        if self.external_id:
            return FederatedIdentity(
                provider=self.external_provider or "external",
                external_id=self.external_id,
            )
        return LocalIdentity(hashed_password=self.hashed_password)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserCreate(SQLModel):
    """Schema for registering a new user."""
    email: EmailStr
    password: str
    full_name: str = Field(min_length=1, max_length=50)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value):
        return normalize_email(value) if isinstance(value, str) else value

    @field_validator("full_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Full name is required")
        return value


class UserRead(UserBase):
    """Schema for reading user data (no password)."""
    id: uuid.UUID
    email_verified: bool
    external_provider: Optional[str] = None
    avatar: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: datetime


class UserPublic(SQLModel):
    """Public-safe projection embedded in warranty responses."""
    id: uuid.UUID
    full_name: str
    email: str


class ProfileUpdate(SQLModel):
    """Schema for updating the caller's own profile."""
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    avatar: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def _strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Full name must be between 1 and 50 characters")
        return value


class PasswordChange(SQLModel):
    current_password: str = Field(min_length=1)
    new_password: str


class AdminSummary(SQLModel):
    """Entry of the active administrators list."""
    id: uuid.UUID
    full_name: str
    email: str
    last_login: Optional[datetime] = None
    created_at: datetime


class UserPayload(SQLModel):
    user: UserRead


class UserResponse(SQLModel):
    success: bool = True
    message: Optional[str] = None
    data: UserPayload


class AdminList(SQLModel):
    admins: list[AdminSummary]


class AdminListResponse(SQLModel):
    success: bool = True
    data: AdminList
