"""
User Entity

Represents an actor: a person who authenticates against the platform.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from .enums import Gender


class User(SQLModel, table=True):
    """
    User entity - the authenticated identity behind every request.

    Business Rules:
    - Email must be unique across all users
    - Password stored as bcrypt hash (cost factor 12)
    - Login requires the email to be verified or the account to be activated
    - Password reset token is stored as a SHA-256 hash and always carries an expiry
    - Soft-deleted users (deleted_at set) are invisible to lookups
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    first_name: str = Field(max_length=50)
    last_name: str = Field(max_length=50)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars
    gender: Optional[Gender] = Field(default=None)

    role_id: Optional[UUID] = Field(default=None, foreign_key="roles.id", index=True)

    email_verified: bool = Field(default=False)
    is_account_activated: bool = Field(default=False)

    # Password reset lifecycle
    reset_password_token: Optional[str] = Field(
        default=None, unique=True, index=True, max_length=64
    )
    reset_password_token_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))

    __table_args__ = (Index("idx_user_email_verified", "email_verified"),)
