"""
Permission Entity

One capability row (four CRUD flags) owned by a user.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import text
from sqlmodel import Column, DateTime, Field, Index, SQLModel


class Permission(SQLModel, table=True):
    """
    Permission entity.

    Business Rules:
    - At most one live (not soft-deleted) row per (actor, capability name)
    - Revocation zeroes the four flags instead of deleting the row
    """

    __tablename__ = "permissions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=100)
    actor_id: UUID = Field(foreign_key="users.id", index=True)

    can_create: bool = Field(default=False)
    can_read: bool = Field(default=False)
    can_update: bool = Field(default=False)
    can_delete: bool = Field(default=False)

    description: Optional[str] = Field(default=None, max_length=500)
    created_by_id: Optional[UUID] = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))

    __table_args__ = (
        Index(
            "uq_permission_actor_name_live",
            "actor_id",
            "name",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )
