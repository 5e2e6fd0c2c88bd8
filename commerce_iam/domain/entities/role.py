"""
Role Entity

Named bundle of capabilities assigned to users.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel


class Role(SQLModel, table=True):
    """
    Role entity.

    Business Rules:
    - Name is unique and stored upper-cased
    - SUPER ADMIN is protected: never assignable, never deletable
    - System roles cannot be deleted
    - A role still assigned to users cannot be deleted
    """

    __tablename__ = "roles"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(unique=True, index=True, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    created_by_id: Optional[UUID] = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
