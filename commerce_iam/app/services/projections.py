"""
Cache-safe projections of persisted entities.

Projections never carry the password hash or the reset token.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from commerce_iam.domain.entities import Gender, Permission, Role, User


class ActorSession(BaseModel):
    """Identity snapshot cached under both the id key and the email key"""

    id: UUID
    email: str
    first_name: str
    last_name: str
    gender: Optional[Gender] = None
    role_id: Optional[UUID] = None
    role: Optional[str] = None
    email_verified: bool
    is_account_activated: bool

    @classmethod
    def from_entities(cls, user: User, role: Optional[Role]) -> "ActorSession":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            gender=user.gender,
            role_id=user.role_id,
            role=role.name if role else None,
            email_verified=user.email_verified,
            is_account_activated=user.is_account_activated,
        )


class PermissionSession(BaseModel):
    name: str
    can_create: bool = False
    can_read: bool = False
    can_update: bool = False
    can_delete: bool = False
    description: Optional[str] = None

    @classmethod
    def from_entity(cls, permission: Permission) -> "PermissionSession":
        return cls(
            name=permission.name,
            can_create=permission.can_create,
            can_read=permission.can_read,
            can_update=permission.can_update,
            can_delete=permission.can_delete,
            description=permission.description,
        )


class RoleSession(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None

    @classmethod
    def from_entity(cls, role: Role) -> "RoleSession":
        return cls(id=role.id, name=role.name, description=role.description)
