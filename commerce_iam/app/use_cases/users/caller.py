"""
Caller resolution shared by the privileged user and role use cases.
"""

from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

import bcrypt

from commerce_iam.app.errors import authentication_error, validation_error
from commerce_iam.app.services.projections import ActorSession, PermissionSession
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.libs.result import Result, Return


@dataclass
class Caller:
    session: ActorSession
    permissions: List[PermissionSession]

    @property
    def id(self) -> UUID:
        return self.session.id

    @property
    def role(self) -> str:
        return self.session.role or ""


async def resolve_caller(session_cache: SessionCacheManager, caller_id: UUID) -> Result[Caller]:
    """Load the authenticated actor and its permissions through the cache"""
    resolved = await session_cache.resolve_actor_by_id(caller_id)
    if resolved.is_err():
        return Return.err(authentication_error("You're not authenticated"))
    permissions = await session_cache.resolve_permissions(caller_id)
    return Return.ok(Caller(session=resolved.value, permissions=permissions))


async def confirm_password(uow: UnitOfWork, caller_id: UUID, password: Optional[str]) -> Result[None]:
    """Re-authenticate a caller by password inside an open unit of work"""
    if not password:
        return Return.err(
            validation_error([{"field": "password", "message": "Password is required"}])
        )
    user = await uow.users.get_by_id(caller_id)
    if user is None or not bcrypt.checkpw(password.encode(), user.password_hash.encode()):
        return Return.err(authentication_error("Password is incorrect"))
    return Return.ok(None)
