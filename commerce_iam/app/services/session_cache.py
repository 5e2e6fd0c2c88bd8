"""
Session Cache Manager

Cache-aside reads and write-through updates for the actor, role and
permission projections.
"""

import logging
from typing import Iterable, List, Optional
from uuid import UUID

from pydantic import TypeAdapter, ValidationError

from commerce_iam.app.errors import not_found
from commerce_iam.app.services.cache import CacheError, ICache
from commerce_iam.app.services.projections import ActorSession, PermissionSession, RoleSession
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.domain.capabilities import catalog_order
from commerce_iam.domain.entities import Permission, Role, User
from commerce_iam.libs.result import Result, Return

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = 30 * 24 * 60 * 60

_permission_list = TypeAdapter(List[PermissionSession])


def actor_id_key(actor_id) -> str:
    return f"session:user:{actor_id}"


def actor_email_key(email: str) -> str:
    return f"session:email:{email.lower()}"


def permissions_key(actor_id) -> str:
    return f"permissions:user:{actor_id}"


def role_key(role_id) -> str:
    return f"role:{role_id}"


class SessionCacheManager:
    """
    Cache-aside projection of identity data backed by the relational store.

    Business Rules:
    - Reads try the cache first; on a miss they load from persistence and populate
    - Cache faults on reads are logged and fall back to persistence
    - Writes happen only after the persistence write is committed
    - An actor is cached under its id and its email; both keys are always
      rewritten together and an email change removes the old email key
    - Permission lists are cached in catalog order whichever path wrote them
    - A cache write that fails is followed by a delete so a stale copy
      cannot outlive the committed state
    """

    def __init__(self, uow: UnitOfWork, cache: ICache, ttl: int = DEFAULT_SESSION_TTL):
        self.uow = uow
        self.cache = cache
        self.ttl = ttl

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def resolve_actor_by_id(self, actor_id: UUID) -> Result[ActorSession]:
        cached = await self._read(actor_id_key(actor_id))
        session = self._parse_actor(cached)
        if session is not None:
            return Return.ok(session)

        row = await self.uow.users.get_with_role_by_id(actor_id)
        if row is None:
            return Return.err(not_found("User not found"))

        user, role = row
        return Return.ok(await self.write_actor(user, role))

    async def resolve_actor_by_email(self, email: str) -> Result[ActorSession]:
        cached = await self._read(actor_email_key(email))
        session = self._parse_actor(cached)
        if session is not None:
            return Return.ok(session)

        row = await self.uow.users.get_with_role_by_email(email)
        if row is None:
            return Return.err(not_found("User not found"))

        user, role = row
        return Return.ok(await self.write_actor(user, role))

    async def resolve_permissions(
        self, actor_id: UUID, name: Optional[str] = None
    ) -> List[PermissionSession]:
        """
        Permission projections of an actor.

        Args:
            actor_id: Actor whose permissions are resolved
            name: Optional capability name to scope the result to

        Returns:
            List of permission projections (possibly empty)
        """
        cached = await self._read(permissions_key(actor_id))
        permissions = None
        if cached is not None:
            try:
                permissions = _permission_list.validate_python(cached)
            except ValidationError:
                logger.warning(f"Discarding malformed permission cache entry for {actor_id}")

        if permissions is None:
            rows = await self.uow.permissions.list_by_actor(actor_id)
            permissions = await self.write_permissions(actor_id, rows)

        if name is not None:
            return [p for p in permissions if p.name == name]
        return permissions

    async def resolve_role(self, role_id: UUID) -> Result[RoleSession]:
        cached = await self._read(role_key(role_id))
        if cached is not None:
            try:
                return Return.ok(RoleSession.model_validate(cached))
            except ValidationError:
                logger.warning(f"Discarding malformed role cache entry for {role_id}")

        role = await self.uow.roles.get_by_id(role_id)
        if role is None:
            return Return.err(not_found("Role not found"))
        return Return.ok(await self.write_role(role))

    # ------------------------------------------------------------------
    # Write-through
    # ------------------------------------------------------------------

    async def write_actor(
        self, user: User, role: Optional[Role], previous_email: Optional[str] = None
    ) -> ActorSession:
        session = ActorSession.from_entities(user, role)
        payload = session.model_dump(mode="json")

        if previous_email and previous_email.lower() != user.email.lower():
            await self._delete(actor_email_key(previous_email))

        await self._write(actor_id_key(user.id), payload)
        await self._write(actor_email_key(user.email), payload)
        return session

    async def write_permissions(
        self, actor_id: UUID, rows: Iterable[Permission]
    ) -> List[PermissionSession]:
        live = sorted(
            (row for row in rows if row.deleted_at is None), key=lambda row: catalog_order(row.name)
        )
        permissions = [PermissionSession.from_entity(row) for row in live]
        await self._write(
            permissions_key(actor_id), [p.model_dump(mode="json") for p in permissions]
        )
        return permissions

    async def write_role(self, role: Role) -> RoleSession:
        session = RoleSession.from_entity(role)
        await self._write(role_key(role.id), session.model_dump(mode="json"))
        return session

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    async def invalidate_actor(self, actor_id: UUID, email: str) -> None:
        """Drop every projection key owned by an actor"""
        await self._delete(actor_id_key(actor_id))
        await self._delete(actor_email_key(email))
        await self._delete(permissions_key(actor_id))

    async def invalidate_role(self, role_id: UUID) -> None:
        await self._delete(role_key(role_id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _parse_actor(self, cached) -> Optional[ActorSession]:
        if cached is None:
            return None
        try:
            return ActorSession.model_validate(cached)
        except ValidationError:
            logger.warning("Discarding malformed actor cache entry")
            return None

    async def _read(self, key: str):
        try:
            return await self.cache.get(key)
        except CacheError as e:
            logger.warning(f"Cache read degraded for {key}, falling back to persistence: {e}")
            return None

    async def _write(self, key: str, value) -> None:
        try:
            await self.cache.set(key, value, self.ttl)
        except CacheError as e:
            logger.error(f"Cache write failed for {key}: {e}")
            await self._delete(key)

    async def _delete(self, key: str) -> None:
        try:
            await self.cache.delete(key)
        except CacheError as e:
            logger.error(f"Cache delete failed for {key}, entry lives until TTL: {e}")
