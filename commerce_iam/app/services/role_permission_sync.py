"""
Role-Permission Synchronizer

Rewrites an actor's permission rows to match the predefined matrix of the
role they are assigned to.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional
from uuid import UUID

from commerce_iam.app.services.projections import ActorSession, PermissionSession
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.domain.capabilities import catalog_order, matrix_for
from commerce_iam.domain.entities import Permission, Role, User

logger = logging.getLogger(__name__)

_FLAGS = ("can_create", "can_read", "can_update", "can_delete")


@dataclass(frozen=True)
class PermissionChange:
    name: str
    can_create: bool
    can_read: bool
    can_update: bool
    can_delete: bool
    description: str
    revoked: bool = False


@dataclass
class SyncOutcome:
    actor: ActorSession
    permissions: List[PermissionSession]
    synced: bool



def plan_permission_rewrite(
    role_name: str, current: List[Permission]
) -> Optional[List[PermissionChange]]:
    """
    Target state of an actor's permissions for a role.

    Every capability in the union of current rows and matrix entries gets one
    change: matrix entries take the matrix flags, current-only entries are
    zeroed. Returns None for a custom role, whose rows stay untouched.
    """
    matrix = matrix_for(role_name)
    if matrix is None:
        return None

    role_label = role_name.upper()
    names = set(matrix) | {p.name for p in current}
    plan = []
    for name in sorted(names, key=catalog_order):
        flags = matrix.get(name)
        if flags is not None:
            plan.append(
                PermissionChange(
                    name=name,
                    description=f"{name} permissions of the {role_label} role",
                    **flags,
                )
            )
        else:
            plan.append(
                PermissionChange(
                    name=name,
                    can_create=False,
                    can_read=False,
                    can_update=False,
                    can_delete=False,
                    description=f"{name} permissions revoked on assignment to the {role_label} role",
                    revoked=True,
                )
            )
    return plan


def apply_plan(
    actor_id: UUID,
    current: List[Permission],
    plan: List[PermissionChange],
    changed_by: Optional[UUID] = None,
) -> List[Permission]:
    """Mutate existing rows in place and create the missing ones"""
    by_name: Dict[str, Permission] = {p.name: p for p in current}
    rows = []
    for change in plan:
        row = by_name.get(change.name)
        if row is None:
            row = Permission(name=change.name, actor_id=actor_id, created_by_id=changed_by)
        for flag in _FLAGS:
            setattr(row, flag, getattr(change, flag))
        row.description = change.description
        rows.append(row)
    return rows


class RolePermissionSynchronizer:
    """
    Role reassignment with permission rewrite.

    Business Rules:
    - Matrix roles: the actor ends with exactly the matrix, other capabilities zeroed
    - Custom roles: existing permission rows are left as they are
    - Role field and permission rows are committed together
    - Cache entries are overwritten only after the commit succeeded
    """

    def __init__(self, uow: UnitOfWork, session_cache: SessionCacheManager):
        self.uow = uow
        self.session_cache = session_cache

    async def seed(self, actor: User, role: Role, created_by: Optional[UUID] = None) -> List[Permission]:
        """Create matrix rows for a freshly created actor (no commit)"""
        plan = plan_permission_rewrite(role.name, []) or []
        rows = apply_plan(actor.id, [], plan, created_by)
        if rows:
            await self.uow.permissions.save_all(rows)
        return rows

    async def reassign(self, actor: User, role: Role, changed_by: Optional[UUID] = None) -> SyncOutcome:
        """
        Assign ``role`` to ``actor`` and commit.

        Args:
            actor: Persisted actor loaded in the current unit of work
            role: Target role
            changed_by: Actor performing the change

        Returns:
            SyncOutcome with the refreshed projections
        """
        current = await self.uow.permissions.list_by_actor(actor.id)
        plan = plan_permission_rewrite(role.name, current)

        actor.role_id = role.id
        await self.uow.users.update(actor)

        if plan is not None:
            rows = apply_plan(actor.id, current, plan, changed_by)
            await self.uow.permissions.save_all(rows)
        else:
            rows = current

        await self.uow.commit()
        logger.info(
            f"Reassigned actor {actor.id} to role {role.name} (permissions synced: {plan is not None})"
        )

        # Actor first: a reader never pairs the new permissions with the old role
        session = await self.session_cache.write_actor(actor, role)
        permissions = await self.session_cache.write_permissions(actor.id, rows)
        return SyncOutcome(actor=session, permissions=permissions, synced=plan is not None)
