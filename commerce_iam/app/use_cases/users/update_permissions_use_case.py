"""
Update User Permissions Use Case

Directly edits the capability flags of an actor.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.app.errors import dependency_error, not_found, validation_error
from commerce_iam.app.services.authorization import AuthorizationEvaluator, GuardContext
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.domain.capabilities import CAPABILITIES
from commerce_iam.domain.entities import Action, Permission
from commerce_iam.libs.result import Result, Return
from .caller import resolve_caller
from .dtos import PermissionInput, PermissionsResponse

logger = logging.getLogger(__name__)


class UpdatePermissionsUseCase:
    """
    Use case for editing an actor's permissions.

    Business Rules:
    - Caller needs Permission.update
    - Guard chain applies: protected role, self, peer tier
    - Capability names must come from the catalog
    - access_all grants every flag on every capability
    - Capabilities not mentioned keep their current flags
    """

    def __init__(
        self,
        uow: UnitOfWork,
        session_cache: SessionCacheManager,
        evaluator: Optional[AuthorizationEvaluator] = None,
    ):
        self.uow = uow
        self.session_cache = session_cache
        self.evaluator = evaluator or AuthorizationEvaluator()

    async def execute(
        self,
        caller_id: UUID,
        target_id: UUID,
        permissions: List[PermissionInput],
        access_all: bool = False,
    ) -> Result[PermissionsResponse]:
        if access_all:
            permissions = [
                PermissionInput(
                    name=name,
                    can_create=True,
                    can_read=True,
                    can_update=True,
                    can_delete=True,
                    description="All permissions granted",
                )
                for name in CAPABILITIES
            ]

        errors = [
            {"field": f"permissions.{i}.name", "message": f"Unknown permission name: {p.name}"}
            for i, p in enumerate(permissions)
            if p.name not in CAPABILITIES
        ]
        if not permissions:
            errors.append({"field": "permissions", "message": "At least one permission is required"})
        if errors:
            return Return.err(validation_error(errors))

        try:
            async with self.uow:
                caller = await resolve_caller(self.session_cache, caller_id)
                if caller.is_err():
                    return Return.err(caller.error)

                allowed = self.evaluator.require(
                    caller.value.permissions,
                    [("Permission", Action.update)],
                    "You do not have permission to update user permissions",
                )
                if allowed.is_err():
                    return Return.err(allowed.error)

                row = await self.uow.users.get_with_role_by_id(target_id)
                if row is None:
                    return Return.err(not_found("User not found"))
                target, target_role = row

                guarded = self.evaluator.check_guards(
                    GuardContext(
                        caller_id=caller_id,
                        caller_role=caller.value.role,
                        target_id=target.id,
                        target_role=target_role.name if target_role else None,
                    ),
                    subject="permission",
                )
                if guarded.is_err():
                    return Return.err(guarded.error)

                current = {p.name: p for p in await self.uow.permissions.list_by_actor(target.id)}
                for requested in permissions:
                    row = current.get(requested.name)
                    if row is None:
                        row = Permission(
                            name=requested.name, actor_id=target.id, created_by_id=caller_id
                        )
                        current[requested.name] = row
                    row.can_create = requested.can_create
                    row.can_read = requested.can_read
                    row.can_update = requested.can_update
                    row.can_delete = requested.can_delete
                    if requested.description is not None:
                        row.description = requested.description

                rows = await self.uow.permissions.save_all(list(current.values()))
                await self.uow.commit()

                projections = await self.session_cache.write_permissions(target.id, rows)
        except SQLAlchemyError as e:
            logger.error(f"Permission update for {target_id} failed on persistence: {e}")
            return Return.err(dependency_error("Failed to update permissions"))

        logger.info(f"Actor {caller_id} updated permissions of {target_id}")
        return Return.ok(
            PermissionsResponse(
                message="User permissions updated successfully", permissions=projections
            )
        )
