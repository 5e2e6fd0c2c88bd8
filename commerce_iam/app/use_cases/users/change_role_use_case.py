"""
Change User Role Use Case

Assigns a new role to an actor and rewrites their permissions.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.app.errors import (
    authorization_error,
    conflict,
    dependency_error,
    not_found,
)
from commerce_iam.app.services.authorization import (
    AuthorizationEvaluator,
    GuardContext,
    GuardKind,
)
from commerce_iam.app.services.role_permission_sync import RolePermissionSynchronizer
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.domain.capabilities import PROTECTED_ROLES, SUPER_ADMIN
from commerce_iam.domain.entities import Action
from commerce_iam.libs.result import Result, Return
from .caller import confirm_password, resolve_caller
from .dtos import ChangeRoleResponse

logger = logging.getLogger(__name__)


class ChangeRoleUseCase:
    """
    Use case for changing an actor's role.

    Business Rules:
    - Caller needs User.update and Permission.update
    - Callers other than SUPER ADMIN must confirm with their password
    - Guard chain applies: protected role, self, peer tier
    - SUPER ADMIN can never be assigned; trashed roles cannot be assigned
    - Matrix roles rewrite the target's permissions, custom roles keep them
    - Role and permissions are committed together, cache refreshed afterwards
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
        role_id: UUID,
        password: Optional[str] = None,
    ) -> Result[ChangeRoleResponse]:
        """
        Execute change role use case.

        Args:
            caller_id: Authenticated actor making the change
            target_id: Actor whose role is changed
            role_id: Role to assign
            password: Caller's password, required unless the caller is SUPER ADMIN

        Returns:
            Result with the refreshed actor and permissions, or Error
        """
        try:
            async with self.uow:
                caller_result = await resolve_caller(self.session_cache, caller_id)
                if caller_result.is_err():
                    return Return.err(caller_result.error)
                caller = caller_result.value

                allowed = self.evaluator.require(
                    caller.permissions,
                    [("User", Action.update), ("Permission", Action.update)],
                    "You do not have permission to change user roles",
                )
                if allowed.is_err():
                    return Return.err(allowed.error)

                if caller.role.upper() != SUPER_ADMIN:
                    confirmed = await confirm_password(self.uow, caller_id, password)
                    if confirmed.is_err():
                        return Return.err(confirmed.error)

                row = await self.uow.users.get_with_role_by_id(target_id)
                if row is None:
                    return Return.err(not_found("User not found"))
                target, current_role = row

                guarded = self.evaluator.check_guards(
                    GuardContext(
                        caller_id=caller.id,
                        caller_role=caller.role,
                        target_id=target.id,
                        target_role=current_role.name if current_role else None,
                    ),
                    subject="role",
                )
                if guarded.is_err():
                    return Return.err(guarded.error)

                role = await self.uow.roles.get_by_id(role_id, include_deleted=True)
                if role is None:
                    return Return.err(not_found(f"Role with ID {role_id} not found"))
                if role.deleted_at is not None:
                    return Return.err(
                        conflict(f"Role with ID {role_id} is in the trash and cannot be assigned")
                    )
                if role.name.upper() in PROTECTED_ROLES:
                    return Return.err(
                        authorization_error(
                            f"Cannot assign {role.name} role to any user",
                            GuardKind.protected_role.value,
                        )
                    )
                if current_role is not None and current_role.id == role.id:
                    return Return.err(conflict(f"User already has the {role.name} role"))

                synchronizer = RolePermissionSynchronizer(self.uow, self.session_cache)
                outcome = await synchronizer.reassign(target, role, changed_by=caller.id)
        except SQLAlchemyError as e:
            logger.error(f"Role change for {target_id} failed on persistence: {e}")
            return Return.err(dependency_error("Failed to change user role"))

        if outcome.synced:
            message = "User role and permissions updated successfully"
        else:
            message = "User role updated successfully, permissions unchanged for custom role"

        return Return.ok(
            ChangeRoleResponse(
                message=message, user=outcome.actor, permissions=outcome.permissions
            )
        )
