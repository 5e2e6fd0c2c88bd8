"""
Update Role Info Use Case

Renames a role or changes its description.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from commerce_iam.app.errors import (
    authorization_error,
    conflict,
    dependency_error,
    not_found,
    validation_error,
)
from commerce_iam.app.services.authorization import AuthorizationEvaluator, GuardKind
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.app.use_cases.users.caller import confirm_password, resolve_caller
from commerce_iam.domain.capabilities import PROTECTED_ROLES, SUPER_ADMIN, SYSTEM_ROLES
from commerce_iam.domain.entities import Action
from commerce_iam.libs.result import Result, Return
from .create_role_use_case import ROLE_NAME_MAX_LENGTH
from .dtos import RoleResponse

logger = logging.getLogger(__name__)


class UpdateRoleInfoUseCase:
    """
    Use case for editing a role's name and description.

    Business Rules:
    - Caller needs Role.update
    - Callers other than SUPER ADMIN must confirm with their password
    - Protected roles are never edited; system roles keep their name
    - A role cannot be renamed to a system role name or to a taken name
    - Trashed roles cannot be edited
    - After the commit the role cache is rewritten and every holder's cached
      projections are dropped, so the new name shows on their next read
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
        role_id: UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Result[RoleResponse]:
        """
        Execute update role info use case.

        Args:
            caller_id: Authenticated actor making the change
            role_id: Role to edit
            name: New name, normalized like on creation
            description: New description
            password: Caller's password, required unless the caller is SUPER ADMIN

        Returns:
            Result with the updated role, or Error
        """
        if name is not None:
            name = name.strip().upper()
            if not name or len(name) > ROLE_NAME_MAX_LENGTH:
                return Return.err(
                    validation_error(
                        [{"field": "name", "message": f"Role name must be 1-{ROLE_NAME_MAX_LENGTH} characters"}]
                    )
                )
        if name is None and description is None:
            return Return.err(
                validation_error([{"field": "name", "message": "Nothing to update"}])
            )

        try:
            async with self.uow:
                caller = await resolve_caller(self.session_cache, caller_id)
                if caller.is_err():
                    return Return.err(caller.error)

                allowed = self.evaluator.require(
                    caller.value.permissions,
                    [("Role", Action.update)],
                    "You do not have permission to update any user role info",
                )
                if allowed.is_err():
                    return Return.err(allowed.error)

                if caller.value.role.upper() != SUPER_ADMIN:
                    confirmed = await confirm_password(self.uow, caller_id, password)
                    if confirmed.is_err():
                        return Return.err(confirmed.error)

                role = await self.uow.roles.get_by_id(role_id, include_deleted=True)
                if role is None:
                    return Return.err(not_found(f"Role with ID {role_id} not found"))
                if role.name.upper() in PROTECTED_ROLES:
                    return Return.err(
                        authorization_error(
                            f'The role "{role.name}" is permanently protected and cannot be updated.',
                            GuardKind.protected_role.value,
                        )
                    )
                if role.deleted_at is not None:
                    return Return.err(
                        conflict(f"Role with ID {role_id} is in the trash and cannot be updated")
                    )

                renamed = name is not None and name != role.name
                if renamed:
                    if role.name.upper() in SYSTEM_ROLES:
                        return Return.err(
                            authorization_error(
                                f'The system role "{role.name}" cannot be renamed',
                                GuardKind.protected_role.value,
                            )
                        )
                    if name in SYSTEM_ROLES:
                        return Return.err(
                            authorization_error(
                                f'The name "{name}" is reserved for a system role',
                                GuardKind.protected_role.value,
                            )
                        )
                    if await self.uow.roles.get_by_name(name, include_deleted=True) is not None:
                        return Return.err(conflict(f'A role named "{name}" already exists'))
                    role.name = name
                if description is not None:
                    role.description = description

                await self.uow.roles.update(role)
                holders = await self.uow.users.list_by_role(role.id)
                await self.uow.commit()

                session = await self.session_cache.write_role(role)
                for holder in holders:
                    await self.session_cache.invalidate_actor(holder.id, holder.email)
        except IntegrityError:
            return Return.err(conflict(f'A role named "{name}" already exists'))
        except SQLAlchemyError as e:
            logger.error(f"Role update for {role_id} failed on persistence: {e}")
            return Return.err(dependency_error("Failed to update role"))

        logger.info(f"Actor {caller_id} updated role {session.name} ({len(holders)} holders refreshed)")
        return Return.ok(RoleResponse(message="Role updated successfully", role=session))
