"""
Delete Roles Use Case

Moves roles to the trash, or removes them for good with skip_trash.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

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
from commerce_iam.app.use_cases.users.caller import resolve_caller
from commerce_iam.domain.capabilities import SYSTEM_ROLES
from commerce_iam.domain.entities import Action
from commerce_iam.libs.result import Result, Return
from .dtos import DeleteRolesResponse

logger = logging.getLogger(__name__)


class DeleteRolesUseCase:
    """
    Use case for deleting roles.

    Business Rules:
    - Caller needs Role.delete, whatever else the request says
    - System roles (SUPER ADMIN included) are never deleted
    - Roles still assigned to users cannot be deleted
    - Default is a soft delete; skip_trash deletes permanently
    - All roles in the request are deleted or none is
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
        self, caller_id: UUID, role_ids: List[UUID], skip_trash: bool = False
    ) -> Result[DeleteRolesResponse]:
        if not role_ids:
            return Return.err(
                validation_error([{"field": "ids", "message": "At least one role id is required"}])
            )

        try:
            async with self.uow:
                caller = await resolve_caller(self.session_cache, caller_id)
                if caller.is_err():
                    return Return.err(caller.error)

                allowed = self.evaluator.require(
                    caller.value.permissions,
                    [("Role", Action.delete)],
                    "You do not have permission to delete role(s)",
                )
                if allowed.is_err():
                    return Return.err(allowed.error)

                roles = await self.uow.roles.get_by_ids(list(set(role_ids)))
                missing = set(role_ids) - {role.id for role in roles}
                if missing:
                    ids = ", ".join(sorted(str(i) for i in missing))
                    return Return.err(not_found(f"Role(s) not found: {ids}"))

                for role in roles:
                    if role.name.upper() in SYSTEM_ROLES:
                        return Return.err(
                            authorization_error(
                                f'The role "{role.name}" is protected and cannot be deleted',
                                GuardKind.protected_role.value,
                            )
                        )
                    if await self.uow.users.count_by_role(role.id) > 0:
                        return Return.err(
                            conflict("Role is associated with existing users and cannot be deleted")
                        )
                    if role.deleted_at is not None and not skip_trash:
                        return Return.err(conflict(f'The role "{role.name}" is already in the trash'))

                names = [role.name for role in roles]
                for role in roles:
                    if skip_trash:
                        await self.uow.roles.delete(role)
                    else:
                        role.deleted_at = datetime.utcnow()
                        await self.uow.roles.update(role)
                await self.uow.commit()

                for role in roles:
                    await self.session_cache.invalidate_role(role.id)
        except SQLAlchemyError as e:
            logger.error(f"Role deletion failed on persistence: {e}")
            return Return.err(dependency_error("Failed to delete role(s)"))

        logger.info(f"Actor {caller_id} deleted roles {names} (permanent: {skip_trash})")
        verb = "permanently deleted" if skip_trash else "moved to trash"
        return Return.ok(DeleteRolesResponse(message=f"Role(s) {verb} successfully", deleted=names))
