"""
Restore Roles Use Case

Brings trashed roles back into use.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.app.errors import dependency_error, not_found, validation_error
from commerce_iam.app.services.authorization import AuthorizationEvaluator
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.app.use_cases.users.caller import resolve_caller
from commerce_iam.domain.entities import Action
from commerce_iam.libs.result import Result, Return
from .dtos import RestoreRolesResponse

logger = logging.getLogger(__name__)


class RestoreRolesUseCase:
    """
    Use case for restoring roles from the trash.

    Business Rules:
    - Caller needs Role.update
    - Every requested role must exist and be in the trash
    - All roles in the request are restored or none is
    - Restored roles are written through to the role cache after the commit
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

    async def execute(self, caller_id: UUID, role_ids: List[UUID]) -> Result[RestoreRolesResponse]:
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
                    [("Role", Action.update)],
                    "You do not have permission to restore roles",
                )
                if allowed.is_err():
                    return Return.err(allowed.error)

                roles = await self.uow.roles.get_by_ids(list(set(role_ids)))
                found = {role.id for role in roles}
                for role_id in role_ids:
                    if role_id not in found:
                        return Return.err(not_found(f"Role with ID {role_id} not found"))

                for role in roles:
                    if role.deleted_at is None:
                        message = f"Role with ID {role.id} is not in the trash"
                        return Return.err(validation_error([{"field": "ids", "message": message}], message))

                for role in roles:
                    role.deleted_at = None
                    await self.uow.roles.update(role)
                await self.uow.commit()

                restored = [await self.session_cache.write_role(role) for role in roles]
        except SQLAlchemyError as e:
            logger.error(f"Role restore failed on persistence: {e}")
            return Return.err(dependency_error("Failed to restore role(s)"))

        logger.info(f"Actor {caller_id} restored roles {[role.name for role in restored]}")
        return Return.ok(
            RestoreRolesResponse(message="Role(s) restored successfully", restored=restored)
        )
