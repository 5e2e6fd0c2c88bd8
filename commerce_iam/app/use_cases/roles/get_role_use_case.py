"""
Get Role Use Case
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.app.errors import dependency_error
from commerce_iam.app.services.authorization import AuthorizationEvaluator
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.app.use_cases.users.caller import resolve_caller
from commerce_iam.domain.entities import Action
from commerce_iam.libs.result import Result, Return
from .dtos import RoleResponse

logger = logging.getLogger(__name__)


class GetRoleUseCase:
    """
    Use case for reading one live role.

    Business Rules:
    - Caller needs Role.read
    - The role is served from the role cache, loaded and cached on a miss
    - Trashed roles are not found
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

    async def execute(self, caller_id: UUID, role_id: UUID) -> Result[RoleResponse]:
        try:
            async with self.uow:
                caller = await resolve_caller(self.session_cache, caller_id)
                if caller.is_err():
                    return Return.err(caller.error)

                allowed = self.evaluator.require(
                    caller.value.permissions,
                    [("Role", Action.read)],
                    "You do not have permission to view role info",
                )
                if allowed.is_err():
                    return Return.err(allowed.error)

                role = await self.session_cache.resolve_role(role_id)
                if role.is_err():
                    return Return.err(role.error)
        except SQLAlchemyError as e:
            logger.error(f"Role lookup for {role_id} failed on persistence: {e}")
            return Return.err(dependency_error("Failed to retrieve role"))

        return Return.ok(RoleResponse(message="Role retrieved successfully", role=role.value))
