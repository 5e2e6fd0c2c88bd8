"""
Get Permissions Use Case
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.app.errors import dependency_error
from commerce_iam.app.services.authorization import AuthorizationEvaluator
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.domain.entities import Action
from commerce_iam.libs.result import Result, Return
from .caller import resolve_caller
from .dtos import PermissionsResponse

logger = logging.getLogger(__name__)


class GetPermissionsUseCase:
    """
    Use case for reading an actor's permissions.

    Business Rules:
    - Actors can always read their own permissions
    - Reading someone else's requires Permission.read
    - Optionally scoped to a single capability name
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
        self, caller_id: UUID, target_id: UUID, name: Optional[str] = None
    ) -> Result[PermissionsResponse]:
        try:
            async with self.uow:
                caller = await resolve_caller(self.session_cache, caller_id)
                if caller.is_err():
                    return Return.err(caller.error)

                if caller_id != target_id:
                    allowed = self.evaluator.require(
                        caller.value.permissions,
                        [("Permission", Action.read)],
                        "You do not have permission to view user permissions",
                    )
                    if allowed.is_err():
                        return Return.err(allowed.error)

                    target = await self.session_cache.resolve_actor_by_id(target_id)
                    if target.is_err():
                        return Return.err(target.error)

                permissions = await self.session_cache.resolve_permissions(target_id, name)
        except SQLAlchemyError as e:
            logger.error(f"Loading permissions of {target_id} failed on persistence: {e}")
            return Return.err(dependency_error("Failed to load permissions"))

        return Return.ok(
            PermissionsResponse(message="Permissions fetched successfully", permissions=permissions)
        )
