"""
Get Me Use Case

Returns the authenticated actor and its permissions.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.app.errors import dependency_error
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.libs.result import Result, Return
from .caller import resolve_caller
from .dtos import MeResponse

logger = logging.getLogger(__name__)


class GetMeUseCase:
    def __init__(self, uow: UnitOfWork, session_cache: SessionCacheManager):
        self.uow = uow
        self.session_cache = session_cache

    async def execute(self, actor_id: UUID) -> Result[MeResponse]:
        try:
            async with self.uow:
                caller = await resolve_caller(self.session_cache, actor_id)
        except SQLAlchemyError as e:
            logger.error(f"Loading actor {actor_id} failed on persistence: {e}")
            return Return.err(dependency_error("Failed to load user"))

        if caller.is_err():
            return Return.err(caller.error)

        return Return.ok(
            MeResponse(
                message="User fetched successfully",
                user=caller.value.session,
                permissions=caller.value.permissions,
            )
        )
