"""
Activate Account Use Case

Activates an account from the link sent at registration.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.app.errors import conflict, dependency_error, not_found
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.libs.result import Result, Return
from .dtos import MessageResponse

logger = logging.getLogger(__name__)


class ActivateAccountUseCase:
    """
    Use case for account activation.

    Business Rules:
    - Already activated -> CONFLICT
    - Activation also marks the email as verified
    - Cached projection is refreshed after the commit
    """

    def __init__(self, uow: UnitOfWork, session_cache: SessionCacheManager):
        self.uow = uow
        self.session_cache = session_cache

    async def execute(self, user_id: UUID, email: str) -> Result[MessageResponse]:
        try:
            async with self.uow:
                row = await self.uow.users.get_with_role_by_id(user_id)
                if row is None or row[0].email != email.lower():
                    return Return.err(not_found("User not found"))

                user, role = row
                if user.is_account_activated:
                    return Return.err(conflict("Account is already activated"))

                user.is_account_activated = True
                user.email_verified = True
                await self.uow.users.update(user)
                await self.uow.commit()

                await self.session_cache.write_actor(user, role)
        except SQLAlchemyError as e:
            logger.error(f"Account activation failed on persistence: {e}")
            return Return.err(dependency_error("Account activation failed"))

        logger.info(f"Account activated for actor {user_id}")
        return Return.ok(MessageResponse(message="Account activated successfully"))
