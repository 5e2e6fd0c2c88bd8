"""
Verify Email Use Case

Marks an actor's email as verified from the link embedded in the email.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.api.utils.jwt import generate_jwt
from commerce_iam.app.errors import conflict, dependency_error, not_found
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.libs.result import Result, Return
from .dtos import TokenResponse

logger = logging.getLogger(__name__)


class VerifyEmailUseCase:
    """
    Use case for email verification.

    Business Rules:
    - The link carries the actor id and the email being verified
    - Already verified -> CONFLICT
    - Sets email_verified, refreshes the cached projection
    - Reissues the session token so its claims reflect the new state
    """

    def __init__(self, uow: UnitOfWork, session_cache: SessionCacheManager):
        self.uow = uow
        self.session_cache = session_cache

    async def execute(self, user_id: UUID, email: str) -> Result[TokenResponse]:
        try:
            async with self.uow:
                row = await self.uow.users.get_with_role_by_id(user_id)
                if row is None or row[0].email != email.lower():
                    return Return.err(not_found("User not found"))

                user, role = row
                if user.email_verified:
                    return Return.err(conflict("Email is already verified"))

                user.email_verified = True
                await self.uow.users.update(user)
                await self.uow.commit()

                session = await self.session_cache.write_actor(user, role)
        except SQLAlchemyError as e:
            logger.error(f"Email verification failed on persistence: {e}")
            return Return.err(dependency_error("Email verification failed"))

        logger.info(f"Email verified for actor {user_id}")
        return Return.ok(
            TokenResponse(message="Email verified successfully", token=generate_jwt(session))
        )
