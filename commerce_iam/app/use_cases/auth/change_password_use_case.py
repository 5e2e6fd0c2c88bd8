"""
Change Password Use Case
"""

import logging
from uuid import UUID

import bcrypt
from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.app.errors import (
    authentication_error,
    dependency_error,
    not_found,
    validation_error,
)
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.libs.result import Result, Return
from .dtos import MessageResponse
from .validation import validate_password

logger = logging.getLogger(__name__)


class ChangePasswordUseCase:
    """
    Use case for an authenticated actor changing their password.

    Business Rules:
    - Old password must match
    - New password must meet complexity requirements and differ from the old one
    - Any pending password reset token is cleared
    """

    def __init__(self, uow: UnitOfWork, session_cache: SessionCacheManager):
        self.uow = uow
        self.session_cache = session_cache

    async def execute(
        self, actor_id: UUID, old_password: str, new_password: str
    ) -> Result[MessageResponse]:
        errors = validate_password(new_password, "newPassword")
        if not errors and old_password == new_password:
            errors = [
                {"field": "newPassword", "message": "New password must differ from the old password"}
            ]
        if errors:
            return Return.err(validation_error(errors))

        try:
            async with self.uow:
                row = await self.uow.users.get_with_role_by_id(actor_id)
                if row is None:
                    return Return.err(not_found("Authenticated user not found in database"))

                user, role = row
                if not bcrypt.checkpw(old_password.encode(), user.password_hash.encode()):
                    return Return.err(authentication_error("Old password is incorrect"))

                user.password_hash = bcrypt.hashpw(new_password.encode(), bcrypt.gensalt(12)).decode()
                user.reset_password_token = None
                user.reset_password_token_expires_at = None
                await self.uow.users.update(user)
                await self.uow.commit()

                await self.session_cache.write_actor(user, role)
        except SQLAlchemyError as e:
            logger.error(f"Password change failed on persistence: {e}")
            return Return.err(dependency_error("Password change failed"))

        logger.info(f"Password changed for actor {actor_id}")
        return Return.ok(MessageResponse(message="Password changed successfully"))
