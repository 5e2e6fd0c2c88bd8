"""
Confirm Password Reset Use Case

Consumes a password reset token and sets the new password.
"""

import logging
from datetime import datetime

import bcrypt
from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.app.errors import (
    dependency_error,
    expired_token,
    invalid_token,
    validation_error,
)
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.libs.result import Result, Return
from .dtos import MessageResponse
from .request_password_reset_use_case import hash_reset_token
from .validation import validate_password

logger = logging.getLogger(__name__)


class ConfirmPasswordResetUseCase:
    """
    Use case for confirming password reset.

    Business Rules:
    - Token is validated by hashing and comparing with stored hash
    - Unknown token -> INVALID_TOKEN
    - Expired token (or one without expiry) -> EXPIRED_TOKEN, and the token is cleared
    - New password must meet complexity requirements
    - Password is hashed with bcrypt (cost factor 12)
    - Token is cleared with a compare-and-clear update, so only one request can consume it
    - Cached actor projection is refreshed after the commit
    """

    def __init__(self, uow: UnitOfWork, session_cache: SessionCacheManager):
        self.uow = uow
        self.session_cache = session_cache

    async def execute(self, token: str, new_password: str) -> Result[MessageResponse]:
        """
        Execute confirm password reset use case.

        Args:
            token: Password reset token (plain text from email)
            new_password: New password to set

        Returns:
            Result with confirmation, or Error
        """
        errors = validate_password(new_password, "newPassword")
        if errors:
            return Return.err(validation_error(errors))

        token_hash = hash_reset_token(token)
        try:
            async with self.uow:
                user = await self.uow.users.get_by_reset_token_hash(token_hash)
                if user is None:
                    return Return.err(invalid_token("Invalid or expired password reset token"))

                expires_at = user.reset_password_token_expires_at
                if expires_at is None or expires_at <= datetime.utcnow():
                    await self.uow.users.consume_reset_token(user, token_hash)
                    await self.uow.commit()
                    return Return.err(expired_token("Password reset token has expired"))

                actor_id = user.id
                password_hash = bcrypt.hashpw(new_password.encode(), bcrypt.gensalt(12))
                # A concurrent request may have consumed the token since it was loaded
                consumed = await self.uow.users.consume_reset_token(
                    user, token_hash, password_hash.decode()
                )
                if not consumed:
                    return Return.err(invalid_token("Invalid or expired password reset token"))
                await self.uow.commit()

                role = await self.uow.roles.get_by_id(user.role_id) if user.role_id else None
                await self.session_cache.write_actor(user, role)
        except SQLAlchemyError as e:
            logger.error(f"Password reset failed on persistence: {e}")
            return Return.err(dependency_error("Password reset failed"))

        logger.info(f"Password reset completed for actor {actor_id}")
        return Return.ok(MessageResponse(message="Password reset successfully"))
