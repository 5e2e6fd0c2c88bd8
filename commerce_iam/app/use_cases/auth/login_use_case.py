"""
Login Use Case

Handles credential checks behind the login throttle and issues session tokens.
"""

import logging

import bcrypt
from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.api.utils.jwt import generate_jwt
from commerce_iam.app.errors import (
    authentication_error,
    authorization_error,
    dependency_error,
)
from commerce_iam.app.services.login_throttle import LoginThrottle
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.libs.result import Result, Return
from .dtos import LoginResponse

logger = logging.getLogger(__name__)

# Compared against when the email is unknown so both paths cost one bcrypt check
_DUMMY_HASH = bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(12))


class LoginUseCase:
    """
    Use case for user login and JWT issuance.

    Business Rules:
    - A locked account is rejected before any credential check
    - Constant-time password comparison to prevent timing attacks
    - Every wrong password counts towards the lockout threshold
    - A correct password clears the failed-attempt counter
    - Email must be verified or the account activated
    - Actor and permission projections are refreshed on success
    """

    def __init__(
        self,
        uow: UnitOfWork,
        session_cache: SessionCacheManager,
        throttle: LoginThrottle,
    ):
        self.uow = uow
        self.session_cache = session_cache
        self.throttle = throttle

    async def execute(self, email: str, password: str) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            email: User email
            password: Plain text password

        Returns:
            Result with LoginResponse containing the session token, or Error
        """
        email = email.lower()

        lockout = await self.throttle.check_lockout(email)
        if lockout.is_err():
            return Return.err(lockout.error)

        try:
            async with self.uow:
                row = await self.uow.users.get_with_role_by_email(email)

                if row is None:
                    bcrypt.checkpw(password.encode(), _DUMMY_HASH)
                    return Return.err(authentication_error("Invalid email or password"))

                user, role = row
                if not bcrypt.checkpw(password.encode(), user.password_hash.encode()):
                    attempt = await self.throttle.record_failed_attempt(email)
                    if attempt.is_err():
                        return Return.err(attempt.error)
                    return Return.err(authentication_error("Invalid email or password"))

                await self.throttle.clear_on_success(email)

                if not user.email_verified and not user.is_account_activated:
                    return Return.err(
                        authorization_error(
                            "Your mail isn't verified and account isn't activated. "
                            "Please verify your mail to activate your account."
                        )
                    )

                rows = await self.uow.permissions.list_by_actor(user.id)
                session = await self.session_cache.write_actor(user, role)
                permissions = await self.session_cache.write_permissions(user.id, rows)
        except SQLAlchemyError as e:
            logger.error(f"Login failed on persistence: {e}")
            return Return.err(dependency_error("Login failed"))

        logger.info(f"Actor {session.id} logged in")
        return Return.ok(
            LoginResponse(
                message="Login successful",
                token=generate_jwt(session),
                user=session,
                permissions=permissions,
            )
        )
