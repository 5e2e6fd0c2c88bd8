"""
Request Password Reset Use Case

Issues a one-time password reset token and emails the reset link.
"""

import hashlib
import logging
import secrets
import time
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.app.errors import dependency_error, locked
from commerce_iam.app.services.cache import CacheError, ICache
from commerce_iam.app.services.login_throttle import format_remaining
from commerce_iam.app.services.notification import INotificationService, password_reset_message
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.libs.result import Result, Return
from .dtos import MessageResponse

logger = logging.getLogger(__name__)

NEUTRAL_MESSAGE = "If the email exists, a password reset link has been sent"


def cooldown_key(email: str) -> str:
    return f"reset-password-last-sent:{email.lower()}"


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class RequestPasswordResetUseCase:
    """
    Use case for requesting password reset.

    Business Rules:
    - Generate cryptographically secure token, store only its SHA-256 hash
    - Token always carries an expiry (token_ttl seconds)
    - Issuing a new token replaces any previous one
    - Per-email cooldown between two sends; a cache fault disables the cooldown
    - No email enumeration (same response for valid/invalid emails)
    - If the email cannot be sent the token is cleared again
    """

    def __init__(
        self,
        uow: UnitOfWork,
        cache: ICache,
        notifier: INotificationService,
        frontend_url: str = "http://localhost:3000",
        token_ttl: int = 5 * 60,
        cooldown: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.uow = uow
        self.cache = cache
        self.notifier = notifier
        self.frontend_url = frontend_url
        self.token_ttl = token_ttl
        self.cooldown = cooldown
        self.clock = clock

    async def execute(self, email: str) -> Result[MessageResponse]:
        """
        Execute request password reset use case.

        Args:
            email: User's email address

        Returns:
            Result with neutral confirmation, LOCKED while cooling down, or Error
        """
        email = email.lower()

        waiting = await self._cooldown_remaining(email)
        if waiting > 0:
            return Return.err(
                locked(
                    f"Please wait {format_remaining(waiting)} before requesting another password reset.",
                    waiting,
                )
            )

        try:
            async with self.uow:
                user = await self.uow.users.get_by_email(email)

                # No email enumeration
                if user is None:
                    return Return.ok(MessageResponse(message=NEUTRAL_MESSAGE))

                actor_id = user.id
                reset_token = secrets.token_urlsafe(32)
                user.reset_password_token = hash_reset_token(reset_token)
                user.reset_password_token_expires_at = datetime.utcnow() + timedelta(
                    seconds=self.token_ttl
                )
                await self.uow.users.update(user)
                await self.uow.commit()

                message = password_reset_message(self.frontend_url, reset_token)
                sent = await self._send(user.email, message)
                if not sent:
                    user.reset_password_token = None
                    user.reset_password_token_expires_at = None
                    await self.uow.users.update(user)
                    await self.uow.commit()
                    return Return.err(dependency_error("Failed to send password reset email"))
        except SQLAlchemyError as e:
            logger.error(f"Password reset request failed on persistence: {e}")
            return Return.err(dependency_error("Password reset request failed"))

        await self._start_cooldown(email)
        logger.info(f"Password reset token issued for actor {actor_id}")
        return Return.ok(MessageResponse(message=NEUTRAL_MESSAGE))

    async def _cooldown_remaining(self, email: str) -> int:
        try:
            last_sent = await self.cache.get(cooldown_key(email))
        except CacheError as e:
            logger.warning(f"Password reset cooldown degraded, not enforced: {e}")
            return 0
        if last_sent is None:
            return 0
        elapsed = int(self.clock()) - int(last_sent)
        return max(self.cooldown - elapsed, 0)

    async def _start_cooldown(self, email: str) -> None:
        try:
            await self.cache.set(cooldown_key(email), int(self.clock()), self.cooldown)
        except CacheError as e:
            logger.warning(f"Password reset cooldown degraded, not recorded: {e}")

    async def _send(self, to: str, message) -> bool:
        try:
            return await self.notifier.send(to, message.subject, message.text, message.html)
        except Exception as e:
            logger.error(f"Password reset email delivery raised: {e}")
            return False
