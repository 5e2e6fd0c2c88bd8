"""
Update Profile Use Case

Edits the authenticated actor's own profile, including an email change.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from commerce_iam.api.utils.jwt import generate_jwt
from commerce_iam.app.errors import conflict, dependency_error, not_found, validation_error
from commerce_iam.app.services.notification import (
    INotificationService,
    email_verification_message,
)
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.app.use_cases.auth.validation import validate_name
from commerce_iam.domain.entities import Gender
from commerce_iam.libs.result import Result, Return
from .dtos import ProfileResponse

logger = logging.getLogger(__name__)


class UpdateProfileUseCase:
    """
    Use case for updating the caller's profile.

    Business Rules:
    - Only the provided fields change
    - A new email must not be in use by another actor
    - On email change the verification email is sent first; if it fails nothing changes
    - A changed email resets email_verified and is_account_activated
    - The old email cache key is removed and the new one written in the same step
    - A fresh session token reflecting the new profile is returned
    """

    def __init__(
        self,
        uow: UnitOfWork,
        session_cache: SessionCacheManager,
        notifier: INotificationService,
        frontend_url: str = "http://localhost:3000",
    ):
        self.uow = uow
        self.session_cache = session_cache
        self.notifier = notifier
        self.frontend_url = frontend_url

    async def execute(
        self,
        actor_id: UUID,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        gender: Optional[Gender] = None,
        email: Optional[str] = None,
    ) -> Result[ProfileResponse]:
        errors = []
        if first_name is not None:
            errors += validate_name(first_name, "firstName")
        if last_name is not None:
            errors += validate_name(last_name, "lastName")
        if errors:
            return Return.err(validation_error(errors))

        try:
            async with self.uow:
                row = await self.uow.users.get_with_role_by_id(actor_id)
                if row is None:
                    return Return.err(not_found("Authenticated user not found in database"))
                user, role = row

                previous_email = user.email
                email = email.lower() if email else None
                email_changed = email is not None and email != user.email

                if email_changed:
                    if await self.uow.users.get_by_email(email) is not None:
                        return Return.err(conflict("Email already in use"))

                    message = email_verification_message(self.frontend_url, user.id, email)
                    if not await self._send(email, message):
                        return Return.err(
                            dependency_error("Failed to send email verification email")
                        )

                    user.email = email
                    user.email_verified = False
                    user.is_account_activated = False

                if first_name is not None:
                    user.first_name = first_name.strip()
                if last_name is not None:
                    user.last_name = last_name.strip()
                if gender is not None:
                    user.gender = gender

                await self.uow.users.update(user)
                await self.uow.commit()

                session = await self.session_cache.write_actor(
                    user, role, previous_email=previous_email
                )
        except IntegrityError:
            return Return.err(conflict("Email already in use"))
        except SQLAlchemyError as e:
            logger.error(f"Profile update for {actor_id} failed on persistence: {e}")
            return Return.err(dependency_error("Failed to update profile"))

        if email_changed:
            text = "Profile updated successfully, but please verify your email before using the account."
        else:
            text = "Profile updated successfully."
        return Return.ok(ProfileResponse(message=text, token=generate_jwt(session), user=session))

    async def _send(self, to: str, message) -> bool:
        try:
            return await self.notifier.send(to, message.subject, message.text, message.html)
        except Exception as e:
            logger.error(f"Verification email delivery raised: {e}")
            return False
