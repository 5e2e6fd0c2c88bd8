"""
Register Use Case

Creates an actor, seeds its permissions and sends the activation email.
"""

import logging

import bcrypt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from commerce_iam.app.errors import conflict, dependency_error, validation_error
from commerce_iam.app.services.notification import (
    INotificationService,
    account_activation_message,
)
from commerce_iam.app.services.role_permission_sync import RolePermissionSynchronizer
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.domain.capabilities import CUSTOMER, ROLE_DESCRIPTIONS, SUPER_ADMIN
from commerce_iam.domain.entities import Role, User
from commerce_iam.libs.result import Result, Return
from .dtos import RegisterCommand, RegisterResponse
from .validation import validate_name, validate_password

logger = logging.getLogger(__name__)


class RegisterUseCase:
    """
    Use case for registering a new actor.

    Business Rules:
    - Email must not already be in use
    - Password: 8-100 chars with upper, lower, digit and special character
    - The very first actor becomes SUPER ADMIN, every later one CUSTOMER
    - Permission rows are seeded from the role's matrix
    - Account starts unverified and not activated
    - A uniqueness clash on anything but the email (the initial role) is retried once
    - If the activation email cannot be sent, the actor and its permission
      rows are deleted again (no half-registered account survives)
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

    async def execute(self, command: RegisterCommand) -> Result[RegisterResponse]:
        errors = (
            validate_name(command.first_name, "firstName")
            + validate_name(command.last_name, "lastName")
            + validate_password(command.password)
        )
        if errors:
            return Return.err(validation_error(errors))

        email = command.email.lower()
        # Two first registrations can race to create the initial role; the
        # loser retries once and is then assigned as a later actor
        for _ in range(2):
            try:
                return await self._register(command, email)
            except IntegrityError as e:
                clash = e
            except SQLAlchemyError as e:
                logger.error(f"Registration failed on persistence: {e}")
                return Return.err(dependency_error("Registration failed"))

            try:
                taken = await self._email_taken(email)
            except SQLAlchemyError as e:
                logger.error(f"Registration failed on persistence: {e}")
                return Return.err(dependency_error("Registration failed"))
            if taken:
                logger.warning("Registration hit the email uniqueness constraint")
                return Return.err(conflict("Email already in use"))
            logger.warning(f"Registration raced on another uniqueness constraint: {clash.orig}")

        return Return.err(conflict("Registration conflicted with a concurrent request"))

    async def _register(self, command: RegisterCommand, email: str) -> Result[RegisterResponse]:
        async with self.uow:
            if await self.uow.users.get_by_email(email) is not None:
                return Return.err(conflict("Email already in use"))

            role_name = SUPER_ADMIN if await self.uow.users.count() == 0 else CUSTOMER
            role = await self._ensure_role(role_name)

            password_hash = bcrypt.hashpw(command.password.encode(), bcrypt.gensalt(12))
            user = User(
                first_name=command.first_name.strip(),
                last_name=command.last_name.strip(),
                email=email,
                password_hash=password_hash.decode(),
                gender=command.gender,
                role_id=role.id,
            )
            await self.uow.users.create(user)
            actor_id = user.id

            synchronizer = RolePermissionSynchronizer(self.uow, self.session_cache)
            permissions = await synchronizer.seed(user, role, created_by=user.id)
            await self.uow.commit()

            sent = await self._send_activation(user)
            if not sent:
                await self.uow.permissions.delete_by_actor(user.id)
                await self.uow.users.delete(user)
                await self.uow.commit()
                logger.warning(f"Registration of {actor_id} rolled back: activation email not sent")
                return Return.err(
                    dependency_error("Registration failed. Failed to send account activation email.")
                )

            await self.session_cache.write_actor(user, role)
            await self.session_cache.write_permissions(user.id, permissions)

        logger.info(f"Registered actor {actor_id} with role {role_name}")
        return Return.ok(
            RegisterResponse(
                message="Registration successful. To active your account check your email.",
                id=str(actor_id),
            )
        )

    async def _email_taken(self, email: str) -> bool:
        async with self.uow:
            return await self.uow.users.get_by_email(email) is not None

    async def _ensure_role(self, name: str) -> Role:
        role = await self.uow.roles.get_by_name(name)
        if role is None:
            role = await self.uow.roles.create(
                Role(name=name, description=ROLE_DESCRIPTIONS.get(name))
            )
        return role

    async def _send_activation(self, user: User) -> bool:
        message = account_activation_message(self.frontend_url, user.id, user.email)
        try:
            return await self.notifier.send(user.email, message.subject, message.text, message.html)
        except Exception as e:
            logger.error(f"Activation email delivery raised: {e}")
            return False
