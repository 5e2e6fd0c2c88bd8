"""
Create Role Use Case
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from commerce_iam.app.errors import (
    authorization_error,
    conflict,
    dependency_error,
    validation_error,
)
from commerce_iam.app.services.authorization import AuthorizationEvaluator, GuardKind
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.app.use_cases.users.caller import resolve_caller
from commerce_iam.domain.capabilities import PROTECTED_ROLES
from commerce_iam.domain.entities import Action, Role
from commerce_iam.libs.result import Result, Return
from .dtos import RoleResponse

logger = logging.getLogger(__name__)

ROLE_NAME_MAX_LENGTH = 100


class CreateRoleUseCase:
    """
    Use case for creating a role.

    Business Rules:
    - Caller needs Role.create
    - Names are trimmed and upper-cased, unique among live and trashed roles
    - Protected role names cannot be created by hand
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
        self, caller_id: UUID, name: str, description: Optional[str] = None
    ) -> Result[RoleResponse]:
        name = (name or "").strip().upper()
        if not name or len(name) > ROLE_NAME_MAX_LENGTH:
            return Return.err(
                validation_error(
                    [{"field": "name", "message": f"Role name must be 1-{ROLE_NAME_MAX_LENGTH} characters"}]
                )
            )

        try:
            async with self.uow:
                caller = await resolve_caller(self.session_cache, caller_id)
                if caller.is_err():
                    return Return.err(caller.error)

                allowed = self.evaluator.require(
                    caller.value.permissions,
                    [("Role", Action.create)],
                    "You do not have permission to create roles",
                )
                if allowed.is_err():
                    return Return.err(allowed.error)

                if name in PROTECTED_ROLES:
                    return Return.err(
                        authorization_error(
                            f'The role "{name}" is protected', GuardKind.protected_role.value
                        )
                    )

                if await self.uow.roles.get_by_name(name, include_deleted=True) is not None:
                    return Return.err(conflict(f'A role named "{name}" already exists'))

                role = await self.uow.roles.create(
                    Role(name=name, description=description, created_by_id=caller_id)
                )
                await self.uow.commit()

                session = await self.session_cache.write_role(role)
        except IntegrityError:
            return Return.err(conflict(f'A role named "{name}" already exists'))
        except SQLAlchemyError as e:
            logger.error(f"Role creation failed on persistence: {e}")
            return Return.err(dependency_error("Failed to create role"))

        logger.info(f"Actor {caller_id} created role {name}")
        return Return.ok(
            RoleResponse(status_code=201, message="Role created successfully", role=session)
        )
