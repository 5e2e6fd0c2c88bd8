"""
List Roles Use Case

Paged, searchable listing of live roles with their holder counts.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.app.errors import dependency_error, validation_error
from commerce_iam.app.services.authorization import AuthorizationEvaluator
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.app.use_cases.users.caller import resolve_caller
from commerce_iam.domain.entities import Action
from commerce_iam.libs.result import Result, Return
from .dtos import RoleSummary, RolesPageResponse

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("created_at", "name")
MAX_PAGE_SIZE = 100


class ListRolesUseCase:
    """
    Use case for listing roles.

    Business Rules:
    - Caller needs Role.read
    - Only live roles are listed; search matches name or description
    - Sorting by created_at (default, newest first) or name
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
        self,
        caller_id: UUID,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Result[RolesPageResponse]:
        errors = []
        if page < 1:
            errors.append({"field": "page", "message": "Page must be at least 1"})
        if not 1 <= limit <= MAX_PAGE_SIZE:
            errors.append({"field": "limit", "message": f"Limit must be 1-{MAX_PAGE_SIZE}"})
        if sort_by not in SORTABLE_FIELDS:
            fields = ", ".join(SORTABLE_FIELDS)
            errors.append({"field": "sortBy", "message": f"Sort field must be one of {fields}"})
        if sort_order not in ("asc", "desc"):
            errors.append({"field": "sortOrder", "message": "Sort order must be asc or desc"})
        if errors:
            return Return.err(validation_error(errors))

        try:
            async with self.uow:
                caller = await resolve_caller(self.session_cache, caller_id)
                if caller.is_err():
                    return Return.err(caller.error)

                allowed = self.evaluator.require(
                    caller.value.permissions,
                    [("Role", Action.read)],
                    "You do not have permission to view roles",
                )
                if allowed.is_err():
                    return Return.err(allowed.error)

                roles, total = await self.uow.roles.list_live(
                    offset=(page - 1) * limit,
                    limit=limit,
                    search=search,
                    sort_by=sort_by,
                    descending=sort_order == "desc",
                )
                summaries = [
                    RoleSummary(
                        id=role.id,
                        name=role.name,
                        description=role.description,
                        created_at=role.created_at,
                        user_count=await self.uow.users.count_by_role(role.id),
                    )
                    for role in roles
                ]
        except SQLAlchemyError as e:
            logger.error(f"Role listing failed on persistence: {e}")
            return Return.err(dependency_error("Failed to retrieve roles"))

        return Return.ok(
            RolesPageResponse(
                message="Roles retrieved successfully",
                roles=summaries,
                total=total,
                page=page,
                limit=limit,
            )
        )
