from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import EmailStr, Field

from config import ApplicationConfig
from commerce_iam.api.error import raise_for_error
from commerce_iam.api.utils.request import RequestModel
from commerce_iam.app.services.notification import INotificationService
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.app.use_cases.users import (
    ChangeRoleResponse,
    ChangeRoleUseCase,
    GetMeUseCase,
    GetPermissionsUseCase,
    MeResponse,
    PermissionInput,
    PermissionsResponse,
    ProfileResponse,
    UpdatePermissionsUseCase,
    UpdateProfileUseCase,
)
from commerce_iam.depends import (
    get_current_user,
    get_notifier,
    get_session_cache,
    get_unit_of_work,
)
from commerce_iam.domain.entities import Gender

router = APIRouter(tags=["User"])


@router.get("/me", status_code=status.HTTP_200_OK, response_model=MeResponse)
async def get_me(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    """
    Current actor and permissions, served from the session cache when warm.

    Raises:
        - 401 Unauthorized: Invalid or expired JWT, or actor no longer exists
    """
    use_case = GetMeUseCase(uow, session_cache)
    result = await use_case.execute(UUID(current_user["user_id"]))

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class UpdateProfileRequest(RequestModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[Gender] = None
    email: Optional[EmailStr] = None


@router.patch("/me", status_code=status.HTTP_200_OK, response_model=ProfileResponse)
async def update_me(
    request: UpdateProfileRequest,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
    notifier: INotificationService = Depends(get_notifier),
):
    use_case = UpdateProfileUseCase(
        uow, session_cache, notifier, frontend_url=ApplicationConfig.FRONTEND_URL
    )
    result = await use_case.execute(
        UUID(current_user["user_id"]),
        first_name=request.first_name,
        last_name=request.last_name,
        gender=request.gender,
        email=request.email,
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class ChangeRoleRequest(RequestModel):
    role_id: UUID
    password: Optional[str] = Field(default=None, description="Caller's password")


@router.patch(
    "/users/{user_id}/role", status_code=status.HTTP_200_OK, response_model=ChangeRoleResponse
)
async def change_role(
    user_id: UUID,
    request: ChangeRoleRequest,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    """
    Assign a role to a user and sync their permissions.

    Raises:
        - 400 Bad Request: Password missing
        - 401 Unauthorized: Wrong password
        - 403 Forbidden: Missing capability or a guard matched
        - 404 Not Found: User or role not found
        - 409 Conflict: Role in trash or already assigned
    """
    use_case = ChangeRoleUseCase(uow, session_cache)
    result = await use_case.execute(
        UUID(current_user["user_id"]), user_id, request.role_id, request.password
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class UpdatePermissionsRequest(RequestModel):
    access_all: bool = False
    permissions: List[PermissionInput] = Field(default_factory=list)


@router.put(
    "/users/{user_id}/permissions", status_code=status.HTTP_200_OK, response_model=PermissionsResponse
)
async def update_permissions(
    user_id: UUID,
    request: UpdatePermissionsRequest,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    use_case = UpdatePermissionsUseCase(uow, session_cache)
    result = await use_case.execute(
        UUID(current_user["user_id"]), user_id, request.permissions, access_all=request.access_all
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/users/{user_id}/permissions", status_code=status.HTTP_200_OK, response_model=PermissionsResponse
)
async def get_permissions(
    user_id: UUID,
    name: Optional[str] = None,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    use_case = GetPermissionsUseCase(uow, session_cache)
    result = await use_case.execute(UUID(current_user["user_id"]), user_id, name)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
