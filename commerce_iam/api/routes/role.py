from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from commerce_iam.api.error import raise_for_error
from commerce_iam.api.utils.request import RequestModel
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.app.use_cases.roles import (
    CreateRoleUseCase,
    DeleteRolesResponse,
    DeleteRolesUseCase,
    GetRoleUseCase,
    ListRolesUseCase,
    RestoreRolesResponse,
    RestoreRolesUseCase,
    RoleResponse,
    RolesPageResponse,
    UpdateRoleInfoUseCase,
)
from commerce_iam.depends import get_current_user, get_session_cache, get_unit_of_work

router = APIRouter(prefix="/roles", tags=["Role"])


class CreateRoleRequest(RequestModel):
    name: str
    description: Optional[str] = Field(default=None, max_length=500)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=RoleResponse)
async def create_role(
    request: CreateRoleRequest,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    use_case = CreateRoleUseCase(uow, session_cache)
    result = await use_case.execute(
        UUID(current_user["user_id"]), request.name, request.description
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class DeleteRolesRequest(RequestModel):
    ids: List[UUID]
    skip_trash: bool = False


@router.delete("", status_code=status.HTTP_200_OK, response_model=DeleteRolesResponse)
async def delete_roles(
    request: DeleteRolesRequest,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    """
    Delete roles (soft by default, permanent with skipTrash).

    Raises:
        - 403 Forbidden: Missing Role.delete or a protected role in the request
        - 404 Not Found: Unknown role id
        - 409 Conflict: Role still assigned to users
    """
    use_case = DeleteRolesUseCase(uow, session_cache)
    result = await use_case.execute(
        UUID(current_user["user_id"]), request.ids, skip_trash=request.skip_trash
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("", status_code=status.HTTP_200_OK, response_model=RolesPageResponse)
async def list_roles(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(10, ge=1, le=100, description="Roles per page"),
    search: Optional[str] = Query(None, description="Matches role name or description"),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    use_case = ListRolesUseCase(uow, session_cache)
    result = await use_case.execute(
        UUID(current_user["user_id"]),
        page=page,
        limit=limit,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/{role_id}", status_code=status.HTTP_200_OK, response_model=RoleResponse)
async def get_role(
    role_id: UUID,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    """
    One live role, served from the role cache when warm.

    Raises:
        - 403 Forbidden: Missing Role.read
        - 404 Not Found: Unknown or trashed role
    """
    use_case = GetRoleUseCase(uow, session_cache)
    result = await use_case.execute(UUID(current_user["user_id"]), role_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class UpdateRoleInfoRequest(RequestModel):
    name: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=500)
    password: Optional[str] = None


@router.patch("/{role_id}", status_code=status.HTTP_200_OK, response_model=RoleResponse)
async def update_role_info(
    role_id: UUID,
    request: UpdateRoleInfoRequest,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    """
    Rename a role or change its description.

    Raises:
        - 400 Bad Request: Invalid name or missing password confirmation
        - 401 Unauthorized: Wrong password confirmation
        - 403 Forbidden: Missing Role.update, protected role or reserved name
        - 404 Not Found: Unknown role id
        - 409 Conflict: Name taken, or role in the trash
    """
    use_case = UpdateRoleInfoUseCase(uow, session_cache)
    result = await use_case.execute(
        UUID(current_user["user_id"]),
        role_id,
        name=request.name,
        description=request.description,
        password=request.password,
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class RestoreRolesRequest(RequestModel):
    ids: List[UUID]


@router.post("/restore", status_code=status.HTTP_200_OK, response_model=RestoreRolesResponse)
async def restore_roles(
    request: RestoreRolesRequest,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    use_case = RestoreRolesUseCase(uow, session_cache)
    result = await use_case.execute(UUID(current_user["user_id"]), request.ids)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
