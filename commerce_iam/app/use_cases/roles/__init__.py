"""
Role Management Use Cases
"""

from .create_role_use_case import CreateRoleUseCase
from .delete_roles_use_case import DeleteRolesUseCase
from .dtos import (
    DeleteRolesResponse,
    RestoreRolesResponse,
    RoleResponse,
    RolesPageResponse,
    RoleSummary,
)
from .get_role_use_case import GetRoleUseCase
from .list_roles_use_case import ListRolesUseCase
from .restore_roles_use_case import RestoreRolesUseCase
from .update_role_info_use_case import UpdateRoleInfoUseCase

__all__ = [
    "CreateRoleUseCase",
    "DeleteRolesUseCase",
    "GetRoleUseCase",
    "ListRolesUseCase",
    "RestoreRolesUseCase",
    "UpdateRoleInfoUseCase",
    "DeleteRolesResponse",
    "RestoreRolesResponse",
    "RoleResponse",
    "RolesPageResponse",
    "RoleSummary",
]
