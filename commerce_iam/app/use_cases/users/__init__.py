"""
User Management Use Cases

All user-related business logic.
"""

from .change_role_use_case import ChangeRoleUseCase
from .dtos import (
    ChangeRoleResponse,
    MeResponse,
    PermissionInput,
    PermissionsResponse,
    ProfileResponse,
)
from .get_me_use_case import GetMeUseCase
from .get_permissions_use_case import GetPermissionsUseCase
from .update_permissions_use_case import UpdatePermissionsUseCase
from .update_profile_use_case import UpdateProfileUseCase

__all__ = [
    "ChangeRoleUseCase",
    "GetMeUseCase",
    "GetPermissionsUseCase",
    "UpdatePermissionsUseCase",
    "UpdateProfileUseCase",
    "ChangeRoleResponse",
    "MeResponse",
    "PermissionInput",
    "PermissionsResponse",
    "ProfileResponse",
]
