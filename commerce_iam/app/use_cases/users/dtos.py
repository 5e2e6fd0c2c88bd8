"""
User management DTOs
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from commerce_iam.app.services.projections import ActorSession, PermissionSession
from commerce_iam.app.use_cases.dtos import BaseResponse


class PermissionInput(BaseModel):
    """Requested flags for one capability"""

    name: str
    can_create: bool = False
    can_read: bool = False
    can_update: bool = False
    can_delete: bool = False
    description: Optional[str] = Field(default=None, max_length=500)


class MeResponse(BaseResponse):
    user: ActorSession
    permissions: List[PermissionSession]


class PermissionsResponse(BaseResponse):
    permissions: List[PermissionSession]


class ChangeRoleResponse(BaseResponse):
    user: ActorSession
    permissions: List[PermissionSession]


class ProfileResponse(BaseResponse):
    token: str
    user: ActorSession
