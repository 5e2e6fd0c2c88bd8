"""
Role management DTOs
"""

from datetime import datetime
from typing import List

from commerce_iam.app.services.projections import RoleSession
from commerce_iam.app.use_cases.dtos import BaseResponse


class RoleResponse(BaseResponse):
    role: RoleSession


class DeleteRolesResponse(BaseResponse):
    deleted: List[str]


class RestoreRolesResponse(BaseResponse):
    restored: List[RoleSession]


class RoleSummary(RoleSession):
    created_at: datetime
    user_count: int


class RolesPageResponse(BaseResponse):
    roles: List[RoleSummary]
    total: int
    page: int
    limit: int
