"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for auth domain.
"""

from typing import List, Optional

from pydantic import BaseModel, EmailStr

from commerce_iam.app.services.projections import ActorSession, PermissionSession
from commerce_iam.app.use_cases.dtos import BaseResponse
from commerce_iam.domain.entities import Gender


# ============================================================================
# Command DTOs
# ============================================================================


class RegisterCommand(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    password: str
    gender: Optional[Gender] = None


# ============================================================================
# Response DTOs
# ============================================================================


class RegisterResponse(BaseResponse):
    """Response for registration use case"""

    status_code: int = 201
    id: str


class LoginResponse(BaseResponse):
    """Response for user login use case"""

    token: str
    user: ActorSession
    permissions: List[PermissionSession]


class TokenResponse(BaseResponse):
    """Response for flows that reissue the session token"""

    token: str


class MessageResponse(BaseResponse):
    """Response carrying only the envelope"""
