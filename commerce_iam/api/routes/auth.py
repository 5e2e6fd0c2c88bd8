from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import EmailStr, Field

from config import ApplicationConfig
from commerce_iam.api.error import raise_for_error
from commerce_iam.api.utils.request import RequestModel
from commerce_iam.app.services.cache import ICache
from commerce_iam.app.services.login_throttle import LoginThrottle
from commerce_iam.app.services.notification import INotificationService
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.app.services.unit_of_work import UnitOfWork
from commerce_iam.app.use_cases.auth import (
    ActivateAccountUseCase,
    ChangePasswordUseCase,
    ConfirmPasswordResetUseCase,
    LoginResponse,
    LoginUseCase,
    MessageResponse,
    RegisterCommand,
    RegisterResponse,
    RegisterUseCase,
    RequestPasswordResetUseCase,
    TokenResponse,
    VerifyEmailUseCase,
)
from commerce_iam.depends import (
    get_cache,
    get_current_user,
    get_login_throttle,
    get_notifier,
    get_session_cache,
    get_unit_of_work,
)
from commerce_iam.domain.entities import Gender

router = APIRouter(prefix="/auth", tags=["Authentication"])


class RegisterRequest(RequestModel):
    """
    Register HTTP request payload

    Field rules beyond shape (name characters, password strength) are
    enforced by the use case.
    """

    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")
    gender: Optional[Gender] = Field(default=None)


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=RegisterResponse)
async def register(
    request: RegisterRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
    notifier: INotificationService = Depends(get_notifier),
):
    """
    Register a new account and send the activation email.

    Raises:
        - 400 Bad Request: Validation failed
        - 409 Conflict: Email already in use
        - 500 Internal Server Error: Activation email could not be sent
    """
    command = RegisterCommand(
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        password=request.password,
        gender=request.gender,
    )
    use_case = RegisterUseCase(
        uow, session_cache, notifier, frontend_url=ApplicationConfig.FRONTEND_URL
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class LoginRequest(RequestModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(
    request: LoginRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
    throttle: LoginThrottle = Depends(get_login_throttle),
):
    """
    Authenticate and return a session token.

    Raises:
        - 400 Bad Request: Account locked (remaining time in message)
        - 401 Unauthorized: Invalid credentials
        - 403 Forbidden: Email not verified and account not activated
    """
    use_case = LoginUseCase(uow, session_cache, throttle)
    result = await use_case.execute(request.email, request.password)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class ForgetPasswordRequest(RequestModel):
    email: EmailStr = Field(..., description="User email address")


@router.post("/forget-password", status_code=status.HTTP_200_OK, response_model=MessageResponse)
async def forget_password(
    request: ForgetPasswordRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    cache: ICache = Depends(get_cache),
    notifier: INotificationService = Depends(get_notifier),
):
    """
    Send a password reset link.

    Security:
        - No email enumeration (same response for valid/invalid emails)
        - One request per email per cooldown window
    """
    use_case = RequestPasswordResetUseCase(
        uow,
        cache,
        notifier,
        frontend_url=ApplicationConfig.FRONTEND_URL,
        token_ttl=ApplicationConfig.PASSWORD_RESET_TOKEN_TTL,
        cooldown=ApplicationConfig.PASSWORD_RESET_COOLDOWN,
    )
    result = await use_case.execute(request.email)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class ResetPasswordRequest(RequestModel):
    token: str = Field(..., min_length=1, description="Password reset token from email")
    new_password: str = Field(..., description="New password")


@router.post("/reset-password", status_code=status.HTTP_200_OK, response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    """
    Consume a password reset token.

    Raises:
        - 400 Bad Request: Invalid or expired token, weak password
    """
    use_case = ConfirmPasswordResetUseCase(uow, session_cache)
    result = await use_case.execute(request.token, request.new_password)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class LinkRequest(RequestModel):
    """Identifiers carried by the verification and activation links"""

    user_id: UUID
    email: EmailStr


@router.post("/verify-email", status_code=status.HTTP_200_OK, response_model=TokenResponse)
async def verify_email(
    request: LinkRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    use_case = VerifyEmailUseCase(uow, session_cache)
    result = await use_case.execute(request.user_id, request.email)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/activate-account", status_code=status.HTTP_200_OK, response_model=MessageResponse)
async def activate_account(
    request: LinkRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    use_case = ActivateAccountUseCase(uow, session_cache)
    result = await use_case.execute(request.user_id, request.email)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class ChangePasswordRequest(RequestModel):
    old_password: str
    new_password: str


@router.post("/change-password", status_code=status.HTTP_200_OK, response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_cache: SessionCacheManager = Depends(get_session_cache),
):
    use_case = ChangePasswordUseCase(uow, session_cache)
    result = await use_case.execute(
        UUID(current_user["user_id"]), request.old_password, request.new_password
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value
