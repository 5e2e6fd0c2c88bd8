"""Auth use cases"""

from .activate_account_use_case import ActivateAccountUseCase
from .change_password_use_case import ChangePasswordUseCase
from .confirm_password_reset_use_case import ConfirmPasswordResetUseCase
from .dtos import (
    LoginResponse,
    MessageResponse,
    RegisterCommand,
    RegisterResponse,
    TokenResponse,
)
from .login_use_case import LoginUseCase
from .register_use_case import RegisterUseCase
from .request_password_reset_use_case import RequestPasswordResetUseCase
from .verify_email_use_case import VerifyEmailUseCase

__all__ = [
    "ActivateAccountUseCase",
    "ChangePasswordUseCase",
    "ConfirmPasswordResetUseCase",
    "LoginUseCase",
    "RegisterUseCase",
    "RequestPasswordResetUseCase",
    "VerifyEmailUseCase",
    "LoginResponse",
    "MessageResponse",
    "RegisterCommand",
    "RegisterResponse",
    "TokenResponse",
]
