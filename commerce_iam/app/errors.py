"""
Error taxonomy shared by use cases and services.

Every expected failure is expressed as an ``Error`` with one of the codes
below; the API layer maps the code to an HTTP status.
"""

from typing import Dict, List, Optional

from commerce_iam.libs.result import Error


class ErrorCode:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    LOCKED = "LOCKED"
    INVALID_TOKEN = "INVALID_TOKEN"
    EXPIRED_TOKEN = "EXPIRED_TOKEN"
    DEPENDENCY_ERROR = "DEPENDENCY_ERROR"


def validation_error(
    errors: List[Dict[str, str]], message: str = "Validation failed"
) -> Error:
    """Field-level failure; ``errors`` is a list of ``{field, message}``"""
    return Error(ErrorCode.VALIDATION_ERROR, message, {"errors": errors})


def authentication_error(message: str) -> Error:
    return Error(ErrorCode.AUTHENTICATION_ERROR, message)


def authorization_error(message: str, guard: Optional[str] = None) -> Error:
    details = {"guard": guard} if guard else {}
    return Error(ErrorCode.AUTHORIZATION_ERROR, message, details)


def not_found(message: str) -> Error:
    return Error(ErrorCode.NOT_FOUND, message)


def conflict(message: str) -> Error:
    return Error(ErrorCode.CONFLICT, message)


def locked(message: str, remaining_seconds: int) -> Error:
    return Error(ErrorCode.LOCKED, message, {"remainingSeconds": remaining_seconds})


def invalid_token(message: str) -> Error:
    return Error(ErrorCode.INVALID_TOKEN, message)


def expired_token(message: str) -> Error:
    return Error(ErrorCode.EXPIRED_TOKEN, message)


def dependency_error(message: str) -> Error:
    return Error(ErrorCode.DEPENDENCY_ERROR, message)
