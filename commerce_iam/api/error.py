from typing import NoReturn

from fastapi import status

from commerce_iam.app.errors import ErrorCode
from commerce_iam.libs.result import Error

STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.AUTHENTICATION_ERROR: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.AUTHORIZATION_ERROR: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.LOCKED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_TOKEN: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EXPIRED_TOKEN: status.HTTP_400_BAD_REQUEST,
    ErrorCode.DEPENDENCY_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


def raise_for_error(error: Error) -> NoReturn:
    """Raise the HTTP exception matching a use case error"""
    status_code = STATUS_BY_CODE.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        raise ServerError(error)
    raise ClientError(error, status_code=status_code)
