"""Application error types

Services raise these; ``swapmarket.main`` maps them to JSON responses with
the status code carried by the class.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors that are reported to the client"""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT


class ValidationError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
