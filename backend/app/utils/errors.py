"""Typed service errors.

Each kind is an ``HTTPException`` so FastAPI can surface it directly, while
services stay transport-agnostic by raising the kind rather than a status code.
``code`` is the machine-readable discriminator rendered as ``{"error": code}``.
"""
from typing import Dict, Optional

from fastapi import HTTPException, status


class ServiceError(HTTPException):
    """Base class for every error a service operation may raise."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: str = "internal_error"

    def __init__(self, message: str, code: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status_code=self.status_code, detail=message, headers=headers)
        self.code = code or self.default_code
        self.message = message


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_code = "already_exists"


class BadRequestError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "bad_request"


class UnauthorizedError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "unauthorized"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message, code=code, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "forbidden"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"


class InternalError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "internal_error"
