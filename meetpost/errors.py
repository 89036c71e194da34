"""Error taxonomy shared by services and routers.

Services raise these; ``meetpost.main`` renders them as
``{"detail": ..., "code": ...}`` with the matching status code.
"""
from typing import Optional


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(AppError):
    status_code = 401
    code = "AUTHENTICATION_ERROR"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND_ERROR"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT_ERROR"


class NotConnectedError(AppError):
    status_code = 400
    code = "NOT_CONNECTED"

    def __init__(self, platform: str):
        super().__init__("Social account not connected")
        self.platform = platform


class ExternalServiceError(AppError):
    status_code = 502
    code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, service: str, message: str):
        super().__init__(f"{service} service error: {message}")
        self.service = service
