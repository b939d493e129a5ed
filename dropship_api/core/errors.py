"""Application error hierarchy.

Each error carries the HTTP status it maps to; the handlers registered in
``dropship_api.main`` render them as ``{"message": ...}``.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors that are reported to the client as-is."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ClientInputError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class MissingFieldsError(ClientInputError):
    default_message = "Missing required fields"


class InvalidIdError(ClientInputError):
    default_message = "Invalid id"


class InvalidCategoryError(ClientInputError):
    default_message = "Invalid category"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class EmailConflictError(ConflictError):
    default_message = "Email already registered"


class EmployeeIdConflictError(ConflictError):
    default_message = "Employee ID already exists"


class ServiceUnavailableError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "DB not ready"
