"""
Application error taxonomy.

Services raise these; the handlers registered in app.main turn them into the
{"success": False, "error": {"code", "message"}} envelope with the matching
HTTP status. Everything except StorageError is expected control flow.
"""
from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "ERROR"
    message: str = "Request failed"

    def __init__(self, code: str | None = None, message: str | None = None):
        self.code = code or self.code
        self.message = message or self.message
        super().__init__(f"{self.code}: {self.message}")

    def to_dict(self) -> dict:
        return {"success": False, "error": {"code": self.code, "message": self.message}}


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION"
    message = "Invalid request data"


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"
    message = "Authentication required"


class AuthzError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "Operation not permitted for your role"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    message = "Conflicting request"


class StorageError(AppError):
    """Repository or session store I/O failure. The message shown to callers is always opaque."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"
    message = "Internal server error"


# Frequently raised instances
def invalid_credentials() -> AuthError:
    return AuthError("INVALID_CREDENTIALS", "Incorrect username or password")


def user_not_found() -> NotFoundError:
    return NotFoundError("USER_NOT_FOUND", "User not found")


def organization_not_found() -> NotFoundError:
    return NotFoundError("ORGANIZATION_NOT_FOUND", "Organization not found")
