"""Authentication error taxonomy and its HTTP status mapping."""

from collections.abc import Mapping

from fastapi import HTTPException, status


class AuthError(Exception):
    """Base class for typed authentication and recovery failures."""

    kind: str = "Internal"

    def __init__(self, message: str = "Authentication error"):
        self.message = message
        super().__init__(message)


class UserNotFoundError(AuthError):
    """Raised when no credential record matches the lookup."""

    kind = "NotFound"

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class ConflictError(AuthError):
    """Raised when an email is already registered."""

    kind = "Conflict"

    def __init__(self, message: str = "User with this email already exists"):
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    """Raised when signin credentials do not match."""

    kind = "InvalidCredentials"

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class InvalidOtpError(AuthError):
    """Raised when a submitted passcode does not match the stored one."""

    kind = "InvalidOtp"

    def __init__(self, message: str = "Invalid Otp"):
        super().__init__(message)


class OtpExpiredError(AuthError):
    """Raised when the stored passcode is past its expiry time."""

    kind = "Expired"

    def __init__(self, message: str = "Otp Expired"):
        super().__init__(message)


class PreconditionFailedError(AuthError):
    """Raised when a password reset is attempted before OTP verification."""

    kind = "PreconditionFailed"

    def __init__(self, message: str = "Please verify OTP to continue"):
        super().__init__(message)


class ValidationError(AuthError):
    """Raised when input fails a business validation rule."""

    kind = "ValidationError"

    def __init__(self, message: str = "Validation failed"):
        super().__init__(message)


class PasswordMismatchError(ValidationError):
    """Raised when a password and its confirmation differ."""

    def __init__(self, message: str = "Passwords must match"):
        super().__init__(message)


class PasswordValidationError(ValidationError):
    """Raised when a password doesn't meet policy requirements."""

    def __init__(self, violations: list[str]):
        self.violations = violations
        super().__init__(f"Password policy violations: {', '.join(violations)}")


class InvalidArgumentError(AuthError):
    """Raised when a helper is called with an unusable argument."""

    kind = "InvalidArgument"

    def __init__(self, message: str = "Invalid argument"):
        super().__init__(message)


class UnauthenticatedError(AuthError):
    """Raised when a bearer token is missing, invalid or expired."""

    kind = "Unauthenticated"

    def __init__(self, message: str = "Invalid or expired token, please login"):
        super().__init__(message)


class TokenExpiredError(UnauthenticatedError):
    """Raised when a bearer token's expiry has passed."""

    def __init__(self, message: str = "Token has expired, please login"):
        super().__init__(message)


class MalformedTokenError(UnauthenticatedError):
    """Raised when a bearer token cannot be parsed."""

    kind = "Malformed"

    def __init__(self, message: str = "Malformed token, please login"):
        super().__init__(message)


class ForbiddenError(AuthError):
    """Raised when an authenticated user lacks the required role."""

    kind = "Forbidden"

    def __init__(self, message: str = "Administration rights required"):
        super().__init__(message)


STATUS_BY_KIND: dict[str, int] = {
    "NotFound": status.HTTP_404_NOT_FOUND,
    "Conflict": status.HTTP_409_CONFLICT,
    "InvalidCredentials": status.HTTP_400_BAD_REQUEST,
    "InvalidOtp": status.HTTP_400_BAD_REQUEST,
    "Expired": status.HTTP_504_GATEWAY_TIMEOUT,
    "PreconditionFailed": status.HTTP_400_BAD_REQUEST,
    "ValidationError": status.HTTP_400_BAD_REQUEST,
    "InvalidArgument": status.HTTP_400_BAD_REQUEST,
    "Unauthenticated": status.HTTP_401_UNAUTHORIZED,
    "Malformed": status.HTTP_401_UNAUTHORIZED,
    "Forbidden": status.HTTP_403_FORBIDDEN,
    "Internal": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Password reset reports every failure as a bad request.
RESET_PASSWORD_STATUS_OVERRIDES: dict[str, int] = {
    kind: status.HTTP_400_BAD_REQUEST for kind in STATUS_BY_KIND
}


def status_for(error: AuthError, overrides: Mapping[str, int] | None = None) -> int:
    """Resolve the HTTP status code for a typed error.

    Args:
        error: Typed authentication error
        overrides: Optional per-endpoint kind -> status table

    Returns:
        int: HTTP status code
    """
    if overrides and error.kind in overrides:
        return overrides[error.kind]
    return STATUS_BY_KIND.get(error.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def to_http_exception(
    error: AuthError,
    overrides: Mapping[str, int] | None = None,
) -> HTTPException:
    """Translate a typed error into the HTTPException returned to the client.

    Args:
        error: Typed authentication error
        overrides: Optional per-endpoint kind -> status table

    Returns:
        HTTPException: Exception carrying status code and public message
    """
    status_code = status_for(error, overrides)
    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return HTTPException(status_code=status_code, detail=error.message, headers=headers)
