"""Authentication module."""

from backstage.modules.auth.exceptions import (
    AuthError,
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidCredentialsError,
    InvalidOtpError,
    MalformedTokenError,
    OtpExpiredError,
    PasswordMismatchError,
    PasswordValidationError,
    PreconditionFailedError,
    TokenExpiredError,
    UnauthenticatedError,
    UserNotFoundError,
    ValidationError,
    to_http_exception,
)
from backstage.modules.auth.guard import AccessGuard, get_current_user
from backstage.modules.auth.jwt import (
    IssuedToken,
    TokenPayload,
    issue_access_token,
    verify_access_token,
)
from backstage.modules.auth.models import (
    User,
    UserRole,
    hash_password,
    validate_password_policy,
    verify_password,
)
from backstage.modules.auth.otp import GeneratedOTP, generate_otp, is_expired, otp_matches
from backstage.modules.auth.password_reset import PasswordResetService
from backstage.modules.auth.repository import UserRepository
from backstage.modules.auth.service import AuthService, SigninResult

__all__ = [
    # Errors
    "AuthError",
    "ConflictError",
    "ForbiddenError",
    "InvalidArgumentError",
    "InvalidCredentialsError",
    "InvalidOtpError",
    "MalformedTokenError",
    "OtpExpiredError",
    "PasswordMismatchError",
    "PasswordValidationError",
    "PreconditionFailedError",
    "TokenExpiredError",
    "UnauthenticatedError",
    "UserNotFoundError",
    "ValidationError",
    "to_http_exception",
    # Models
    "User",
    "UserRole",
    # Password utilities
    "hash_password",
    "verify_password",
    "validate_password_policy",
    # Repository
    "UserRepository",
    # JWT
    "IssuedToken",
    "TokenPayload",
    "issue_access_token",
    "verify_access_token",
    # OTP
    "GeneratedOTP",
    "generate_otp",
    "is_expired",
    "otp_matches",
    # Guard
    "AccessGuard",
    "get_current_user",
    # Services
    "AuthService",
    "SigninResult",
    "PasswordResetService",
]
