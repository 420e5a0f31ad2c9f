"""Authentication service for signup and signin."""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backstage.core.config import settings
from backstage.core.logging import log_info, log_warning
from backstage.core.metrics import AUTH_SIGNIN_TOTAL, AUTH_SIGNUPS_TOTAL
from backstage.modules.auth.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    UserNotFoundError,
)
from backstage.modules.auth.jwt import issue_access_token
from backstage.modules.auth.models import User, UserRole
from backstage.modules.auth.repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class SigninResult:
    """Authenticated user together with the issued bearer token."""

    user: User
    token: str
    expires_in: int
    token_type: str = "bearer"


class AuthService:
    """Service for account creation and credential checks."""

    def __init__(self, session: AsyncSession):
        """Initialize auth service.

        Args:
            session: Async SQLAlchemy session
        """
        self.session = session
        self.user_repo = UserRepository(session)

    async def signup(
        self,
        email: str,
        password: str,
        user_name: str,
        role: str | None = None,
        field: str | None = None,
        bio: str | None = None,
    ) -> User:
        """Register a new account.

        Args:
            email: User email address
            password: Plain text password
            user_name: Display name
            role: Account role, unprivileged when omitted
            field: Optional artistic field
            bio: Optional biography

        Returns:
            User: Created user

        Raises:
            ConflictError: If email already registered
            PasswordValidationError: If password doesn't meet policy
        """
        email = email.lower().strip()
        role = role or UserRole.USER.value

        if await self.user_repo.exists_by_email(email):
            raise ConflictError()

        try:
            user = await self.user_repo.create(
                email=email,
                password=password,
                user_name=user_name,
                role=role,
                field=field,
                bio=bio,
            )
        except IntegrityError as e:
            # Lost a race on the unique email index
            await self.session.rollback()
            raise ConflictError() from e

        AUTH_SIGNUPS_TOTAL.labels(role=role).inc()
        log_info(logger, "Account created", user_id=user.id, role=role)
        return user

    async def signin(self, email: str, password: str) -> SigninResult:
        """Check credentials and issue a bearer token.

        Args:
            email: User email address
            password: Plain text password

        Returns:
            SigninResult: User and access token

        Raises:
            InvalidCredentialsError: If the password does not match, or the
                email is unknown and uniform signin errors are enabled
            UserNotFoundError: If the email is unknown and uniform signin
                errors are disabled
        """
        email = email.lower().strip()

        user = await self.user_repo.get_by_email(email)
        if user is None:
            AUTH_SIGNIN_TOTAL.labels(outcome="unknown_email").inc()
            log_warning(logger, "Signin for unknown email")
            if settings.AUTH_UNIFORM_SIGNIN_ERRORS:
                raise InvalidCredentialsError()
            raise UserNotFoundError()

        if not user.verify_password(password):
            AUTH_SIGNIN_TOTAL.labels(outcome="bad_password").inc()
            log_warning(logger, "Signin with wrong password", user_id=user.id)
            raise InvalidCredentialsError()

        issued = issue_access_token(user.id, user.user_name, user.role)

        AUTH_SIGNIN_TOTAL.labels(outcome="success").inc()
        log_info(logger, "Signin successful", user_id=user.id)
        return SigninResult(user=user, token=issued.token, expires_in=issued.expires_in)
