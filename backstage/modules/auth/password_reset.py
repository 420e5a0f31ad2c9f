"""OTP-based password recovery.

The recovery state lives on the user record:

* ``otp`` / ``otp_expiry_time`` are written together by
  :meth:`PasswordResetService.send_otp`, replacing any earlier code.
* ``password_reset`` becomes true after a successful
  :meth:`PasswordResetService.verify_otp` and false again in the same flush
  that stores the new password hash.

Verification does not consume the code: it stays usable until a newer code
replaces it or it expires.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from backstage.core.config import settings
from backstage.core.logging import log_info, log_warning
from backstage.core.metrics import (
    AUTH_OTP_ISSUED_TOTAL,
    AUTH_OTP_VERIFICATIONS_TOTAL,
    AUTH_PASSWORD_RESETS_TOTAL,
)
from backstage.modules.auth.exceptions import (
    InvalidOtpError,
    OtpExpiredError,
    PasswordMismatchError,
    PreconditionFailedError,
    UserNotFoundError,
)
from backstage.modules.auth.models import User
from backstage.modules.auth.otp import generate_otp, is_expired, otp_matches
from backstage.modules.auth.repository import UserRepository
from backstage.modules.notification.service import OTPNotifier

logger = logging.getLogger(__name__)


class PasswordResetService:
    """Issues, verifies and redeems password recovery codes."""

    def __init__(self, session: AsyncSession, notifier: OTPNotifier):
        """Initialize password reset service.

        Args:
            session: Async SQLAlchemy session
            notifier: Best-effort passcode delivery
        """
        self.session = session
        self.notifier = notifier
        self.user_repo = UserRepository(session)

    async def _get_user(self, email: str) -> User:
        user = await self.user_repo.get_by_email(email.lower().strip())
        if user is None:
            raise UserNotFoundError()
        return user

    async def send_otp(self, email: str) -> User:
        """Generate, store and dispatch a fresh recovery code.

        The code is flushed before delivery is attempted, so a failed
        delivery leaves it valid.

        Args:
            email: Account email

        Returns:
            User: The account the code was issued for

        Raises:
            UserNotFoundError: If no account matches
        """
        user = await self._get_user(email)

        generated = generate_otp(settings.OTP_DIGITS)
        await self.user_repo.set_otp(user, generated.code, generated.expires_at)

        AUTH_OTP_ISSUED_TOTAL.inc()
        logger.debug("Issued password reset code %s for user %s", generated.code, user.id)

        await self.notifier.send_password_reset_otp(user, generated.code)
        return user

    async def forgot_password(self, email: str) -> User:
        """Start a password recovery; same state change as :meth:`send_otp`."""
        user = await self.send_otp(email)
        log_info(logger, "Password reset initiated", user_id=user.id)
        return user

    async def verify_otp(self, email: str, otp: str, now: datetime | None = None) -> None:
        """Check a submitted code and authorize a password reset.

        Args:
            email: Account email
            otp: Submitted code
            now: Reference time (naive UTC), defaults to the current time

        Raises:
            UserNotFoundError: If no account matches
            InvalidOtpError: If the code differs from the stored one
            OtpExpiredError: If the stored code has expired
        """
        user = await self._get_user(email)

        if not otp_matches(user.otp, otp):
            AUTH_OTP_VERIFICATIONS_TOTAL.labels(outcome="invalid").inc()
            log_warning(logger, "Invalid password reset code", user_id=user.id)
            raise InvalidOtpError()

        if is_expired(user.otp_expiry_time, now):
            AUTH_OTP_VERIFICATIONS_TOTAL.labels(outcome="expired").inc()
            log_warning(logger, "Expired password reset code", user_id=user.id)
            raise OtpExpiredError()

        await self.user_repo.authorize_password_reset(user)
        AUTH_OTP_VERIFICATIONS_TOTAL.labels(outcome="success").inc()
        log_info(logger, "Password reset code verified", user_id=user.id)

    async def reset_password(self, email: str, password: str, confirm_password: str) -> None:
        """Store a new password for an account cleared by :meth:`verify_otp`.

        Args:
            email: Account email
            password: New password
            confirm_password: Repeated new password

        Raises:
            UserNotFoundError: If no account matches
            PreconditionFailedError: If the code was not verified first
            PasswordMismatchError: If the two passwords differ
            PasswordValidationError: If the password doesn't meet policy
        """
        user = await self._get_user(email)

        if not user.password_reset:
            raise PreconditionFailedError()

        if password != confirm_password:
            raise PasswordMismatchError()

        await self.user_repo.reset_password(user, password)
        AUTH_PASSWORD_RESETS_TOTAL.inc()
        log_info(logger, "Password reset completed", user_id=user.id)
