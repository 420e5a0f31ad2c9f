"""Best-effort delivery of password recovery passcodes."""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from backstage.core.config import settings
from backstage.core.logging import log_error, log_info, log_warning
from backstage.core.metrics import AUTH_OTP_DELIVERY_TOTAL
from backstage.modules.notification.channels import ChannelDeliveryResult, EmailChannel

if TYPE_CHECKING:
    from backstage.modules.auth.models import User

logger = logging.getLogger(__name__)


class OTPNotifier(ABC):
    """Sends a recovery passcode to its owner.

    Implementations never raise: a failed delivery is reported through the
    returned result, and the stored passcode stays valid either way.
    """

    @abstractmethod
    async def send_password_reset_otp(self, user: "User", otp: str) -> ChannelDeliveryResult:
        """Deliver ``otp`` to ``user``."""


class EmailOTPNotifier(OTPNotifier):
    """Delivers passcodes by email."""

    def __init__(self, channel: EmailChannel | None = None):
        self.channel = channel or EmailChannel()

    async def send_password_reset_otp(self, user: "User", otp: str) -> ChannelDeliveryResult:
        url = f"{settings.PASSWORD_RESET_URL}?{urlencode({'otp': otp})}"
        title = "Welcome to Backstage! Reset your password"
        message = (
            f"Hi {user.user_name},\n\n"
            f"Use this code to reset your password: {otp}\n"
            f"It expires in {settings.OTP_EXPIRE_MINUTES} minutes.\n\n"
            "If you did not ask for a password reset you can ignore this email."
        )

        try:
            result = await self.channel.deliver(
                user.email,
                title,
                message,
                payload={"url": url},
            )
        except Exception as e:
            log_error(
                logger,
                "Password reset code delivery raised",
                exception=e,
                user_id=user.id,
            )
            result = ChannelDeliveryResult(
                success=False,
                channel=self.channel.channel_name,
                recipient=user.email,
                error=str(e),
            )

        outcome = "delivered" if result.success else "failed"
        AUTH_OTP_DELIVERY_TOTAL.labels(channel=result.channel, outcome=outcome).inc()

        if result.success:
            log_info(logger, "Password reset code delivered", user_id=user.id)
        else:
            log_warning(
                logger,
                "Password reset code not delivered",
                user_id=user.id,
                error=result.error,
            )
        return result


_default_notifier: OTPNotifier | None = None


def get_otp_notifier() -> OTPNotifier:
    """FastAPI dependency returning the process-wide notifier."""
    global _default_notifier
    if _default_notifier is None:
        _default_notifier = EmailOTPNotifier()
    return _default_notifier
