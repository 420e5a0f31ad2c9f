"""Notification module."""

from backstage.modules.notification.channels import (
    ChannelDeliveryResult,
    EmailChannel,
    NotificationChannelBase,
)
from backstage.modules.notification.service import (
    EmailOTPNotifier,
    OTPNotifier,
    get_otp_notifier,
)

__all__ = [
    "ChannelDeliveryResult",
    "NotificationChannelBase",
    "EmailChannel",
    "OTPNotifier",
    "EmailOTPNotifier",
    "get_otp_notifier",
]
