"""Tests for best-effort passcode delivery.

**Feature: backstage-auth, Property 7: Best-Effort Delivery**
"""

from typing import Optional

import pytest

from backstage.core.config import settings
from backstage.modules.auth.models import User
from backstage.modules.notification.channels import (
    ChannelDeliveryResult,
    EmailChannel,
    NotificationChannelBase,
)
from backstage.modules.notification.service import EmailOTPNotifier


class RecordingChannel(NotificationChannelBase):
    channel_name = "email"

    def __init__(self):
        self.calls: list[dict] = []

    async def deliver(
        self,
        recipient: str,
        title: str,
        message: str,
        payload: Optional[dict] = None,
    ) -> ChannelDeliveryResult:
        self.calls.append(
            {"recipient": recipient, "title": title, "message": message, "payload": payload}
        )
        return self._create_success_result(recipient)


class ExplodingChannel(NotificationChannelBase):
    channel_name = "email"

    async def deliver(self, recipient, title, message, payload=None) -> ChannelDeliveryResult:
        raise RuntimeError("mail server on fire")


def make_user() -> User:
    return User(id=7, email="alice@example.com", user_name="alice", role="user")


class TestEmailOTPNotifier:

    @pytest.mark.asyncio
    async def test_sends_code_and_reset_link(self) -> None:
        """**Feature: backstage-auth, Property 7: Best-Effort Delivery**"""
        channel = RecordingChannel()
        notifier = EmailOTPNotifier(channel=channel)

        result = await notifier.send_password_reset_otp(make_user(), "4821")

        assert result.success
        assert len(channel.calls) == 1
        call = channel.calls[0]
        assert call["recipient"] == "alice@example.com"
        assert "reset your password" in call["title"].lower()
        assert "4821" in call["message"]
        assert call["payload"]["url"] == f"{settings.PASSWORD_RESET_URL}?otp=4821"

    @pytest.mark.asyncio
    async def test_channel_exception_becomes_failed_result(self) -> None:
        """**Feature: backstage-auth, Property 7: Best-Effort Delivery**"""
        notifier = EmailOTPNotifier(channel=ExplodingChannel())

        result = await notifier.send_password_reset_otp(make_user(), "4821")

        assert not result.success
        assert "mail server on fire" in result.error

    @pytest.mark.asyncio
    async def test_unconfigured_smtp_fails_without_raising(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "SMTP_HOST", "")
        notifier = EmailOTPNotifier(channel=EmailChannel())

        result = await notifier.send_password_reset_otp(make_user(), "4821")

        assert not result.success
        assert result.error == "SMTP not configured"


class TestEmailChannel:

    def test_is_configured_needs_host_and_sender(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
        monkeypatch.setattr(settings, "SMTP_FROM_EMAIL", "")
        assert not EmailChannel().is_configured

        monkeypatch.setattr(settings, "SMTP_FROM_EMAIL", "noreply@example.com")
        assert EmailChannel().is_configured

    def test_message_escapes_link(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "SMTP_FROM_EMAIL", "noreply@example.com")
        msg = EmailChannel()._build_message(
            "alice@example.com",
            "Reset",
            "Code: 4821",
            {"url": "https://backstage.app/confirm?otp=4821&x=<y>"},
        )

        html = msg.get_payload()[1].get_payload(decode=True).decode()
        assert "otp=4821&amp;x=&lt;y&gt;" in html
        assert msg["To"] == "alice@example.com"
        assert msg["From"] == "noreply@example.com"

    @pytest.mark.asyncio
    async def test_smtp_error_is_reported(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
        monkeypatch.setattr(settings, "SMTP_FROM_EMAIL", "noreply@example.com")
        channel = EmailChannel()

        def refuse(recipient, msg):
            raise ConnectionRefusedError("connection refused")

        monkeypatch.setattr(channel, "_send_smtp", refuse)

        result = await channel.deliver("alice@example.com", "Reset", "Code: 4821")

        assert not result.success
        assert "connection refused" in result.error
