"""Notification channel implementations.

Only email is wired up: recovery passcodes are sent to the account address.
"""

import asyncio
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

from backstage.core.config import settings


@dataclass
class ChannelDeliveryResult:
    """Result of a channel delivery attempt."""
    success: bool
    channel: str
    recipient: str
    delivered_at: Optional[datetime] = None
    error: Optional[str] = None
    response_data: Optional[dict] = None


class NotificationChannelBase(ABC):
    """Base class for notification channels."""

    channel_name: str = "base"

    @abstractmethod
    async def deliver(
        self,
        recipient: str,
        title: str,
        message: str,
        payload: Optional[dict] = None,
    ) -> ChannelDeliveryResult:
        """Deliver notification to recipient.

        Args:
            recipient: Channel-specific recipient identifier
            title: Notification title
            message: Notification message body
            payload: Additional payload data

        Returns:
            ChannelDeliveryResult with delivery status
        """

    def _create_success_result(
        self,
        recipient: str,
        response_data: Optional[dict] = None,
    ) -> ChannelDeliveryResult:
        return ChannelDeliveryResult(
            success=True,
            channel=self.channel_name,
            recipient=recipient,
            delivered_at=datetime.utcnow(),
            response_data=response_data,
        )

    def _create_failure_result(self, recipient: str, error: str) -> ChannelDeliveryResult:
        return ChannelDeliveryResult(
            success=False,
            channel=self.channel_name,
            recipient=recipient,
            error=error,
        )


class EmailChannel(NotificationChannelBase):
    """Email notification channel using SMTP."""

    channel_name = "email"

    @property
    def is_configured(self) -> bool:
        return bool(settings.SMTP_HOST and settings.SMTP_FROM_EMAIL)

    async def deliver(
        self,
        recipient: str,
        title: str,
        message: str,
        payload: Optional[dict] = None,
    ) -> ChannelDeliveryResult:
        """Deliver notification via email."""
        if not self.is_configured:
            return self._create_failure_result(recipient, "SMTP not configured")

        try:
            msg = self._build_message(recipient, title, message, payload or {})

            # Send email in thread pool to avoid blocking
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._send_smtp, recipient, msg)

            return self._create_success_result(recipient)
        except (smtplib.SMTPException, OSError) as e:
            return self._create_failure_result(recipient, str(e))

    def _build_message(
        self,
        recipient: str,
        title: str,
        message: str,
        payload: dict,
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = title
        msg["From"] = settings.SMTP_FROM_EMAIL
        msg["To"] = recipient

        msg.attach(MIMEText(message, "plain"))

        link = payload.get("url")
        link_html = f'<p><a href="{escape(link)}">{escape(link)}</a></p>' if link else ""
        html_content = f"""
        <html>
        <body>
            <h2>{escape(title)}</h2>
            <p>{escape(message).replace(chr(10), '<br>')}</p>
            {link_html}
        </body>
        </html>
        """
        msg.attach(MIMEText(html_content, "html"))
        return msg

    def _send_smtp(self, recipient: str, msg: MIMEMultipart) -> None:
        """Send email via SMTP (blocking operation)."""
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            if settings.SMTP_TLS:
                server.starttls()

            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)

            server.sendmail(
                settings.SMTP_FROM_EMAIL,
                recipient,
                msg.as_string(),
            )
