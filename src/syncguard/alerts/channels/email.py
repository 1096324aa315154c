"""Email (SMTP) alert channel."""

from __future__ import annotations

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

from syncguard.alerts.base import BaseChannel
from syncguard.alerts.protocol import (
    Alert,
    AlertSeverity,
    ChannelType,
    DeliveryResult,
)
from syncguard.core.errors import TransientError


class EmailChannel(BaseChannel):
    """
    Email channel using SMTP.

    The subject is the alert title prefixed with the severity, so breaker
    alerts arrive as ``[CRITICAL] Circuit breaker opened ...``.
    """

    def __init__(
        self,
        name: str,
        smtp_host: str,
        from_address: str,
        recipients: list[str] | None = None,
        *,
        smtp_port: int = 587,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
        min_severity: AlertSeverity = AlertSeverity.WARNING,
        **kwargs: Any,
    ):
        super().__init__(name, ChannelType.EMAIL, min_severity=min_severity, **kwargs)
        self._smtp_host = smtp_host
        self._smtp_port = smtp_port
        self._smtp_user = smtp_user
        self._smtp_password = smtp_password
        self._from_address = from_address
        self._recipients = list(recipients or [])
        self._use_tls = use_tls
        self._timeout = timeout

    def _build_message(self, alert: Alert, recipients: list[str]) -> str:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = f"[{alert.severity.value}] {alert.title}"
        msg["From"] = self._from_address
        msg["To"] = ", ".join(recipients)

        text = f"""
{alert.severity.value}: {alert.title}

Source: {alert.source}
Module: {alert.module or "N/A"}
Time: {alert.created_at.isoformat()}

{alert.message}
"""
        if alert.error:
            text += f"\nError: {alert.error.message}"

        msg.attach(MIMEText(text, "plain"))

        return msg.as_string()

    def send(self, alert: Alert) -> DeliveryResult:
        """Send alert via email."""
        recipients = alert.recipients or self._recipients
        if not recipients:
            return DeliveryResult.fail(self._name, ValueError("No recipients configured"))

        try:
            server = smtplib.SMTP(self._smtp_host, self._smtp_port, timeout=self._timeout)
            try:
                if self._use_tls:
                    server.starttls()
                if self._smtp_user and self._smtp_password:
                    server.login(self._smtp_user, self._smtp_password)
                server.sendmail(self._from_address, recipients, self._build_message(alert, recipients))
            finally:
                server.quit()

            return DeliveryResult.ok(self._name, f"sent to {len(recipients)} recipient(s)")

        except smtplib.SMTPException as e:
            return DeliveryResult.fail(self._name, TransientError(str(e), cause=e))
        except OSError as e:
            return DeliveryResult.fail(self._name, TransientError(str(e), cause=e))
