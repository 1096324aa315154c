"""Tests for alert channels and the alert protocol."""

import io
import smtplib
from unittest.mock import patch

from rich.console import Console

from syncguard.alerts.channels import ConsoleChannel, EmailChannel
from syncguard.alerts.protocol import Alert, AlertSeverity
from syncguard.core.errors import TransientError


def _alert(**kwargs) -> Alert:
    defaults = {
        "severity": AlertSeverity.CRITICAL,
        "title": "Circuit breaker opened: remote service unreachable",
        "message": "Synchronization is paused.",
        "source": "circuit_breaker",
    }
    defaults.update(kwargs)
    return Alert(**defaults)


class TestAlert:
    def test_severity_ordering(self):
        assert AlertSeverity.INFO < AlertSeverity.WARNING < AlertSeverity.CRITICAL
        assert AlertSeverity.ERROR >= AlertSeverity.WARNING

    def test_fingerprint(self):
        alert = _alert(module="crm")
        assert alert.fingerprint == (
            "CRITICAL|circuit_breaker|Circuit breaker opened: remote service unreachable|crm"
        )

    def test_to_dict(self):
        data = _alert(recipients=["a@b.c"], metadata={"failures": 3}).to_dict()
        assert data["severity"] == "CRITICAL"
        assert data["recipients"] == ["a@b.c"]
        assert data["metadata"] == {"failures": 3}
        assert "module" not in data


class TestEmailChannel:
    def _channel(self, **kwargs):
        return EmailChannel(
            "email",
            smtp_host="smtp.example.com",
            from_address="syncguard@example.com",
            smtp_user="user",
            smtp_password="secret",
            **kwargs,
        )

    def test_send(self):
        with patch("syncguard.alerts.channels.email.smtplib.SMTP") as smtp_cls:
            result = self._channel().send(_alert(recipients=["admin@example.com"]))

        assert result.success is True
        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        server = smtp_cls.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("user", "secret")
        sender, recipients, body = server.sendmail.call_args.args
        assert sender == "syncguard@example.com"
        assert recipients == ["admin@example.com"]
        assert "Subject: [CRITICAL] Circuit breaker opened" in body
        server.quit.assert_called_once()

    def test_configured_recipients_fallback(self):
        with patch("syncguard.alerts.channels.email.smtplib.SMTP") as smtp_cls:
            self._channel(recipients=["ops@example.com"]).send(_alert())
        assert smtp_cls.return_value.sendmail.call_args.args[1] == ["ops@example.com"]

    def test_no_recipients(self):
        result = self._channel().send(_alert())
        assert result.success is False
        assert isinstance(result.error, ValueError)

    def test_smtp_error_is_transient(self):
        with patch("syncguard.alerts.channels.email.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.sendmail.side_effect = smtplib.SMTPException("rejected")
            result = self._channel().send(_alert(recipients=["admin@example.com"]))

        assert result.success is False
        assert isinstance(result.error, TransientError)
        assert result.error.retryable is True
        smtp_cls.return_value.quit.assert_called_once()

    def test_connection_error_is_transient(self):
        with patch(
            "syncguard.alerts.channels.email.smtplib.SMTP", side_effect=OSError("refused")
        ):
            result = self._channel().send(_alert(recipients=["admin@example.com"]))
        assert result.success is False
        assert "refused" in result.message

    def test_min_severity(self):
        channel = self._channel()
        assert channel.should_send(_alert(severity=AlertSeverity.INFO)) is False
        assert channel.should_send(_alert(severity=AlertSeverity.ERROR)) is True


class TestConsoleChannel:
    def test_prints_alert(self):
        buffer = io.StringIO()
        channel = ConsoleChannel(console=Console(file=buffer, width=200, no_color=True))
        result = channel.send(_alert(module="crm", recipients=["admin@example.com"]))

        output = buffer.getvalue()
        assert result.success is True
        assert "[CRITICAL] Circuit breaker opened" in output
        assert "Module: crm" in output
        assert "To: admin@example.com" in output

    def test_disabled(self):
        channel = ConsoleChannel(console=Console(file=io.StringIO()), enabled=False)
        assert channel.enabled is False
        assert channel.should_send(_alert()) is False
