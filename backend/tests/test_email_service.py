import smtplib
from unittest.mock import MagicMock

from swapmarket.services import email_service as email_module
from swapmarket.services.email_service import EmailService


def configured_service():
    service = EmailService()
    service.smtp_port = 587
    service.smtp_username = "mailer@example.com"
    service.smtp_password = "app-password"
    service.from_email = "mailer@example.com"
    service.retry_delay = 0
    return service


async def test_unconfigured_smtp_skips_sending():
    service = EmailService()
    assert service.configured is False
    assert await service.send_email("a@example.com", "Hi", "<p>Hi</p>") is False


def test_sync_send_builds_multipart_message(monkeypatch):
    server = MagicMock()
    monkeypatch.setattr(email_module.smtplib, "SMTP", MagicMock(return_value=server))
    service = configured_service()

    assert service._send_email_sync("to@example.com", "Subject", "<p>html</p>", "plain") is True

    server.login.assert_called_once_with("mailer@example.com", "app-password")
    message = server.send_message.call_args.args[0]
    assert message["To"] == "to@example.com"
    assert message["Subject"] == "Subject"
    assert [part.get_content_type() for part in message.get_payload()] == ["text/plain", "text/html"]
    server.quit.assert_called_once()


def test_sync_send_retries_then_gives_up(monkeypatch):
    connect = MagicMock(side_effect=smtplib.SMTPConnectError(421, "busy"))
    monkeypatch.setattr(email_module.smtplib, "SMTP", connect)
    service = configured_service()

    assert service._send_email_sync("to@example.com", "Subject", "<p>html</p>") is False
    assert connect.call_count == service.max_retries


async def test_password_reset_email_contains_link(monkeypatch):
    service = configured_service()
    sent = {}

    async def fake_send(to_email, subject, html_content, text_content=None):
        sent.update(to=to_email, subject=subject, html=html_content, text=text_content)
        return True

    monkeypatch.setattr(service, "send_email", fake_send)
    link = "http://localhost:3000/auth/reset-password?token=abc&x=1"

    assert await service.send_password_reset_email("to@example.com", link) is True
    assert sent["to"] == "to@example.com"
    assert link in sent["text"]
    assert "token=abc&amp;x=1" in sent["html"]
