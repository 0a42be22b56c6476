"""Email delivery"""

import asyncio
import logging
import smtplib
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

from swapmarket.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class EmailService:
    """SMTP email sender"""

    max_retries = 3
    retry_delay = 2

    def __init__(self):
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_username = settings.smtp_username
        self.smtp_password = settings.smtp_password
        self.from_email = settings.smtp_from_email or settings.smtp_username
        self.from_name = settings.smtp_from_name

    @property
    def configured(self) -> bool:
        return bool(self.smtp_username and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """
        Send an email

        Returns:
            True if sent, False if SMTP is not configured or every attempt failed
        """
        if not self.configured:
            logger.warning("SMTP credentials not configured, email not sent")
            return False

        # smtplib blocks, keep it off the event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            self._send_email_sync,
            to_email,
            subject,
            html_content,
            text_content,
        )

    def _build_message(self, to_email: str, subject: str, html_content: str, text_content: Optional[str]) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject
        if text_content:
            message.attach(MIMEText(text_content, "plain", "utf-8"))
        message.attach(MIMEText(html_content, "html", "utf-8"))
        return message

    def _connect(self) -> smtplib.SMTP:
        if self.smtp_port == 465:
            return smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, timeout=30)
        server = smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30)
        if self.smtp_port == 587:
            server.ehlo()
            server.starttls()
            server.ehlo()
        return server

    def _send_email_sync(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """Blocking send with exponential backoff between attempts"""
        message = self._build_message(to_email, subject, html_content, text_content)

        for attempt in range(self.max_retries):
            try:
                server = self._connect()
                try:
                    server.login(self.smtp_username, self.smtp_password)
                    server.send_message(message)
                finally:
                    try:
                        server.quit()
                    except smtplib.SMTPException:
                        logger.debug("SMTP quit failed")
                logger.info(f"Email sent to {to_email}")
                return True
            except (smtplib.SMTPException, OSError) as e:
                logger.warning(f"Email to {to_email} failed (attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_delay * (2 ** attempt))

        logger.error(f"Giving up on email to {to_email}")
        return False

    async def send_password_reset_email(self, to_email: str, reset_link: str) -> bool:
        subject = f"Reset your {settings.app_name} password"
        text_content = (
            f"We received a request to reset your {settings.app_name} password.\n\n"
            f"Open this link to choose a new one:\n{reset_link}\n\n"
            f"The link expires in {settings.password_reset_expire_minutes} minutes. "
            "If you did not ask for a reset you can ignore this email."
        )
        html_content = f"""
<html>
<body style="font-family: Arial, sans-serif; color: #1f2937;">
    <h2>Reset your password</h2>
    <p>We received a request to reset your {escape(settings.app_name)} password.</p>
    <p><a href="{escape(reset_link)}" style="background:#2563eb;color:#fff;padding:10px 16px;border-radius:6px;text-decoration:none;">Choose a new password</a></p>
    <p style="color:#6b7280;font-size:13px;">
        The link expires in {settings.password_reset_expire_minutes} minutes.
        If you did not ask for a reset you can ignore this email.
    </p>
</body>
</html>
"""
        return await self.send_email(to_email, subject, html_content, text_content)


email_service = EmailService()


def get_email_service() -> EmailService:
    """FastAPI dependency"""
    return email_service
