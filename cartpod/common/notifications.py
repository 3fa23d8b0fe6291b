"""
Email Notifications

This module sends the transactional emails of the API. Only the password reset
email exists today.
"""

import asyncio
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional
from urllib.parse import quote

from cartpod.common.logger import app_logger, log_execution_time

logger = app_logger.getChild("notifications")

RESET_SUBJECT = "Password Reset Request"

RESET_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Password Reset Request</h2>
  <p>Hello {name},</p>
  <p>We received a request to reset the password of your CartPod account.</p>
  <p>Click the button below to choose a new password:</p>
  <p>
    <a href="{link}" style="background-color: #4CAF50; color: white; padding: 10px 20px; text-decoration: none; border-radius: 4px;">
      Reset Password
    </a>
  </p>
  <p>Or copy this link into your browser:</p>
  <p>{link}</p>
  <p>This link will expire in {minutes} minutes.</p>
  <p>If you did not request a password reset, you can ignore this email.</p>
</div>
"""


@dataclass
class MailConfig:
    """
    SMTP settings for outgoing mail.

    Attributes:
        smtp_host: Mail server host
        smtp_port: Mail server port
        use_tls: Upgrade the connection with STARTTLS
        username: Login and sender address
        password: Login password
        from_name: Display name of the sender
        client_url: Base URL of the web client, used to build links
        reset_token_minutes: Lifetime announced in the reset email
        timeout: Socket timeout in seconds
    """
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    use_tls: bool = True
    username: Optional[str] = None
    password: Optional[str] = None
    from_name: str = "CartPod"
    client_url: str = "http://localhost:3000"
    reset_token_minutes: int = 60
    timeout: float = 10.0


class Notifier(ABC):
    """Delivers user-facing messages."""

    @abstractmethod
    async def send_password_reset_email(self, email: str, token: str) -> bool:
        """Send the password reset link. Returns True if successful."""
        pass


class SMTPNotifier(Notifier):
    """Sends email through an SMTP server."""

    def __init__(self, config: MailConfig):
        self.config = config

    def reset_link(self, token: str) -> str:
        return f"{self.config.client_url.rstrip('/')}/reset-password?token={quote(token)}"

    def build_reset_message(self, email: str, token: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.config.from_name, self.config.username or ""))
        msg["To"] = email
        msg["Subject"] = RESET_SUBJECT

        body = RESET_TEMPLATE.format(
            name=email.split("@")[0],
            link=self.reset_link(token),
            minutes=self.config.reset_token_minutes,
        )
        msg.attach(MIMEText(body, "html"))
        return msg

    def _send(self, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=self.config.timeout) as server:
            if self.config.use_tls:
                server.starttls()
            if self.config.username and self.config.password:
                server.login(self.config.username, self.config.password)
            server.send_message(msg)

    @log_execution_time(logger)
    async def send_password_reset_email(self, email: str, token: str) -> bool:
        if not self.config.username:
            logger.warning("Email sender is not configured, cannot send password reset email")
            return False

        try:
            msg = self.build_reset_message(email, token)
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._send, msg)
            logger.info("Password reset email sent")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send password reset email: {e}")
            return False
