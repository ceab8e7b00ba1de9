"""Service for sending account emails."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import urlencode

from accounts.domain.models.user import User

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending confirmation emails via SMTP."""

    def __init__(
        self,
        base_url: str,
        smtp_host: str = "",
        smtp_port: int = 587,
        smtp_username: str = "",
        smtp_password: str = "",
        from_email: str = "",
        from_name: str = "Accounts",
    ):
        self.base_url = base_url.rstrip("/")
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.from_email = from_email
        self.from_name = from_name
        self.enabled = bool(self.smtp_host and self.smtp_username and self.from_email)

    def confirmation_url(self, token: str) -> str:
        return f"{self.base_url}/account/confirm?{urlencode({'token': token})}"

    def send_confirmation(self, user: User, token: str) -> bool:
        """
        Send the email confirmation message.

        Args:
            user: Account owner
            token: Confirmation token to embed in the link

        Returns:
            True if sent (or logged while SMTP is disabled), False otherwise
        """
        confirmation_url = self.confirmation_url(token)

        if not self.enabled:
            # Development mode: surface the link in the logs instead of mailing it.
            logger.info("Confirmation URL for %s: %s", user.email, confirmation_url)
            return True

        subject = "Confirm your email address"
        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #1e293b;">Hello {user.name},</h2>

                <p style="color: #475569; line-height: 1.6;">
                    Please confirm your email address by clicking the button below.
                </p>

                <div style="text-align: center; margin: 30px 0;">
                    <a href="{confirmation_url}"
                       style="background-color: #3b82f6; color: white; padding: 15px 30px;
                              text-decoration: none; border-radius: 5px; display: inline-block;">
                        Confirm email
                    </a>
                </div>

                <p style="color: #64748b; font-size: 14px;">
                    If you did not create an account, no further action is required.
                </p>
            </body>
        </html>
        """

        text_body = f"""
        Hello {user.name},

        Please confirm your email address by visiting the link below:
        {confirmation_url}

        If you did not create an account, no further action is required.
        """

        return self._send_email(user.email, subject, html_body, text_body)

    def _send_email(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        """
        Send an email via SMTP.

        Returns:
            True if sent successfully, False otherwise
        """
        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.from_name} <{self.from_email}>"
            msg["To"] = to_email

            msg.attach(MIMEText(text_body, "plain", "utf-8"))
            msg.attach(MIMEText(html_body, "html", "utf-8"))

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            return True

        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", to_email, exc)
            return False
