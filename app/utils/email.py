"""Email utility: sends transactional emails via SMTP (TLS)."""
from __future__ import annotations

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import Settings

logger = logging.getLogger(__name__)


_LAYOUT = """
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    body {{ font-family: Arial, sans-serif; margin: 0; padding: 0; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 24px; }}
    h2 {{ color: #4f46e5; }}
    .code {{ background-color: #f3f4f6; padding: 20px; text-align: center; margin: 20px 0;
             color: #1f2937; font-size: 32px; letter-spacing: 4px; font-weight: 700; }}
    .button {{ background-color: #4f46e5; color: white; padding: 12px 24px; text-decoration: none;
               border-radius: 6px; display: inline-block; font-weight: bold; }}
    .footer {{ margin-top: 30px; border-top: 1px solid #e5e7eb; padding-top: 12px;
               color: #6b7280; font-size: 14px; }}
  </style>
</head>
<body>
  <div class="container">
    {body}
    <div class="footer">Budget This - Your Personal Finance Tracker</div>
  </div>
</body>
</html>
"""


class Mailer:
    """
    SMTP client used to deliver one-time codes and reset links.

    Built once at application start-up and handed to request handlers through
    ``Depends(get_mailer)``. Every ``send_*`` method returns True on success
    and False on failure; callers decide whether a failure aborts their flow.
    """

    def __init__(self, settings: Settings):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USER
        self.password = settings.SMTP_PASS
        self.sender = settings.EMAIL_FROM
        self.sender_name = settings.EMAIL_FROM_NAME
        self.timeout = 15

    def _connect(self) -> smtplib.SMTP:
        """Open an authenticated SMTP TLS connection."""
        conn = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        conn.ehlo()
        conn.starttls()
        conn.ehlo()
        if self.username and self.password:
            conn.login(self.username, self.password)
        return conn

    def send_email(self, to: str, subject: str, html_body: str, plain_body: str = "") -> bool:
        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.sender_name} <{self.sender}>"
            msg["To"] = to

            if plain_body:
                msg.attach(MIMEText(plain_body, "plain", "utf-8"))
            msg.attach(MIMEText(html_body, "html", "utf-8"))

            with self._connect() as conn:
                conn.sendmail(self.sender, [to], msg.as_string())

            logger.info(f"[Email] Sent '{subject}' → {to}")
            return True

        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"[Email] Failed to send '{subject}' to {to}: {exc}")
            return False

    # ── Convenience senders ───────────────────────────────────────────────────

    def send_verification_email(self, to: str, code: str, first_name: str = "") -> bool:
        """Send the 6-digit code that verifies a new account's email address."""
        greeting = f"Hi {first_name}," if first_name else "Hello,"
        body = f"""
    <h2>Welcome to Budget This!</h2>
    <p>{html.escape(greeting)}</p>
    <p>Please verify your email address by entering this code in the application:</p>
    <div class="code">{html.escape(code)}</div>
    <p>This code will expire in 24 hours.</p>
    <p>If you didn't create an account with Budget This, please ignore this email.</p>
"""
        plain = f"{greeting}\n\nYour Budget This verification code is: {code}\n\nExpires in 24 hours."
        return self.send_email(to, "Verify Your Email - Budget This", _LAYOUT.format(body=body), plain)

    def send_mfa_code_email(self, to: str, code: str, first_name: str = "") -> bool:
        """Send the 6-digit code that completes a login."""
        greeting = f"Hi {first_name}," if first_name else "Hello,"
        body = f"""
    <h2>Multi-Factor Authentication</h2>
    <p>{html.escape(greeting)}</p>
    <p>Here's your code to complete your login:</p>
    <div class="code">{html.escape(code)}</div>
    <p>This code will expire in 5 minutes.</p>
    <p>If you didn't request this code, please secure your account immediately.</p>
"""
        plain = f"{greeting}\n\nYour Budget This login code is: {code}\n\nExpires in 5 minutes."
        return self.send_email(to, "Your MFA Code - Budget This", _LAYOUT.format(body=body), plain)

    def send_password_reset_email(self, to: str, reset_url: str, first_name: str = "") -> bool:
        """Send a password reset link."""
        greeting = f"Hi {first_name}," if first_name else "Hello,"
        body = f"""
    <h2>Password Reset Request</h2>
    <p>{html.escape(greeting)}</p>
    <p>We received a request to reset your password for your Budget This account.</p>
    <p style="text-align: center; margin: 30px 0;">
      <a class="button" href="{html.escape(reset_url)}">Reset Password</a>
    </p>
    <p>Or copy and paste this link into your browser:</p>
    <p style="word-break: break-all; color: #6b7280;">{html.escape(reset_url)}</p>
    <p><strong>This link will expire in 1 hour.</strong></p>
    <p>If you didn't request a password reset, please ignore this email.</p>
"""
        plain = (
            f"{greeting}\n\n"
            f"Reset your Budget This password here: {reset_url}\n\n"
            f"This link will expire in 1 hour."
        )
        return self.send_email(to, "Reset Your Password - Budget This", _LAYOUT.format(body=body), plain)
