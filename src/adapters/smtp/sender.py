"""
SMTP email sender adapter - Implements EmailSender protocol.

Keeps one SMTP connection for the life of the process. The connection is
opened lazily, health-checked with NOOP before each send, and closed at
application shutdown. Delivery errors propagate to the caller.
"""

import html
import logging
import smtplib
import ssl
import threading
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

logger = logging.getLogger(__name__)


class SmtpEmailSender:
    """Implements EmailSender protocol over a persistent smtplib connection."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        app_url: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._app_url = app_url.rstrip("/")
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout
        self._server: smtplib.SMTP | None = None
        self._lock = threading.Lock()

    def send_activation_email(self, email: str, name: str, token: str) -> None:
        activation_url = f"{self._app_url}/activate?token={token}"
        text = (
            f"Welcome, {name}!\n\n"
            f"Activate your account by opening this link:\n{activation_url}\n\n"
            f"Or use this activation token: {token}\n\n"
            "If you didn't sign up for this account, you can safely ignore this email."
        )
        body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Welcome, {html.escape(name)}!</h2>
            <p>Thank you for signing up. Please activate your account by clicking the button below:</p>
            <p style="text-align: center; margin: 30px 0;">
                <a href="{activation_url}"
                   style="background-color: #4CAF50; color: white; padding: 10px 20px;
                          text-decoration: none; border-radius: 4px;">
                    Activate Account
                </a>
            </p>
            <p>Or copy and paste this activation token:</p>
            <p><code>{token}</code></p>
            <p>If you didn't sign up for this account, you can safely ignore this email.</p>
        </div>
        """
        self._send(email, "Activate Your Account", body, text)
        logger.info("Activation email sent to %s", email)

    def send_password_reset_email(
        self, email: str, name: str, token: str, expires_in_minutes: int
    ) -> None:
        reset_url = f"{self._app_url}/reset-password?token={token}"
        text = (
            f"Hi {name},\n\n"
            f"Reset your password by opening this link:\n{reset_url}\n\n"
            f"This link expires in {expires_in_minutes} minutes.\n\n"
            "If you didn't request this, you can safely ignore this email."
        )
        body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Reset Your Password</h2>
            <p>Hi {html.escape(name)},</p>
            <p>We received a request to reset your password.</p>
            <p>Click the button below to reset it. This link expires in {expires_in_minutes} minutes.</p>
            <p style="margin: 30px 0;">
                <a href="{reset_url}"
                   style="background-color: #4CAF50; color: white; padding: 12px 24px;
                          text-decoration: none; border-radius: 4px;">
                    Reset Password
                </a>
            </p>
            <p>If you didn't request this, you can safely ignore this email.</p>
        </div>
        """
        self._send(email, "Reset Your Password", body, text)
        logger.info("Password reset email sent to %s", email)

    def close(self) -> None:
        """Close the SMTP connection if one is open."""
        with self._lock:
            if self._server is None:
                return
            try:
                self._server.quit()
            except smtplib.SMTPException as exc:
                logger.warning("SMTP quit failed: %s", exc)
            finally:
                self._server = None

    def _send(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self._sender
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        with self._lock:
            server = self._connection()
            server.sendmail(self._sender, [to_email], msg.as_string())

    def _connection(self) -> smtplib.SMTP:
        """Return the live connection, reopening it if the server dropped it."""
        if self._server is not None:
            try:
                self._server.noop()
                return self._server
            except smtplib.SMTPServerDisconnected:
                logger.info("SMTP connection dropped; reconnecting")
                self._server = None

        context = ssl.create_default_context()
        if self._port == 465:
            server: smtplib.SMTP = smtplib.SMTP_SSL(
                self._host, self._port, timeout=self._timeout, context=context
            )
        else:
            server = smtplib.SMTP(self._host, self._port, timeout=self._timeout)

        try:
            if self._port != 465:
                server.ehlo()
                if self._use_tls:
                    server.starttls(context=context)
                    server.ehlo()
            if self._username:
                server.login(self._username, self._password)
        except (smtplib.SMTPException, OSError):
            # Handshake failed after the socket opened
            server.close()
            raise
        self._server = server
        return server
