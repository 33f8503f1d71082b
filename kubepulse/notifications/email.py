"""SMTP email sink.

Uses the standard-library ``smtplib`` executed in a thread-pool executor
so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import smtplib
import ssl
from collections.abc import Sequence
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from kubepulse.notifications.manager import NotificationSink
from kubepulse.observability.logging import get_logger

_log = get_logger("notifications.email")


class SMTPConfig:
    """SMTP connection parameters.

    Args:
        host:       SMTP server hostname.
        port:       SMTP server port (587 for STARTTLS, 465 for SSL).
        username:   SMTP authentication username.
        password:   SMTP authentication password.
        from_addr:  Sender email address.
        use_tls:    Implicit TLS (SMTP_SSL) when True, STARTTLS otherwise.
        timeout:    Socket timeout in seconds.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_addr: str,
        use_tls: bool = False,
        timeout: float = 10.0,
    ) -> None:
        if not host:
            raise ValueError("SMTP host must not be empty")
        if not from_addr:
            raise ValueError("SMTP from_addr must not be empty")
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_addr = from_addr
        self.use_tls = use_tls
        self.timeout = timeout


class EmailNotificationSink(NotificationSink):
    """Delivers messages as multipart (plain + optional HTML) email."""

    def __init__(self, smtp_config: SMTPConfig) -> None:
        self._smtp = smtp_config

    @property
    def channel_name(self) -> str:
        return "email"

    async def send(
        self,
        subject: str,
        body: str,
        recipients: Sequence[str],
        html: str | None = None,
    ) -> bool:
        if not recipients:
            _log.warning("email_no_recipients", subject=subject)
            return False
        msg = self.build_message(subject, body, recipients, html)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._send_sync, msg)
            return True
        except smtplib.SMTPException as exc:
            _log.warning("email_smtp_error", error=str(exc), subject=subject)
            return False
        except OSError as exc:
            _log.warning("email_connection_error", error=str(exc), subject=subject)
            return False

    def build_message(
        self,
        subject: str,
        body: str,
        recipients: Sequence[str],
        html: str | None = None,
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self._smtp.from_addr
        msg["To"] = ", ".join(recipients)
        msg.attach(MIMEText(body, "plain", "utf-8"))
        if html:
            msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def _send_sync(self, msg: MIMEMultipart) -> None:
        """Blocking SMTP delivery; runs inside a thread executor."""
        context = ssl.create_default_context()

        if self._smtp.use_tls:
            with smtplib.SMTP_SSL(
                self._smtp.host,
                self._smtp.port,
                context=context,
                timeout=self._smtp.timeout,
            ) as server:
                if self._smtp.username:
                    server.login(self._smtp.username, self._smtp.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(self._smtp.host, self._smtp.port, timeout=self._smtp.timeout) as server:
                server.ehlo()
                server.starttls(context=context)
                server.ehlo()
                if self._smtp.username:
                    server.login(self._smtp.username, self._smtp.password)
                server.send_message(msg)
