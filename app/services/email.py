"""
Outbound email.

Sending is best-effort: SmtpMailer hands each message to a small thread pool and
returns at once, so a slow or broken SMTP server never holds up the request that
produced the notification. Failures are only logged.
"""
from __future__ import annotations

import logging
import smtplib
from concurrent.futures import Future, ThreadPoolExecutor
from email.message import EmailMessage
from typing import Optional, Protocol

from app.core.config import Settings, settings

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    def send(self, to_addr: str, subject: str, body: str) -> None: ...


class NullMailer:
    """Used when no SMTP server is configured."""

    def send(self, to_addr: str, subject: str, body: str) -> None:
        logger.debug("email disabled, dropping %r to %s", subject, to_addr)


class SmtpMailer:
    def __init__(
        self,
        *,
        host: str,
        from_addr: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        starttls: bool = True,
        timeout: float = 15.0,
        max_workers: int = 4,
    ) -> None:
        self.host = host
        self.port = port
        self.from_addr = from_addr
        self.username = username
        self.password = password
        self.starttls = starttls
        self.timeout = timeout
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mailer")

    def send(self, to_addr: str, subject: str, body: str) -> None:
        future = self._pool.submit(self._send_sync, to_addr, subject, body)
        future.add_done_callback(lambda f: self._log_failure(f, to_addr, subject))

    def _send_sync(self, to_addr: str, subject: str, body: str) -> None:
        m = EmailMessage()
        m["Subject"] = subject
        m["From"] = self.from_addr
        m["To"] = to_addr
        m.set_content(body)
        with smtplib.SMTP(host=self.host, port=self.port, timeout=self.timeout) as s:
            s.ehlo()
            if self.starttls:
                s.starttls()
                s.ehlo()
            if self.username and self.password:
                s.login(self.username, self.password)
            s.send_message(m)
        logger.info("email sent to=%s subject=%r", to_addr, subject)

    @staticmethod
    def _log_failure(future: Future, to_addr: str, subject: str) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("email to %s failed (%r): %s", to_addr, subject, exc)

    def shutdown(self) -> None:
        self._pool.shutdown(wait=False)


def build_mailer(cfg: Settings = settings) -> Mailer:
    if not cfg.SMTP_HOST or not cfg.SMTP_FROM:
        logger.info("SMTP not configured; notification emails are disabled")
        return NullMailer()
    return SmtpMailer(
        host=cfg.SMTP_HOST,
        port=cfg.SMTP_PORT,
        from_addr=cfg.SMTP_FROM,
        username=cfg.SMTP_USER,
        password=cfg.SMTP_PASSWORD,
        starttls=cfg.SMTP_STARTTLS,
    )
