# hiredesk_auth/infra/mail/smtp_mailer.py
from __future__ import annotations

import logging
import smtplib
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from email.message import EmailMessage

from hiredesk_auth.services._shared.ports import DeliveryStatus, Mailer, OutgoingEmail

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SMTPSettings:
    """
    Connection settings for :class:`SMTPMailer`.

    :param host: SMTP server host.
    :param port: SMTP server port (587 for STARTTLS, 465 for implicit TLS).
    :param sender: ``From`` header value.
    :param username: Optional login user.
    :param password: Optional login password.
    :param use_tls: Issue ``STARTTLS`` (or use SMTPS on port 465).
    :param timeout: Socket timeout in seconds.
    """

    host: str
    port: int = 587
    sender: str = "no-reply@hiredesk.local"
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    use_tls: bool = True
    timeout: float = 10.0


class SMTPMailer(Mailer):
    """
    Fire-and-forget SMTP delivery on a small thread pool.

    ``send`` returns at once. Transport failures are logged and resolve the
    future to ``DeliveryStatus(delivered=False, error=...)``; they never
    propagate to the caller.

    :param settings: SMTP connection settings.
    :param max_workers: Size of the delivery pool.
    """

    def __init__(self, settings: SMTPSettings, *, max_workers: int = 2) -> None:
        self.settings = settings
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mailer")

    def send(self, email: OutgoingEmail) -> Future[DeliveryStatus]:
        return self._pool.submit(self._deliver, email)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _build_message(self, email: OutgoingEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.settings.sender
        msg["To"] = email.to
        msg["Subject"] = email.subject
        msg.set_content(email.text)
        if email.html:
            msg.add_alternative(email.html, subtype="html")
        return msg

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.use_tls and s.port == 465:
            return smtplib.SMTP_SSL(s.host, s.port, timeout=s.timeout)
        client = smtplib.SMTP(s.host, s.port, timeout=s.timeout)
        if s.use_tls:
            client.starttls()
        return client

    def _deliver(self, email: OutgoingEmail) -> DeliveryStatus:
        try:
            msg = self._build_message(email)
            with self._connect() as client:
                if self.settings.username:
                    client.login(self.settings.username, self.settings.password or "")
                client.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            log.warning(
                "Email delivery failed: tag=%s error=%s",
                email.tag,
                exc.__class__.__name__,
                extra={"event": "mail.failed", "delivered": False},
            )
            return DeliveryStatus(delivered=False, error=str(exc) or exc.__class__.__name__)
        log.info(
            "Email delivered: tag=%s",
            email.tag,
            extra={"event": "mail.sent", "delivered": True},
        )
        return DeliveryStatus(delivered=True)
