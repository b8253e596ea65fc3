from __future__ import annotations

import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class OutgoingEmail:
    """
    A single transactional email.

    :ivar to: Recipient address.
    :ivar subject: Subject line.
    :ivar text: Plain-text body.
    :ivar html: Optional HTML alternative.
    :ivar tag: Short machine label (``"verify_email"``, ``"reset_password"``).
    """

    to: str
    subject: str
    text: str
    html: str | None = None
    tag: str = ""


@dataclass(frozen=True, slots=True)
class DeliveryStatus:
    delivered: bool
    error: str | None = None


class Mailer(Protocol):
    """
    Port for asynchronous email delivery.

    ``send`` returns immediately; the future never raises and resolves to a
    :class:`DeliveryStatus` describing the outcome.
    """

    def send(self, email: OutgoingEmail) -> Future[DeliveryStatus]: ...


class InMemoryMailer(Mailer):
    """Collect emails in an outbox; every delivery succeeds at once."""

    def __init__(self) -> None:
        self.outbox: list[OutgoingEmail] = []
        self._lock = threading.Lock()

    def send(self, email: OutgoingEmail) -> Future[DeliveryStatus]:
        with self._lock:
            self.outbox.append(email)
        fut: Future[DeliveryStatus] = Future()
        fut.set_result(DeliveryStatus(delivered=True))
        return fut

    def last_to(self, address: str) -> OutgoingEmail | None:
        """Most recent email sent to ``address``."""
        with self._lock:
            for email in reversed(self.outbox):
                if email.to == address:
                    return email
        return None

    def clear(self) -> None:
        with self._lock:
            self.outbox.clear()
