from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from hiredesk_auth.services._shared.errors import NotFoundError


class UsageCounter(str, Enum):
    """Per-user usage counters."""

    FILES_UPLOADED = "files_uploaded"
    BATCH_ANALYSIS = "batch_analysis"
    COMPARE_RESUMES = "compare_resumes"
    SELECTED_CANDIDATE = "selected_candidate"


# Counters that each stand for uploaded resumes; selections are not uploads.
FILE_COUNTERS: tuple[UsageCounter, ...] = (
    UsageCounter.FILES_UPLOADED,
    UsageCounter.BATCH_ANALYSIS,
    UsageCounter.COMPARE_RESUMES,
)


@dataclass(frozen=True, slots=True)
class CounterUpdate:
    """
    Outcome of a conditional counter increment.

    :ivar ok: ``True`` when the increment was applied.
    :ivar value: Stored value after the attempt (unchanged when ``ok`` is false).
    """

    ok: bool
    value: int


class SessionStore(Protocol):
    """
    Per-user session state: the current refresh-token digest and the usage
    counters.

    ``compare_and_swap``, ``compare_and_clear`` and ``increment_counter`` MUST
    be atomic per user: of two concurrent swaps expecting the same digest,
    exactly one returns ``True``.
    """

    def get_refresh_hash(self, user_id: int) -> str | None: ...

    def set_refresh_hash(self, user_id: int, digest: str | None) -> None:
        """Overwrite the digest unconditionally (login/register/reset)."""
        ...

    def compare_and_swap(self, user_id: int, expected: str, new: str) -> bool:
        """Replace ``expected`` by ``new``; ``False`` if the stored value differs."""
        ...

    def compare_and_clear(self, user_id: int, expected: str) -> bool:
        """Clear the digest only if it equals ``expected``."""
        ...

    def increment_counter(
        self,
        user_id: int,
        counter: UsageCounter,
        amount: int = 1,
        ceiling: int | None = None,
    ) -> CounterUpdate:
        """Add ``amount`` unless the result would exceed ``ceiling``.

        :raises NotFoundError: When the user does not exist.
        """
        ...

    def get_counters(self, user_id: int) -> dict[str, int]:
        """Return every counter by name.

        :raises NotFoundError: When the user does not exist.
        """
        ...


class InMemorySessionStore(SessionStore):
    """
    In-memory session store with atomic compare-and-swap semantics.

    .. note::
       Uses a threading lock to provide atomicity in unit tests.
    """

    def __init__(self) -> None:
        self._refresh: dict[int, str | None] = {}
        self._counters: dict[int, dict[str, int]] = {}
        self._lock = threading.Lock()

    def add_user(self, user_id: int) -> None:
        with self._lock:
            self._refresh.setdefault(user_id, None)
            self._counters.setdefault(user_id, {c.value: 0 for c in UsageCounter})

    def _require(self, user_id: int) -> None:
        if user_id not in self._counters:
            raise NotFoundError("User", user_id)

    def get_refresh_hash(self, user_id: int) -> str | None:
        with self._lock:
            return self._refresh.get(user_id)

    def set_refresh_hash(self, user_id: int, digest: str | None) -> None:
        # Users are registered lazily on their first session write.
        with self._lock:
            self._refresh[user_id] = digest
            self._counters.setdefault(user_id, {c.value: 0 for c in UsageCounter})

    def compare_and_swap(self, user_id: int, expected: str, new: str) -> bool:
        with self._lock:
            if user_id not in self._refresh or self._refresh[user_id] != expected:
                return False
            self._refresh[user_id] = new
            return True

    def compare_and_clear(self, user_id: int, expected: str) -> bool:
        with self._lock:
            if user_id not in self._refresh or self._refresh[user_id] != expected:
                return False
            self._refresh[user_id] = None
            return True

    def increment_counter(
        self,
        user_id: int,
        counter: UsageCounter,
        amount: int = 1,
        ceiling: int | None = None,
    ) -> CounterUpdate:
        with self._lock:
            self._require(user_id)
            name = UsageCounter(counter).value
            current = self._counters[user_id][name]
            if ceiling is not None and current + amount > ceiling:
                return CounterUpdate(ok=False, value=current)
            self._counters[user_id][name] = current + amount
            return CounterUpdate(ok=True, value=current + amount)

    def get_counters(self, user_id: int) -> dict[str, int]:
        with self._lock:
            self._require(user_id)
            return dict(self._counters[user_id])
