# hiredesk_auth/services/usage/service.py
from __future__ import annotations

import logging
from collections.abc import Mapping

from hiredesk_auth.services._shared.base import BaseService
from hiredesk_auth.services._shared.errors import LimitExceededError, ValidationError
from hiredesk_auth.services._shared.ports import SessionStore, UsageCounter
from hiredesk_auth.services.usage.dto import UsageStatsOut

log = logging.getLogger(__name__)

DEFAULT_LIMITS: dict[str, int | None] = {
    UsageCounter.FILES_UPLOADED.value: None,
    UsageCounter.BATCH_ANALYSIS.value: None,
    UsageCounter.COMPARE_RESUMES.value: None,
    UsageCounter.SELECTED_CANDIDATE.value: 10,
}


class UsageLimiter(BaseService):
    """
    Per-user usage counters enforced as ceilings.

    The check and the increment are one conditional write in the session
    store, so concurrent requests can never push a counter past its ceiling.

    :param sessions: Store holding the counters.
    :param limits: Ceiling per counter name; ``None`` or a missing key means
        uncapped.
    """

    def __init__(
        self,
        *,
        sessions: SessionStore,
        limits: Mapping[str, int | None] | None = None,
    ) -> None:
        self.sessions = sessions
        merged = dict(DEFAULT_LIMITS)
        if limits is not None:
            for name, value in limits.items():
                merged[UsageCounter(name).value] = value
        self.limits = merged

    @staticmethod
    def parse_counter(counter: UsageCounter | str) -> UsageCounter:
        """
        :raises ValidationError: For an unknown counter name.
        """
        try:
            return UsageCounter(counter)
        except ValueError as exc:
            allowed = ", ".join(c.value for c in UsageCounter)
            raise ValidationError(
                "Unknown usage counter", {"counter": [f"Must be one of: {allowed}."]}
            ) from exc

    def limit_for(self, counter: UsageCounter | str) -> int | None:
        return self.limits.get(self.parse_counter(counter).value)

    def check_and_increment(
        self, user_id: int, counter: UsageCounter | str, amount: int = 1
    ) -> int:
        """
        Add ``amount`` to ``counter`` unless that would exceed its ceiling.

        :returns: The new counter value.
        :raises ValidationError: For an unknown counter or a non-positive amount.
        :raises LimitExceededError: When the ceiling would be exceeded; the
            stored value is left unchanged.
        :raises NotFoundError: When the user does not exist.
        """
        name = self.parse_counter(counter)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
            raise ValidationError("Invalid amount", {"count": ["Must be an integer >= 1."]})

        ceiling = self.limits.get(name.value)
        result = self.sessions.increment_counter(user_id, name, amount, ceiling)
        if not result.ok:
            log.info(
                "Usage limit reached",
                extra={"event": "usage.limited", "user_id": user_id, "counter": name.value},
            )
            raise LimitExceededError(
                counter=name.value, limit=int(ceiling or 0), current=result.value
            )

        log.debug(
            "Usage counter incremented",
            extra={"event": "usage.increment", "user_id": user_id, "counter": name.value},
        )
        return result.value

    def get_stats(self, user_id: int) -> UsageStatsOut:
        """
        :raises NotFoundError: When the user does not exist.
        """
        return UsageStatsOut.build(self.sessions.get_counters(user_id), self.limits)
