# hiredesk_auth/services/usage/dto.py
from __future__ import annotations

from dataclasses import dataclass

from hiredesk_auth.services._shared.ports import FILE_COUNTERS


@dataclass(frozen=True, slots=True)
class UsageStatsOut:
    """
    Usage counters of one user.

    :param counters: Counter name -> current value.
    :param limits: Counter name -> ceiling (``None`` when uncapped).
    :param total_files_uploaded: Sum of the upload counters
        (``files_uploaded``, ``batch_analysis``, ``compare_resumes``).
    :param total_usage: Sum of every counter, selections included.
    """

    counters: dict[str, int]
    limits: dict[str, int | None]
    total_files_uploaded: int
    total_usage: int

    @classmethod
    def build(cls, counters: dict[str, int], limits: dict[str, int | None]) -> UsageStatsOut:
        return cls(
            counters=dict(counters),
            limits=dict(limits),
            total_files_uploaded=sum(counters.get(c.value, 0) for c in FILE_COUNTERS),
            total_usage=sum(counters.values()),
        )
