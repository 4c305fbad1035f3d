"""Reglas de calificación de días de actividad."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date

from entreno_tool.model import DayBucket


@dataclass(frozen=True)
class QualificationPolicy:
    """Thresholds for a qualifying day.

    A day qualifies with at least ``min_strength_sets`` logged sets or at
    least ``min_cardio_sessions`` cardio sessions. A bucket only records
    cardio presence, so any value above 1 is treated as 1.
    """

    min_strength_sets: int = 2
    min_cardio_sessions: int = 1

    def is_qualified(self, day: DayBucket) -> bool:
        """Evaluate one day in isolation."""
        if day.strength_set_count >= self.min_strength_sets:
            return True
        return self.min_cardio_sessions > 0 and day.cardio_session_present


DEFAULT_POLICY = QualificationPolicy()


def qualify(
    buckets: Mapping[date, DayBucket],
    policy: QualificationPolicy = DEFAULT_POLICY,
) -> frozenset[date]:
    """Return the calendar days that meet the policy.

    Days missing from ``buckets`` count as days without activity.
    """
    return frozenset(
        day for day, bucket in buckets.items() if policy.is_qualified(bucket)
    )
