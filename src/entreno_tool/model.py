"""Modelos tipados para eventos de actividad, rachas y planes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class ActivityKind(str, Enum):
    """Type of logged activity."""

    STRENGTH_SET = "strength_set"
    CARDIO_SESSION = "cardio_session"


@dataclass(frozen=True)
class ActivityEvent:
    """One logged activity (timestamped instant)."""

    kind: ActivityKind
    occurred_at: datetime


@dataclass(frozen=True)
class DayBucket:
    """Activity counts for one calendar day."""

    calendar_day: date
    strength_set_count: int = 0
    cardio_session_present: bool = False


@dataclass(frozen=True)
class StreakResult:
    """Current consecutive-day streak."""

    count: int
    as_of_day: date


@dataclass(frozen=True)
class PlanExercise:
    name: str
    muscle_group: str
    sets: int
    suggested_reps: int


@dataclass(frozen=True)
class PlanSession:
    name: str
    label: str
    sort_order: int
    exercises: tuple[PlanExercise, ...]


@dataclass(frozen=True)
class GeneratedPlan:
    """Workout plan returned by the generation gateway (validated)."""

    name: str
    sessions: tuple[PlanSession, ...]


@dataclass(frozen=True)
class Profile:
    """Datos de onboarding del usuario (genero, altura y peso)."""

    user_id: str
    gender: str
    height_cm: float
    initial_weight_kg: float
    current_weight_kg: float
    onboarding_completed: bool = False

    @property
    def weight_change_kg(self) -> float:
        """Current weight minus the weight given at onboarding."""
        return round(self.current_weight_kg - self.initial_weight_kg, 2)
