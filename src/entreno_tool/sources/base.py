"""Clases base para fuentes de eventos de actividad."""

from __future__ import annotations

from abc import ABC, abstractmethod

from entreno_tool.model import ActivityEvent


class EventSource(ABC):
    """Abstract source of a user's full activity history."""

    @abstractmethod
    def validate(self) -> None:
        """Validate that the source is reachable.

        Raises:
            FileNotFoundError: If required files are missing.
        """

    @abstractmethod
    def load_events(self) -> list[ActivityEvent]:
        """Return every strength-set and cardio event.

        Implementations raise instead of returning a partial history.
        """
