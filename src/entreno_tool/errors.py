"""Excepciones propias de entreno_tool."""

from __future__ import annotations


class EventSourceError(RuntimeError):
    """The activity history could not be loaded completely."""


class PlanGenerationError(RuntimeError):
    """The plan gateway failed to produce a response."""


class RateLimitedError(PlanGenerationError):
    """Gateway answered 429."""


class CreditsExhaustedError(PlanGenerationError):
    """Gateway answered 402."""


class PlanValidationError(ValueError):
    """A generated plan does not have the expected shape.

    Attributes:
        path: Location of the offending field, e.g. ``sessions[0].name``.
    """

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
