"""Generación de planes de entrenamiento vía gateway LLM, con validación."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests

from entreno_tool.errors import (
    CreditsExhaustedError,
    PlanGenerationError,
    PlanValidationError,
    RateLimitedError,
)
from entreno_tool.model import GeneratedPlan, PlanExercise, PlanSession

logger = logging.getLogger(__name__)

API_KEY_ENV = "PLAN_GATEWAY_API_KEY"

GOALS: tuple[str, ...] = ("fat_burning", "hypertrophy")
LEVELS: tuple[str, ...] = ("beginner", "intermediate", "advanced")
MUSCLE_GROUPS: tuple[str, ...] = (
    "Chest",
    "Back",
    "Shoulders",
    "Biceps",
    "Triceps",
    "Quadriceps",
    "Hamstrings",
    "Glutes",
    "Calves",
    "Forearms",
    "Core",
)

_MEN_SPLIT = """
Session A - Chest, Triceps & Shoulders
Session B - Back & Biceps
Session C - Full Legs (Quadriceps, Hamstrings, Calves)"""

_WOMEN_SPLIT = """
Session A - Quadriceps
Session B - Chest, Triceps & Shoulders
Session C - Back & Biceps
Session D - Hamstrings & Glutes"""

_SYSTEM_PROMPT = "You are a fitness expert. Return only valid JSON, no markdown."

_FENCE_RE = re.compile(r"```(?:json)?\n?")


@dataclass(frozen=True)
class PlanRequest:
    """Inputs for one generated plan."""

    goal: str
    gender: str
    weight_kg: float
    level: str

    def __post_init__(self) -> None:
        if self.goal not in GOALS:
            raise ValueError(f"goal must be one of {GOALS}")
        if self.level not in LEVELS:
            raise ValueError(f"level must be one of {LEVELS}")
        if self.weight_kg <= 0:
            raise ValueError("weight_kg must be > 0")

    @property
    def session_count(self) -> int:
        return 4 if self.gender == "female" else 3


def build_prompt(request: PlanRequest) -> str:
    """Build the user prompt sent to the gateway."""
    split = _WOMEN_SPLIT if request.gender == "female" else _MEN_SPLIT
    goal_text = "fat burning" if request.goal == "fat_burning" else "hypertrophy"
    return f"""You are a professional fitness coach. Generate a {goal_text} workout plan for a {request.level} {request.gender} weighing {request.weight_kg:g}kg.

Use this split structure:
{split}

Rules:
- Each session should have 5-7 exercises
- Minimum 10 reps per exercise suggested
- For fat burning: higher reps (12-15), shorter rest, include supersets
- For hypertrophy: moderate reps (10-12), progressive overload focus
- Include compound and isolation movements
- Sets should be 3-4 per exercise

Return ONLY valid JSON in this exact format:
{{
  "name": "Plan name here",
  "sessions": [
    {{
      "name": "A",
      "label": "Muscle groups here",
      "sort_order": 0,
      "exercises": [
        {{
          "name": "Exercise Name",
          "muscle_group": "Chest",
          "sets": 3,
          "suggested_reps": 12
        }}
      ]
    }}
  ]
}}

Valid muscle_group values: {", ".join(MUSCLE_GROUPS)}

Generate exactly {request.session_count} sessions."""


def strip_code_fences(content: str) -> str:
    """Remove markdown code fences the model sometimes adds."""
    return _FENCE_RE.sub("", content).strip()


class PlanGatewayClient:
    """Chat-completions client for the plan gateway."""

    def __init__(
        self,
        url: str,
        model: str,
        api_key: str | None = None,
        *,
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        self._url = url
        self._model = model
        self._api_key = api_key if api_key is not None else os.environ.get(API_KEY_ENV)
        self._timeout = timeout
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> PlanGatewayClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def generate(self, request: PlanRequest) -> GeneratedPlan:
        """Request a plan and return it validated.

        Raises:
            RateLimitedError: Gateway answered 429.
            CreditsExhaustedError: Gateway answered 402.
            PlanGenerationError: Missing API key, transport or HTTP error,
                or a body that is not JSON.
            PlanValidationError: JSON does not have the plan shape.
        """
        if not self._api_key:
            raise PlanGenerationError(f"{API_KEY_ENV} not configured")

        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(request)},
            ],
        }
        try:
            response = self._session.post(
                self._url,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise PlanGenerationError(f"Gateway request failed: {exc}") from exc

        if response.status_code == 429:
            raise RateLimitedError("Rate limit exceeded. Please try again in a moment.")
        if response.status_code == 402:
            raise CreditsExhaustedError("AI credits exhausted. Please add credits.")
        if not response.ok:
            logger.error("Gateway error %s: %s", response.status_code, response.text)
            raise PlanGenerationError("AI generation failed")

        return validate_plan(_parse_content(response))


def _parse_content(response: requests.Response) -> Any:
    try:
        data = response.json()
        content = data["choices"][0]["message"]["content"] or ""
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise PlanGenerationError("Unexpected gateway response") from exc
    try:
        return json.loads(strip_code_fences(str(content)))
    except json.JSONDecodeError as exc:
        raise PlanGenerationError(f"Generated plan is not JSON: {exc}") from exc


def validate_plan(raw: Any) -> GeneratedPlan:
    """Check the generated document and convert it to a :class:`GeneratedPlan`.

    Raises:
        PlanValidationError: On the first field with a wrong type or value.
    """
    if not isinstance(raw, dict):
        raise PlanValidationError("$", "plan must be an object")
    name = _require_str(raw, "name", "name")
    sessions_raw = raw.get("sessions")
    if not isinstance(sessions_raw, list) or not sessions_raw:
        raise PlanValidationError("sessions", "must be a non-empty list")
    sessions = tuple(
        _validate_session(item, f"sessions[{i}]") for i, item in enumerate(sessions_raw)
    )
    return GeneratedPlan(name=name, sessions=sessions)


def _validate_session(raw: Any, path: str) -> PlanSession:
    if not isinstance(raw, dict):
        raise PlanValidationError(path, "must be an object")
    name = _require_str(raw, "name", f"{path}.name")
    label = _require_str(raw, "label", f"{path}.label")
    sort_order = _require_int(raw, "sort_order", f"{path}.sort_order", minimum=0)
    exercises_raw = raw.get("exercises")
    if not isinstance(exercises_raw, list) or not exercises_raw:
        raise PlanValidationError(f"{path}.exercises", "must be a non-empty list")
    return PlanSession(
        name=name,
        label=label,
        sort_order=sort_order,
        exercises=tuple(
            _validate_exercise(item, f"{path}.exercises[{i}]")
            for i, item in enumerate(exercises_raw)
        ),
    )


def _validate_exercise(raw: Any, path: str) -> PlanExercise:
    if not isinstance(raw, dict):
        raise PlanValidationError(path, "must be an object")
    name = _require_str(raw, "name", f"{path}.name")
    muscle_group = _require_str(raw, "muscle_group", f"{path}.muscle_group")
    if muscle_group not in MUSCLE_GROUPS:
        raise PlanValidationError(
            f"{path}.muscle_group", f"unknown muscle group {muscle_group!r}"
        )
    return PlanExercise(
        name=name,
        muscle_group=muscle_group,
        sets=_require_int(raw, "sets", f"{path}.sets", minimum=1),
        suggested_reps=_require_int(
            raw, "suggested_reps", f"{path}.suggested_reps", minimum=1
        ),
    )


def _require_str(raw: dict[str, Any], key: str, path: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise PlanValidationError(path, "must be a non-empty string")
    return value.strip()


def _require_int(raw: dict[str, Any], key: str, path: str, *, minimum: int) -> int:
    value = raw.get(key)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise PlanValidationError(path, "must be an integer")
    if value < minimum:
        raise PlanValidationError(path, f"must be >= {minimum}")
    return value


def read_plan_file(path: Path) -> GeneratedPlan:
    """Read a hand-built plan from a JSON file with the generated-plan shape.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not JSON.
        PlanValidationError: If the document does not have the plan shape.
    """
    if not path.is_file():
        raise FileNotFoundError(str(path))
    return validate_plan(json.loads(path.read_text(encoding="utf-8")))
