"""Tests for plan prompt building, gateway client and plan validation."""

from __future__ import annotations

import copy
import json
from typing import Any

import pytest
import requests

from entreno_tool.errors import (
    CreditsExhaustedError,
    PlanGenerationError,
    PlanValidationError,
    RateLimitedError,
)
from entreno_tool.plan_generation import (
    API_KEY_ENV,
    PlanGatewayClient,
    PlanRequest,
    build_prompt,
    strip_code_fences,
    validate_plan,
)

_VALID: dict[str, Any] = {
    "name": "Fat Burner",
    "sessions": [
        {
            "name": "A",
            "label": "Quadriceps",
            "sort_order": 0,
            "exercises": [
                {
                    "name": "Back Squat",
                    "muscle_group": "Quadriceps",
                    "sets": 4,
                    "suggested_reps": 12,
                }
            ],
        }
    ],
}


class _FakeResponse:
    def __init__(self, status_code: int, body: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._body = body
        self.text = text

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("no json")
        return self._body


class _FakeSession:
    def __init__(self, response: _FakeResponse | None = None, exc: Exception | None = None):
        self.response = response
        self.exc = exc
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def post(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if self.exc is not None:
            raise self.exc
        assert self.response is not None
        return self.response

    def close(self) -> None:
        self.closed = True


def _chat(content: str) -> dict[str, Any]:
    return {"choices": [{"message": {"content": content}}]}


def _request(gender: str = "male") -> PlanRequest:
    return PlanRequest(goal="fat_burning", gender=gender, weight_kg=80, level="beginner")


def _client(session: _FakeSession, api_key: str | None = "key") -> PlanGatewayClient:
    return PlanGatewayClient(
        "https://gateway.test/v1/chat/completions",
        "test-model",
        api_key,
        session=session,  # type: ignore[arg-type]
    )


def test_build_prompt_split_depends_on_gender() -> None:
    male = build_prompt(_request("male"))
    female = build_prompt(_request("female"))
    assert "Generate exactly 3 sessions." in male
    assert "Session C - Full Legs" in male
    assert "Generate exactly 4 sessions." in female
    assert "Session D - Hamstrings & Glutes" in female
    assert "fat burning workout plan for a beginner male weighing 80kg" in male


def test_plan_request_rejects_bad_values() -> None:
    with pytest.raises(ValueError, match="goal"):
        PlanRequest(goal="cutting", gender="male", weight_kg=80, level="beginner")
    with pytest.raises(ValueError, match="level"):
        PlanRequest(goal="hypertrophy", gender="male", weight_kg=80, level="pro")
    with pytest.raises(ValueError, match="weight_kg"):
        PlanRequest(goal="hypertrophy", gender="male", weight_kg=0, level="advanced")


def test_strip_code_fences() -> None:
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_generate_happy_path_with_fenced_content() -> None:
    content = "```json\n" + json.dumps(_VALID) + "\n```"
    session = _FakeSession(_FakeResponse(200, _chat(content)))
    plan = _client(session).generate(_request())

    assert plan.name == "Fat Burner"
    assert plan.sessions[0].exercises[0].muscle_group == "Quadriceps"
    call = session.calls[0]
    assert call["headers"]["Authorization"] == "Bearer key"
    assert call["json"]["model"] == "test-model"
    assert call["json"]["messages"][0]["role"] == "system"


def test_generate_requires_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    session = _FakeSession(_FakeResponse(200, _chat("{}")))
    with pytest.raises(PlanGenerationError, match=API_KEY_ENV):
        _client(session, api_key=None).generate(_request())
    assert session.calls == []


def test_generate_reads_api_key_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(API_KEY_ENV, "from-env")
    session = _FakeSession(_FakeResponse(200, _chat(json.dumps(_VALID))))
    _client(session, api_key=None).generate(_request())
    assert session.calls[0]["headers"]["Authorization"] == "Bearer from-env"


@pytest.mark.parametrize(
    "status, exc_type",
    [
        (429, RateLimitedError),
        (402, CreditsExhaustedError),
        (500, PlanGenerationError),
    ],
)
def test_generate_http_errors(status: int, exc_type: type[Exception]) -> None:
    session = _FakeSession(_FakeResponse(status, text="boom"))
    with pytest.raises(exc_type):
        _client(session).generate(_request())


def test_generate_transport_error() -> None:
    session = _FakeSession(exc=requests.ConnectionError("down"))
    with pytest.raises(PlanGenerationError, match="down"):
        _client(session).generate(_request())


def test_generate_non_json_content() -> None:
    session = _FakeSession(_FakeResponse(200, _chat("Here is your plan!")))
    with pytest.raises(PlanGenerationError, match="not JSON"):
        _client(session).generate(_request())


def test_generate_unexpected_envelope() -> None:
    session = _FakeSession(_FakeResponse(200, {"choices": []}))
    with pytest.raises(PlanGenerationError, match="Unexpected"):
        _client(session).generate(_request())


def test_generate_invalid_plan_shape() -> None:
    session = _FakeSession(_FakeResponse(200, _chat(json.dumps({"name": "x"}))))
    with pytest.raises(PlanValidationError) as info:
        _client(session).generate(_request())
    assert info.value.path == "sessions"


def test_validate_plan_valid() -> None:
    plan = validate_plan(_VALID)
    assert plan.sessions[0].sort_order == 0
    assert plan.sessions[0].exercises[0].sets == 4


def _mutated(path: list[Any], value: Any) -> dict[str, Any]:
    doc = copy.deepcopy(_VALID)
    target: Any = doc
    for key in path[:-1]:
        target = target[key]
    if value is _DELETE:
        del target[path[-1]]
    else:
        target[path[-1]] = value
    return doc


_DELETE = object()


@pytest.mark.parametrize(
    "path, value, expected_path",
    [
        (["name"], "", "name"),
        (["sessions"], [], "sessions"),
        (["sessions", 0, "label"], None, "sessions[0].label"),
        (["sessions", 0, "sort_order"], -1, "sessions[0].sort_order"),
        (["sessions", 0, "sort_order"], "0", "sessions[0].sort_order"),
        (["sessions", 0, "exercises"], [], "sessions[0].exercises"),
        (["sessions", 0, "exercises", 0], "Squat", "sessions[0].exercises[0]"),
        (
            ["sessions", 0, "exercises", 0, "muscle_group"],
            "Neck",
            "sessions[0].exercises[0].muscle_group",
        ),
        (["sessions", 0, "exercises", 0, "sets"], 0, "sessions[0].exercises[0].sets"),
        (
            ["sessions", 0, "exercises", 0, "suggested_reps"],
            True,
            "sessions[0].exercises[0].suggested_reps",
        ),
        (
            ["sessions", 0, "exercises", 0, "name"],
            _DELETE,
            "sessions[0].exercises[0].name",
        ),
    ],
)
def test_validate_plan_reports_offending_path(
    path: list[Any], value: Any, expected_path: str
) -> None:
    with pytest.raises(PlanValidationError) as info:
        validate_plan(_mutated(path, value))
    assert info.value.path == expected_path


def test_validate_plan_rejects_non_object() -> None:
    with pytest.raises(PlanValidationError):
        validate_plan([_VALID])


def test_client_closes_the_session_it_creates(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    created: list[_FakeSession] = []

    def _new_session() -> _FakeSession:
        created.append(_FakeSession(_FakeResponse(200, _chat(json.dumps(_VALID)))))
        return created[-1]

    monkeypatch.setattr(requests, "Session", _new_session)
    with PlanGatewayClient("https://gateway.test", "m", "key") as client:
        client.generate(_request())
        assert created[0].closed is False
    assert created[0].closed is True


def test_client_leaves_injected_session_open() -> None:
    session = _FakeSession(_FakeResponse(200, _chat(json.dumps(_VALID))))
    with _client(session) as client:
        client.generate(_request())
    assert session.closed is False
