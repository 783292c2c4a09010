from __future__ import annotations

from typing import Any

import allure
import httpx
import pytest

from standup_summary.errors import (
    ACCESS_HINT,
    UNUSABLE_HINT,
    AggregateFailure,
    NoCandidatesError,
    ProviderRequestError,
)
from standup_summary.models import FailureKind, ModelCandidate, SummaryPrompt
from standup_summary.provider.generator import ResilientGenerator, extract_text

pytestmark = [
    allure.epic("Generation Runtime"),
    allure.feature("Retry & Fallback"),
]

_PROMPT = SummaryPrompt(system="system", user="- feat: thing [branches: main]")


def _candidates(*names: str) -> list[ModelCandidate]:
    return [ModelCandidate(identifier=name, rank=rank) for rank, name in enumerate(names)]


def _text(text: str) -> dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _rate_limited() -> ProviderRequestError:
    return ProviderRequestError("Too many requests", status_code=429, status="RESOURCE_EXHAUSTED")


def _denied() -> ProviderRequestError:
    return ProviderRequestError("Permission denied.", status_code=403, status="PERMISSION_DENIED")


def _missing() -> ProviderRequestError:
    return ProviderRequestError("Model not found.", status_code=404, status="NOT_FOUND")


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def test_retryable_twice_then_success_stays_on_first_candidate(scripted_client) -> None:
    client = scripted_client(
        {
            "gemini-2.5-flash": [_rate_limited(), httpx.ReadTimeout("timed out"), _text("Done")],
            "gemini-2.0-flash": [_text("unused")],
        },
    )
    sleep = _RecordingSleep()
    generator = ResilientGenerator(client, base_delay_seconds=0.5, sleep=sleep)

    result = generator.generate(_PROMPT, _candidates("gemini-2.5-flash", "gemini-2.0-flash"))

    assert result.text == "Done"
    assert result.model_used == "gemini-2.5-flash"
    assert result.attempts == []
    assert client.calls == ["gemini-2.5-flash"] * 3
    assert sleep.delays == [0.5, 1.0]
    assert sleep.delays[0] < sleep.delays[1]


def test_access_error_advances_without_retry(scripted_client) -> None:
    client = scripted_client({"first": [_denied()], "second": [_text("Summary")]})
    sleep = _RecordingSleep()

    result = ResilientGenerator(client, sleep=sleep).generate(
        _PROMPT,
        _candidates("first", "second"),
    )

    assert client.calls == ["first", "second"]
    assert sleep.delays == []
    assert result.model_used == "second"
    assert [attempt.kind for attempt in result.attempts] == [FailureKind.ACCESS]
    assert result.attempts[0].calls == 1


def test_access_error_on_last_candidate_carries_quota_hint(scripted_client) -> None:
    client = scripted_client({"first": [_denied()], "second": [_denied()]})

    with pytest.raises(AggregateFailure) as excinfo:
        ResilientGenerator(client, sleep=_RecordingSleep()).generate(
            _PROMPT,
            _candidates("first", "second"),
        )

    failure = excinfo.value
    assert client.calls == ["first", "second"]
    assert failure.hint == ACCESS_HINT
    assert failure.last_attempt.candidate == "second"
    assert "Last tried second" in str(failure)


def test_retry_ceiling_then_fallback_and_generic_hint(scripted_client) -> None:
    client = scripted_client(
        {
            "first": [_rate_limited(), _rate_limited(), _rate_limited()],
            "second": [_missing()],
        },
    )
    sleep = _RecordingSleep()

    with pytest.raises(AggregateFailure) as excinfo:
        ResilientGenerator(client, base_delay_seconds=1.0, sleep=sleep).generate(
            _PROMPT,
            _candidates("first", "second"),
        )

    failure = excinfo.value
    assert client.calls == ["first", "first", "first", "second"]
    assert sleep.delays == [1.0, 2.0]
    assert [(attempt.candidate, attempt.kind, attempt.calls) for attempt in failure.attempts] == [
        ("first", FailureKind.RETRYABLE, 3),
        ("second", FailureKind.NOT_FOUND, 1),
    ]
    assert failure.hint == UNUSABLE_HINT
    assert "first" in str(failure)
    assert "Model not found." in str(failure)


def test_empty_response_falls_back_as_other(scripted_client) -> None:
    client = scripted_client(
        {
            "first": [{"candidates": [{"content": {"parts": [{"text": "   "}]}}]}],
            "second": [{"text": " From top level. "}],
        },
    )

    result = ResilientGenerator(client, sleep=_RecordingSleep()).generate(
        _PROMPT,
        _candidates("first", "second"),
    )

    assert client.calls == ["first", "second"]
    assert result.text == "From top level."
    assert result.attempts[0].kind == FailureKind.OTHER


def test_other_error_is_not_retried(scripted_client) -> None:
    client = scripted_client(
        {"only": [ProviderRequestError("Bad request", status_code=400, status="INVALID_ARGUMENT")]},
    )

    with pytest.raises(AggregateFailure) as excinfo:
        ResilientGenerator(client, sleep=_RecordingSleep()).generate(_PROMPT, _candidates("only"))

    assert client.calls == ["only"]
    assert excinfo.value.last_attempt.kind == FailureKind.OTHER


def test_empty_candidate_list_fails_without_calls(scripted_client) -> None:
    client = scripted_client()

    with pytest.raises(NoCandidatesError):
        ResilientGenerator(client, sleep=_RecordingSleep()).generate(_PROMPT, [])

    assert client.calls == []


def test_backoff_delay_is_exponential(scripted_client) -> None:
    generator = ResilientGenerator(scripted_client(), base_delay_seconds=2.0)
    assert [generator.backoff_delay(attempt) for attempt in (1, 2, 3)] == [2.0, 4.0, 8.0]


def test_extract_text_prefers_top_level_field() -> None:
    response = {"text": "top", **_text("nested")}
    assert extract_text(response) == "top"


def test_extract_text_joins_parts_in_order() -> None:
    response = {
        "candidates": [
            {"content": {"parts": [{"text": "Yesterday, I..."}, {"inlineData": {}}]}},
            {"content": {"parts": [{"text": "- shipped login  "}]}},
            {"finishReason": "SAFETY"},
        ],
    }
    assert extract_text(response) == "Yesterday, I...\n- shipped login"


def test_extract_text_empty_payload() -> None:
    assert extract_text({}) == ""
    assert extract_text({"text": "", "candidates": []}) == ""


def test_per_minute_quota_is_retried_on_same_candidate(scripted_client) -> None:
    throttled = ProviderRequestError(
        "You exceeded your current quota, please check your plan and billing details. "
        "Please retry in 37s.",
        status_code=429,
        status="RESOURCE_EXHAUSTED",
        details=({"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": "37s"},),
    )
    client = scripted_client(
        {
            "gemini-2.5-flash": [throttled, _text("Done")],
            "gemini-2.0-flash": [_text("unused")],
        },
    )
    sleep = _RecordingSleep()

    result = ResilientGenerator(client, base_delay_seconds=0.5, sleep=sleep).generate(
        _PROMPT,
        _candidates("gemini-2.5-flash", "gemini-2.0-flash"),
    )

    assert result.model_used == "gemini-2.5-flash"
    assert client.calls == ["gemini-2.5-flash", "gemini-2.5-flash"]
    assert sleep.delays == [0.5]
    assert result.attempts == []
