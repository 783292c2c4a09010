"""Sequential generation with per-candidate retry and cross-candidate fallback."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from standup_summary.errors import AggregateFailure, EmptyResponseError, NoCandidatesError
from standup_summary.models import (
    FailureKind,
    GenerationAttempt,
    GenerationResult,
    ModelCandidate,
    SummaryPrompt,
)
from standup_summary.provider.client import GenerationClient
from standup_summary.provider.failure_classifier import classify_provider_failure

logger = logging.getLogger(__name__)

MAX_ATTEMPTS_PER_CANDIDATE = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0


class ResilientGenerator:
    """Drive generation across an ordered candidate list.

    Retryable failures are retried on the same candidate with exponential
    backoff up to MAX_ATTEMPTS_PER_CANDIDATE calls. Access, not-found and
    other failures advance to the next candidate immediately. Only one
    provider call is in flight at any time.
    """

    def __init__(
        self,
        client: GenerationClient,
        *,
        base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
        max_attempts: int = MAX_ATTEMPTS_PER_CANDIDATE,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.client = client
        self.base_delay_seconds = base_delay_seconds
        self.max_attempts = max_attempts
        self._sleep = sleep

    def generate(
        self,
        prompt: SummaryPrompt,
        candidates: list[ModelCandidate],
    ) -> GenerationResult:
        if not candidates:
            raise NoCandidatesError

        attempts: list[GenerationAttempt] = []
        for candidate in candidates:
            text, failure = self._try_candidate(prompt, candidate.identifier)
            if text is not None:
                logger.info("Generated summary with %s", candidate.identifier)
                return GenerationResult(
                    text=text,
                    model_used=candidate.identifier,
                    attempts=attempts,
                )
            if failure is not None:
                attempts.append(failure)
                logger.warning(
                    "Model %s failed (%s): %s",
                    failure.candidate,
                    failure.kind.value,
                    failure.message,
                )

        raise AggregateFailure(attempts)

    def backoff_delay(self, attempt: int) -> float:
        """Delay before the call following `attempt` (1-based)."""

        return self.base_delay_seconds * 2 ** (attempt - 1)

    def _try_candidate(
        self,
        prompt: SummaryPrompt,
        model: str,
    ) -> tuple[str | None, GenerationAttempt | None]:
        attempt = 0
        while True:
            attempt += 1
            try:
                response = self.client.generate_content(model, prompt)
                text = extract_text(response)
                if not text:
                    raise EmptyResponseError(f"Model {model} returned an empty response")
            except Exception as error:  # noqa: BLE001
                classification = classify_provider_failure(error)
                if (
                    classification.kind == FailureKind.RETRYABLE
                    and attempt < self.max_attempts
                ):
                    delay = self.backoff_delay(attempt)
                    logger.warning(
                        "Retryable failure from %s (attempt %d/%d, %s), retry in %.1fs: %s",
                        model,
                        attempt,
                        self.max_attempts,
                        classification.matched_rule,
                        delay,
                        error,
                    )
                    self._sleep(delay)
                    continue
                return None, GenerationAttempt(
                    candidate=model,
                    kind=classification.kind,
                    message=str(error),
                    calls=attempt,
                )
            return text, None


def extract_text(response: dict[str, Any]) -> str:
    """Return plain text from a generation response payload."""

    top_level = response.get("text")
    if isinstance(top_level, str) and top_level.strip():
        return top_level.strip()

    fragments: list[str] = []
    for candidate in response.get("candidates") or []:
        if not isinstance(candidate, dict):
            continue
        content = candidate.get("content")
        if not isinstance(content, dict):
            continue
        for part in content.get("parts") or []:
            if isinstance(part, dict) and isinstance(part.get("text"), str):
                fragments.append(part["text"])
    return "\n".join(fragments).strip()
