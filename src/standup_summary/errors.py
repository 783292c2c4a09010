"""Error taxonomy for aggregation and generation stages."""

from __future__ import annotations

from standup_summary.models import FailureKind, GenerationAttempt

ACCESS_HINT = (
    "Check the API key quota, billing and permissions, "
    "or pass an explicit model with --model / STANDUP_SUMMARY_MODEL."
)
UNUSABLE_HINT = "The generation backend is unusable; try again later or pass a different --model."
RETRY_INFO_TYPE_SUFFIX = "google.rpc.RetryInfo"


class StandupSummaryError(Exception):
    """Base error for all failures surfaced to the CLI."""


class ConfigurationError(StandupSummaryError):
    """Invalid repository, missing tooling or invalid settings."""


class AuthorIdentityError(ConfigurationError):
    """Local git author identity could not be determined."""


class EmptyInputError(StandupSummaryError):
    """No commits in the requested window."""


class ProviderRequestError(StandupSummaryError):
    """Non-success HTTP response from the generation provider."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        status: str | None = None,
        details: tuple[dict, ...] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.status = status
        self.details = details

    @property
    def has_retry_info(self) -> bool:
        """True when the provider attached a google.rpc.RetryInfo detail."""

        return any(
            str(detail.get("@type", "")).endswith(RETRY_INFO_TYPE_SUFFIX) for detail in self.details
        )

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status_code} {self.status}: {self.message}"
        return f"HTTP {self.status_code}: {self.message}"


class EmptyResponseError(StandupSummaryError):
    """Provider answered successfully but without any text."""


class NoCandidatesError(StandupSummaryError):
    """No generation backend is available to try."""

    def __init__(self, message: str = "No candidate models available for generation.") -> None:
        super().__init__(message)


class AggregateFailure(StandupSummaryError):
    """Every candidate was attempted and none produced a summary."""

    def __init__(self, attempts: list[GenerationAttempt]) -> None:
        if not attempts:
            raise ValueError("AggregateFailure requires at least one attempt.")
        self.attempts = list(attempts)
        self.last_attempt = self.attempts[-1]
        self.hint = ACCESS_HINT if self.last_attempt.kind == FailureKind.ACCESS else UNUSABLE_HINT
        super().__init__(self._render())

    def _render(self) -> str:
        last = self.last_attempt
        tried = "; ".join(
            f"{attempt.candidate} [{attempt.kind.value}, calls={attempt.calls}]: {attempt.message}"
            for attempt in self.attempts
        )
        return (
            f"All {len(self.attempts)} candidate model(s) failed. "
            f"Last tried {last.candidate} ({last.kind.value}): {last.message}. "
            f"{self.hint} Attempts: {tried}"
        )
