"""Deterministic provider failure classification for retry and fallback policy."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from standup_summary.errors import EmptyResponseError, ProviderRequestError
from standup_summary.models import FailureKind

PROVIDER_FAILURE_CLASSIFIER_VERSION = 2

_SERVER_ERROR_STATUS_CODES = frozenset({500, 502, 503, 504})
_RETRYABLE_STATUS_CODES = frozenset({408, 429}) | _SERVER_ERROR_STATUS_CODES
_ACCESS_STATUS_CODES = frozenset({401, 402, 403})
_NOT_FOUND_STATUS_CODES = frozenset({404})

_RETRYABLE_STATUSES = frozenset({"UNAVAILABLE", "DEADLINE_EXCEEDED", "INTERNAL", "ABORTED"})
_ACCESS_STATUSES = frozenset({"PERMISSION_DENIED", "UNAUTHENTICATED"})
_NOT_FOUND_STATUSES = frozenset({"NOT_FOUND"})

_BILLING_OR_QUOTA_PATTERNS: tuple[str, ...] = (
    "exceeded your current quota",
    "quota exceeded",
    "billing",
    "payment",
    "credits",
    "insufficient",
)
_ACCESS_OR_AUTH_PATTERNS: tuple[str, ...] = (
    "permission denied",
    "api key not valid",
    "invalid api key",
    "unauthorized",
    "forbidden",
    "unauthenticated",
)
_MODEL_NOT_AVAILABLE_PATTERNS: tuple[str, ...] = (
    "is not found for api version",
    "model not found",
    "unknown model",
    "not supported for generatecontent",
    "unsupported model",
    "not available in your region",
)
_RATE_LIMIT_TRANSIENT_PATTERNS: tuple[str, ...] = (
    "too many requests",
    "retry in",
    "rate limit",
    "resource has been exhausted",
    "please retry",
    "try again later",
)
_GENERIC_TRANSIENT_PATTERNS: tuple[str, ...] = (
    "temporarily unavailable",
    "service unavailable",
    "overloaded",
    "timed out",
    "timeout",
    "connection reset",
    "network error",
)


@dataclass(slots=True)
class ProviderFailureClassification:
    """Normalized failure classification result."""

    kind: FailureKind
    reason_code: str
    matched_rule: str
    matched_pattern: str | None


def classify_provider_failure(error: BaseException) -> ProviderFailureClassification:
    """Map any provider call exception to a FailureKind."""

    if isinstance(error, httpx.TimeoutException | TimeoutError):
        return _result(FailureKind.RETRYABLE, "timeout", "timeout")
    if isinstance(error, EmptyResponseError):
        return _result(FailureKind.OTHER, "empty_response", "empty_response")

    haystack = str(error).lower()

    if isinstance(error, ProviderRequestError):
        classified = _classify_transient(error, haystack)
        if classified is not None:
            return classified

    pattern = _first_match(haystack, _BILLING_OR_QUOTA_PATTERNS)
    if pattern is not None:
        return _result(FailureKind.ACCESS, "billing_or_quota", "billing_or_quota", pattern)

    if isinstance(error, ProviderRequestError):
        classified = _classify_status(error)
        if classified is not None:
            return classified

    if isinstance(error, httpx.TransportError):
        return _result(FailureKind.RETRYABLE, "transport", "transport_error")

    pattern = _first_match(haystack, _ACCESS_OR_AUTH_PATTERNS)
    if pattern is not None:
        return _result(FailureKind.ACCESS, "access_or_auth", "access_or_auth", pattern)

    pattern = _first_match(haystack, _MODEL_NOT_AVAILABLE_PATTERNS)
    if pattern is not None:
        return _result(
            FailureKind.NOT_FOUND, "model_not_available", "model_not_available", pattern
        )

    pattern = _first_match(haystack, _RATE_LIMIT_TRANSIENT_PATTERNS)
    if pattern is not None:
        return _result(FailureKind.RETRYABLE, "rate_limit", "rate_limit_transient", pattern)

    pattern = _first_match(haystack, _GENERIC_TRANSIENT_PATTERNS)
    if pattern is not None:
        return _result(FailureKind.RETRYABLE, "transient", "generic_transient", pattern)

    return _result(FailureKind.OTHER, "non_retryable", "fallback_non_retryable")


def _classify_transient(
    error: ProviderRequestError,
    haystack: str,
) -> ProviderFailureClassification | None:
    code = error.status_code
    status = (error.status or "").upper()
    if code in _SERVER_ERROR_STATUS_CODES or status in _RETRYABLE_STATUSES:
        return _result(FailureKind.RETRYABLE, f"http_{code}", "server_unavailable_status")
    # Per-minute limits reuse the quota wording; only they carry retry info.
    rate_limited = code == 429 or status == "RESOURCE_EXHAUSTED"
    if rate_limited and (error.has_retry_info or "retry in" in haystack):
        return _result(FailureKind.RETRYABLE, "retry_after", "provider_retry_info")
    return None


def _classify_status(error: ProviderRequestError) -> ProviderFailureClassification | None:
    code = error.status_code
    status = (error.status or "").upper()
    if code in _ACCESS_STATUS_CODES or status in _ACCESS_STATUSES:
        return _result(FailureKind.ACCESS, f"http_{code}", "access_status")
    if code in _NOT_FOUND_STATUS_CODES or status in _NOT_FOUND_STATUSES:
        return _result(FailureKind.NOT_FOUND, f"http_{code}", "not_found_status")
    if code in _RETRYABLE_STATUS_CODES or status in _RETRYABLE_STATUSES:
        return _result(FailureKind.RETRYABLE, f"http_{code}", "retryable_status")
    return None


def _result(
    kind: FailureKind,
    reason_code: str,
    matched_rule: str,
    matched_pattern: str | None = None,
) -> ProviderFailureClassification:
    return ProviderFailureClassification(
        kind=kind,
        reason_code=reason_code,
        matched_rule=matched_rule,
        matched_pattern=matched_pattern,
    )


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None
