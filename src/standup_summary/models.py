"""Domain models for commit aggregation and summary generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class FailureKind(str, Enum):
    """Normalized provider failure kinds used by retry and fallback policy."""

    RETRYABLE = "retryable"
    ACCESS = "access"
    NOT_FOUND = "not_found"
    OTHER = "other"


@dataclass(slots=True, frozen=True)
class AuthorIdentity:
    """Local git author identity."""

    name: str
    email: str


@dataclass(slots=True, frozen=True)
class TimeWindow:
    """Inclusive local-time window for history queries."""

    since: datetime
    until: datetime
    display_date: str


@dataclass(slots=True, frozen=True)
class CommitRecord:
    """One raw history record as returned by a single branch query."""

    hash: str
    author_date: datetime
    subject: str
    body: str


@dataclass(slots=True, frozen=True)
class Commit:
    """Deduplicated commit with branch provenance."""

    hash: str
    author_date: datetime
    subject: str
    body: str
    origin_branches: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class ModelCandidate:
    """Ranked generation backend identifier."""

    identifier: str
    rank: int


@dataclass(slots=True, frozen=True)
class GenerationAttempt:
    """Final outcome of all calls made to one candidate."""

    candidate: str
    kind: FailureKind
    message: str
    calls: int


@dataclass(slots=True)
class GenerationResult:
    """Successful generation output."""

    text: str
    model_used: str
    attempts: list[GenerationAttempt] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class SummaryPrompt:
    """System and user prompt pair sent to the provider."""

    system: str
    user: str
