"""Model discovery, filtering and ranking."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from standup_summary.errors import StandupSummaryError
from standup_summary.models import ModelCandidate

logger = logging.getLogger(__name__)

FAST_TIER_MARKER = "flash"
HEAVY_TIER_MARKER = "pro"
LATEST_MARKER = "latest"
UNSTABLE_MARKERS: tuple[str, ...] = ("exp", "preview", "beta")
REDUCED_CAPACITY_MARKERS: tuple[str, ...] = ("mini", "lite", "nano")

TIER_SUFFIX_BONUS = 3000
TIER_CONTAINS_BONUS = 2000
VERSION_WEIGHT = 1000
LATEST_BONUS = 50
UNSTABLE_PENALTY = 500
REDUCED_CAPACITY_PENALTY = 1500
HEAVY_TIER_PENALTY = 1000

_FAMILY_VERSION = re.compile(r"gemini-(\d+(?:\.\d+)?)")
_LEADING_VERSION = re.compile(r"(\d+(?:\.\d+)?)")
_SMALL_SIZE_SUFFIX = re.compile(r"^\d+b$")
_TOKEN_SPLIT = re.compile(r"[-_]")


@dataclass(slots=True)
class CatalogMemo:
    """Per-run memo of the discovery outcome."""

    resolved: list[ModelCandidate] | None = None
    discovery_failed: bool = False

    @property
    def is_resolved(self) -> bool:
        return self.resolved is not None


class ModelCatalog:
    """Resolve a deterministic, best-first list of generation candidates."""

    def __init__(
        self,
        discover: Callable[[], list[str]],
        memo: CatalogMemo | None = None,
    ) -> None:
        self._discover = discover
        self.memo = memo if memo is not None else CatalogMemo()

    def resolve(self, override: str | None = None) -> list[ModelCandidate]:
        if override is not None and override.strip():
            return [ModelCandidate(identifier=override.strip(), rank=0)]
        if self.memo.resolved is not None:
            return list(self.memo.resolved)

        try:
            discovered = self._discover()
        except (StandupSummaryError, httpx.HTTPError) as error:
            logger.warning("Model discovery failed, no candidates available: %s", error)
            self.memo.discovery_failed = True
            self.memo.resolved = []
            return []

        ranked = rank_models(discovered)
        self.memo.resolved = [
            ModelCandidate(identifier=identifier, rank=rank)
            for rank, identifier in enumerate(ranked)
        ]
        logger.info("Resolved %d candidate model(s): %s", len(ranked), ", ".join(ranked))
        return list(self.memo.resolved)


def rank_models(raw_names: list[str]) -> list[str]:
    """Normalize, filter, score and order discovered model names."""

    normalized = [normalize_model_name(name) for name in raw_names]
    eligible = [name for name in normalized if name and is_eligible(name)]
    # sorted() is stable, so equal scores keep discovery order.
    ordered = sorted(eligible, key=score_model, reverse=True)
    return list(dict.fromkeys(ordered))


def normalize_model_name(name: str) -> str:
    """Strip everything up to and including the last path separator."""

    return name.strip().rsplit("/", 1)[-1]


def is_eligible(identifier: str) -> bool:
    lowered = identifier.lower()
    if FAST_TIER_MARKER not in lowered:
        return False
    if _FAMILY_VERSION.search(lowered) is None:
        return False
    return not _has_unstable_marker(_tokens(lowered))


def score_model(identifier: str) -> int:
    """Score an identifier; higher is preferred."""

    lowered = identifier.lower()
    tokens = _tokens(lowered)
    score = 0
    if lowered.endswith(FAST_TIER_MARKER):
        score += TIER_SUFFIX_BONUS
    elif FAST_TIER_MARKER in lowered:
        score += TIER_CONTAINS_BONUS

    version = parse_family_version(lowered)
    if version is not None:
        score += round(version * VERSION_WEIGHT)

    if LATEST_MARKER in tokens:
        score += LATEST_BONUS
    if _has_unstable_marker(tokens):
        score -= UNSTABLE_PENALTY
    if any(_is_reduced_capacity(token) for token in tokens):
        score -= REDUCED_CAPACITY_PENALTY
    if HEAVY_TIER_MARKER in tokens:
        score -= HEAVY_TIER_PENALTY
    return score


def parse_family_version(identifier: str) -> float | None:
    """Parse the leading numeric family/version token, e.g. 2.5 from gemini-2.5-flash."""

    match = _FAMILY_VERSION.search(identifier) or _LEADING_VERSION.search(identifier)
    if match is None:
        return None
    return float(match.group(1))


def _tokens(identifier: str) -> list[str]:
    return [token for token in _TOKEN_SPLIT.split(identifier) if token]


def _is_reduced_capacity(token: str) -> bool:
    return token in REDUCED_CAPACITY_MARKERS or _SMALL_SIZE_SUFFIX.match(token) is not None


def _has_unstable_marker(tokens: list[str]) -> bool:
    return any(token.startswith(marker) for token in tokens for marker in UNSTABLE_MARKERS)
