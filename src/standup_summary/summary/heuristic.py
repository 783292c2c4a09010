"""Canned summary used when no provider credential is configured."""

from __future__ import annotations

from standup_summary.models import Commit

_CATEGORY_POINTS: tuple[tuple[str, str], ...] = (
    ("feat", "Implemented new features and functionality"),
    ("fix", "Fixed bugs and resolved issues"),
    ("refactor", "Improved code structure and performance"),
    ("chore", "Updated dependencies and maintenance tasks"),
)
_DEFAULT_POINT = "Made various improvements to the codebase"


def heuristic_summary(commits: list[Commit]) -> str:
    points: list[str] = []
    for commit in commits:
        point = _categorize(commit.subject)
        if point not in points:
            points.append(point)
    bullets = "\n".join(f"- {point}" for point in points)
    return f"Yesterday, I...\n{bullets}"


def _categorize(subject: str) -> str:
    lowered = subject.lower()
    for marker, point in _CATEGORY_POINTS:
        if marker in lowered:
            return point
    return _DEFAULT_POINT
