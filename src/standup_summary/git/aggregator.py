"""Multi-branch commit aggregation with hash-level deduplication."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from standup_summary.errors import ConfigurationError
from standup_summary.git.branches import (
    check_branch_name,
    ensure_work_tree,
    read_author_identity,
)
from standup_summary.git.runner import GitCommandError, GitRunner
from standup_summary.models import Commit, CommitRecord, TimeWindow

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "\x1f"
RECORD_SEPARATOR = "\x1e"
LOG_FORMAT = "%H%x1f%aI%x1f%s%x1f%b%x1e"
GIT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_MISSING_REF_PATTERNS: tuple[str, ...] = (
    "unknown revision",
    "bad revision",
    "ambiguous argument",
    "bad default revision",
)


@dataclass(slots=True)
class _IndexedCommit:
    record: CommitRecord
    branches: set[str] = field(default_factory=set)


class CommitIndex:
    """Per-run commit map keyed by hash.

    The first sighting of a hash fixes its message content; later sightings
    on other branches only extend the branch set.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _IndexedCommit] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def observe(self, record: CommitRecord, branch: str) -> None:
        entry = self._entries.get(record.hash)
        if entry is None:
            entry = _IndexedCommit(record=record)
            self._entries[record.hash] = entry
        entry.branches.add(branch)

    def commits(self) -> list[Commit]:
        """Return commits ordered by author date descending, then hash ascending."""

        commits = [
            Commit(
                hash=entry.record.hash,
                author_date=entry.record.author_date,
                subject=entry.record.subject,
                body=entry.record.body,
                origin_branches=tuple(sorted(entry.branches)),
            )
            for entry in self._entries.values()
        ]
        commits.sort(key=lambda commit: commit.hash)
        commits.sort(key=lambda commit: commit.author_date, reverse=True)
        return commits


class CommitAggregator:
    """Query each branch in order and fold results into a CommitIndex."""

    def __init__(self, runner: GitRunner) -> None:
        self.runner = runner

    def aggregate(
        self,
        branches: list[str],
        window: TimeWindow,
        *,
        author: str | None = None,
        index: CommitIndex | None = None,
    ) -> list[Commit]:
        if author is None:
            ensure_work_tree(self.runner)
            author = read_author_identity(self.runner).email
        for branch in branches:
            check_branch_name(branch)
        index = index if index is not None else CommitIndex()

        for branch in branches:
            records = self._query_branch(branch=branch, author=author, window=window)
            if records is None:
                continue
            for record in records:
                index.observe(record, branch)
            logger.debug("Branch %s: %d commit(s)", branch, len(records))

        return index.commits()

    def _query_branch(
        self,
        *,
        branch: str,
        author: str,
        window: TimeWindow,
    ) -> list[CommitRecord] | None:
        try:
            result = self.runner.run(
                "log",
                branch,
                f"--author={author}",
                "--fixed-strings",
                f"--since={window.since.strftime(GIT_DATE_FORMAT)}",
                f"--until={window.until.strftime(GIT_DATE_FORMAT)}",
                "--no-merges",
                f"--format={LOG_FORMAT}",
                "--",
            )
        except GitCommandError as error:
            if error.not_a_repository:
                raise ConfigurationError(
                    "Not a Git repository. Run from within a Git repository or pass --path.",
                ) from error
            if _is_missing_ref(error.stderr):
                logger.warning("Branch %s not found, skipping", branch)
                return None
            logger.warning(
                "History query for branch %s failed, treating as empty: %s",
                branch,
                error,
            )
            return []
        return parse_log_records(result.stdout)


def parse_log_records(raw: str) -> list[CommitRecord]:
    """Parse `git log` output produced with LOG_FORMAT."""

    records: list[CommitRecord] = []
    for chunk in raw.split(RECORD_SEPARATOR):
        chunk = chunk.strip("\n")
        if not chunk.strip():
            continue
        parts = chunk.split(FIELD_SEPARATOR, 3)
        if len(parts) < 3:  # noqa: PLR2004
            logger.warning("Skipping malformed history record: %r", chunk[:80])
            continue
        commit_hash, raw_date, subject = parts[0].strip(), parts[1].strip(), parts[2]
        body = parts[3] if len(parts) == 4 else ""  # noqa: PLR2004
        try:
            author_date = datetime.fromisoformat(raw_date)
        except ValueError:
            logger.warning("Skipping record %s with unparsable date %r", commit_hash, raw_date)
            continue
        records.append(
            CommitRecord(
                hash=commit_hash,
                author_date=author_date,
                subject=subject.strip(),
                body=body.strip(),
            ),
        )
    return records


def _is_missing_ref(stderr: str) -> bool:
    haystack = stderr.lower()
    return any(pattern in haystack for pattern in _MISSING_REF_PATTERNS)
