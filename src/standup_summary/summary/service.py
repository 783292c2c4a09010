"""Run orchestration: aggregate commits, resolve candidates, generate the summary."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from standup_summary.errors import EmptyInputError
from standup_summary.git.aggregator import CommitAggregator, CommitIndex
from standup_summary.git.branches import ensure_work_tree, read_author_identity, resolve_branches
from standup_summary.git.runner import GitRunner
from standup_summary.models import (
    AuthorIdentity,
    Commit,
    GenerationAttempt,
    TimeWindow,
)
from standup_summary.provider.catalog import CatalogMemo, ModelCatalog
from standup_summary.provider.generator import ResilientGenerator
from standup_summary.summary.heuristic import heuristic_summary
from standup_summary.summary.prompts import build_summary_prompt

logger = logging.getLogger(__name__)

NO_COMMITS_MESSAGE = "No commits found for the specified period."


@dataclass(slots=True)
class RunState:
    """Mutable state whose lifetime is one invocation."""

    commit_index: CommitIndex = field(default_factory=CommitIndex)
    catalog_memo: CatalogMemo = field(default_factory=CatalogMemo)


@dataclass(slots=True)
class CollectedCommits:
    """Aggregation stage output."""

    author: AuthorIdentity
    branches: list[str]
    commits: list[Commit]


@dataclass(slots=True)
class SummaryOutcome:
    """Generation stage output."""

    text: str
    model_used: str | None
    demo: bool
    attempts: list[GenerationAttempt] = field(default_factory=list)


def collect_commits(
    *,
    runner: GitRunner,
    window: TimeWindow,
    state: RunState,
    explicit_branches: tuple[str, ...] = (),
    branch_scan_count: int = 0,
) -> CollectedCommits:
    """Resolve identity and branches, then fold every branch into the run's commit index."""

    ensure_work_tree(runner)
    author = read_author_identity(runner)
    branches = resolve_branches(runner, explicit=explicit_branches, scan_count=branch_scan_count)
    logger.info("Scanning %d branch(es): %s", len(branches), ", ".join(branches))
    commits = CommitAggregator(runner).aggregate(
        branches,
        window,
        author=author.email,
        index=state.commit_index,
    )
    return CollectedCommits(author=author, branches=branches, commits=commits)


def summarize_commits(
    commits: list[Commit],
    *,
    catalog: ModelCatalog | None,
    generator: ResilientGenerator | None,
    model_override: str | None = None,
) -> SummaryOutcome:
    """Produce the stand-up text; demo mode when no generator is configured."""

    try:
        prompt = build_summary_prompt(commits)
    except EmptyInputError:
        return SummaryOutcome(text=NO_COMMITS_MESSAGE, model_used=None, demo=generator is None)

    if generator is None or catalog is None:
        return SummaryOutcome(text=heuristic_summary(commits), model_used=None, demo=True)

    candidates = catalog.resolve(model_override)
    result = generator.generate(prompt, candidates)
    return SummaryOutcome(
        text=result.text,
        model_used=result.model_used,
        demo=False,
        attempts=result.attempts,
    )
