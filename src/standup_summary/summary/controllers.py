"""Controllers for stand-up summary CLI commands."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path

import httpx

from standup_summary.config import Settings
from standup_summary.dates import resolve_time_window
from standup_summary.errors import ConfigurationError
from standup_summary.git.runner import SubprocessGitRunner
from standup_summary.provider.catalog import ModelCatalog
from standup_summary.provider.client import GeminiClient
from standup_summary.provider.generator import ResilientGenerator
from standup_summary.summary.service import (
    RunState,
    collect_commits,
    summarize_commits,
)

SEPARATOR = "=" * 50


@dataclass(slots=True)
class SummaryRunCommand:
    """CLI inputs for the summary run command."""

    repo_path: Path | None = None
    target_date: date | None = None
    branches: tuple[str, ...] = ()
    branch_count: int | None = None
    model: str | None = None
    api_key: str | None = None
    verbose: bool = False


@dataclass(slots=True)
class ModelsListCommand:
    """CLI inputs for the candidate listing command."""

    api_key: str | None = None
    model: str | None = None


class SummaryCliController:
    """Coordinates summary command execution."""

    def __init__(
        self,
        *,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport = transport
        self._sleep = sleep

    def run(self, command: SummaryRunCommand) -> list[str]:
        settings = _load_settings(
            repo_path=command.repo_path,
            branch_count=command.branch_count,
            api_key=command.api_key,
            model=command.model,
        )
        state = RunState()
        runner = SubprocessGitRunner(
            settings.git.repo_path,
            git_binary=settings.git.git_binary,
            timeout_seconds=settings.git.command_timeout_seconds,
        )
        window = resolve_time_window(command.target_date)

        lines: list[str] = []
        if settings.demo_mode:
            lines.append("Running in demo mode (no API key provided).")
            lines.append(
                "To use AI summarization, set GEMINI_API_KEY or pass --api-key.",
            )

        collected = collect_commits(
            runner=runner,
            window=window,
            state=state,
            explicit_branches=command.branches,
            branch_scan_count=settings.git.branch_count,
        )
        lines.append(f"User: {collected.author.name} <{collected.author.email}>")
        lines.append(f"Date: {window.display_date}")
        lines.append(f"Branches: {', '.join(collected.branches)}")
        if not collected.commits:
            lines.append("No commits found for the specified period.")
            return lines

        lines.append(f"Found {len(collected.commits)} commit(s)")
        if command.verbose:
            lines.append("Raw commits:")
            for position, commit in enumerate(collected.commits, start=1):
                lines.append(
                    f"{position}. {commit.hash[:10]} {commit.subject} "
                    f"[{', '.join(commit.origin_branches)}]",
                )

        with self._generation_stack(settings, state) as (catalog, generator):
            outcome = summarize_commits(
                collected.commits,
                catalog=catalog,
                generator=generator,
                model_override=settings.provider.model_override,
            )

        lines.extend([SEPARATOR, "STAND-UP SUMMARY", SEPARATOR, outcome.text, SEPARATOR])
        if outcome.model_used is not None:
            lines.append(f"Model: {outcome.model_used}")
        for attempt in outcome.attempts:
            lines.append(f"  skipped {attempt.candidate} ({attempt.kind.value}): {attempt.message}")
        return lines

    def list_models(self, command: ModelsListCommand) -> list[str]:
        settings = _load_settings(api_key=command.api_key, model=command.model)
        if settings.demo_mode:
            raise ConfigurationError("Listing models requires GEMINI_API_KEY or --api-key.")
        state = RunState()
        with self._generation_stack(settings, state) as (catalog, _):
            if catalog is None:  # pragma: no cover - guarded by demo_mode
                return []
            candidates = catalog.resolve(settings.provider.model_override)
        if not candidates:
            if state.catalog_memo.discovery_failed:
                return ["Model discovery failed; see warnings above."]
            return ["No eligible candidate models discovered."]
        return [f"{candidate.rank + 1}. {candidate.identifier}" for candidate in candidates]

    @contextmanager
    def _generation_stack(
        self,
        settings: Settings,
        state: RunState,
    ) -> Iterator[tuple[ModelCatalog | None, ResilientGenerator | None]]:
        if settings.provider.api_key is None:
            yield None, None
            return
        with GeminiClient(
            api_key=settings.provider.api_key,
            base_url=settings.provider.base_url,
            timeout_seconds=settings.provider.request_timeout_seconds,
            page_size=settings.provider.discovery_page_size,
            transport=self._transport,
        ) as client:
            catalog = ModelCatalog(client.list_models, state.catalog_memo)
            generator = ResilientGenerator(
                client,
                base_delay_seconds=settings.provider.retry_backoff_seconds,
                sleep=self._sleep,
            )
            yield catalog, generator


def _load_settings(
    *,
    repo_path: Path | None = None,
    branch_count: int | None = None,
    api_key: str | None = None,
    model: str | None = None,
) -> Settings:
    try:
        settings = Settings.from_env()
    except ValueError as error:
        raise ConfigurationError(f"Invalid environment configuration: {error}") from error
    git = settings.git
    provider = settings.provider
    if repo_path is not None:
        git = replace(git, repo_path=repo_path)
    if branch_count is not None:
        git = replace(git, branch_count=branch_count)
    if api_key is not None and api_key.strip():
        provider = replace(provider, api_key=api_key.strip())
    if model is not None and model.strip():
        provider = replace(provider, model_override=model.strip())
    settings = replace(settings, git=git, provider=provider)
    try:
        settings.validate()
    except ValueError as error:
        raise ConfigurationError(str(error)) from error
    return settings

