"""Shared test fixtures."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from standup_summary.models import SummaryPrompt


class ScriptedGenerationClient:
    """Generation client replaying scripted outcomes per model."""

    def __init__(
        self,
        scripts: dict[str, list[BaseException | dict[str, Any]]] | None = None,
        models: list[str] | None = None,
        discovery_error: BaseException | None = None,
    ) -> None:
        self.scripts = {name: list(outcomes) for name, outcomes in (scripts or {}).items()}
        self.models = list(models or [])
        self.discovery_error = discovery_error
        self.calls: list[str] = []
        self.discovery_calls = 0

    def list_models(self) -> list[str]:
        self.discovery_calls += 1
        if self.discovery_error is not None:
            raise self.discovery_error
        return list(self.models)

    def generate_content(self, model: str, prompt: SummaryPrompt) -> dict[str, Any]:  # noqa: ARG002
        self.calls.append(model)
        outcomes = self.scripts.get(model)
        if not outcomes:
            raise AssertionError(f"Unexpected call to {model}")
        outcome = outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture()
def scripted_client() -> Callable[..., ScriptedGenerationClient]:
    return ScriptedGenerationClient


@pytest.fixture()
def git_env(tmp_path: Path, monkeypatch) -> dict[str, str]:
    """Isolate git from user-level and system-level configuration."""

    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    monkeypatch.delenv("GIT_DIR", raising=False)
    monkeypatch.delenv("GIT_WORK_TREE", raising=False)
    return dict(os.environ)


class GitRepoBuilder:
    """Build a throwaway repository with controlled dates."""

    def __init__(self, path: Path, env: dict[str, str]) -> None:
        self.path = path
        self.env = env

    def git(self, *args: str, when: str | None = None) -> str:
        env = dict(self.env)
        if when is not None:
            env["GIT_AUTHOR_DATE"] = when
            env["GIT_COMMITTER_DATE"] = when
        completed = subprocess.run(  # noqa: S603
            ["git", *args],  # noqa: S607
            cwd=self.path,
            env=env,
            capture_output=True,
            text=True,
            check=True,
        )
        return completed.stdout.strip()

    def commit(self, message: str, *, when: str) -> str:
        self.git("commit", "-q", "--allow-empty", "-m", message, when=when)
        return self.git("rev-parse", "HEAD")


@pytest.fixture()
def git_repo(tmp_path: Path, git_env: dict[str, str]) -> GitRepoBuilder:
    repo = tmp_path / "repo"
    repo.mkdir()
    builder = GitRepoBuilder(repo, git_env)
    builder.git("init", "-q")
    builder.git("checkout", "-q", "-b", "main")
    builder.git("config", "user.name", "Dev Example")
    builder.git("config", "user.email", "dev@example.com")
    builder.git("config", "commit.gpgsign", "false")
    return builder
