"""Subprocess-based git command runner."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from standup_summary.errors import ConfigurationError

NOT_A_REPOSITORY_MARKER = "not a git repository"


@dataclass(slots=True)
class GitResult:
    """Completed git command output."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


class GitCommandError(RuntimeError):
    """Git exited with a non-zero status."""

    def __init__(self, result: GitResult) -> None:
        detail = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
        super().__init__(f"git {' '.join(result.args)} failed: {detail}")
        self.result = result

    @property
    def stderr(self) -> str:
        return self.result.stderr

    @property
    def not_a_repository(self) -> bool:
        return NOT_A_REPOSITORY_MARKER in self.result.stderr.lower()


class GitRunner(Protocol):
    """Interface for issuing git commands against one repository."""

    def run(self, *args: str) -> GitResult:
        """Run git with args, raising GitCommandError on non-zero exit."""
        raise NotImplementedError


class SubprocessGitRunner:
    """Run git as a child process inside the repository path."""

    def __init__(
        self,
        repo_path: Path,
        *,
        git_binary: str = "git",
        timeout_seconds: float = 30.0,
    ) -> None:
        self.repo_path = repo_path
        self.git_binary = git_binary
        self.timeout_seconds = timeout_seconds

    def run(self, *args: str) -> GitResult:
        if not self.repo_path.is_dir():
            raise ConfigurationError(f"Repository path does not exist: {self.repo_path}")
        try:
            completed = subprocess.run(  # noqa: S603
                [self.git_binary, *args],
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout_seconds,
                check=False,
            )
        except FileNotFoundError as error:
            raise ConfigurationError(f"git executable not found: {self.git_binary}") from error
        except subprocess.TimeoutExpired as error:
            raise GitCommandError(
                GitResult(
                    args=tuple(args),
                    returncode=-1,
                    stdout="",
                    stderr=f"timed out after {self.timeout_seconds}s",
                ),
            ) from error

        result = GitResult(
            args=tuple(args),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )
        if completed.returncode != 0:
            raise GitCommandError(result)
        return result
