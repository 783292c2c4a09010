"""Branch and author identity lookup."""

from __future__ import annotations

from standup_summary.errors import AuthorIdentityError, ConfigurationError
from standup_summary.git.runner import GitCommandError, GitRunner
from standup_summary.models import AuthorIdentity


def ensure_work_tree(runner: GitRunner) -> None:
    """Raise ConfigurationError unless the runner points inside a git work tree."""

    try:
        result = runner.run("rev-parse", "--is-inside-work-tree")
    except GitCommandError as error:
        if error.not_a_repository:
            raise ConfigurationError(
                "Not a Git repository. Run from within a Git repository or pass --path.",
            ) from error
        raise ConfigurationError(f"Could not inspect repository: {error}") from error
    if result.stdout.strip() != "true":
        raise ConfigurationError("Path is not inside a Git work tree.")


def read_author_identity(runner: GitRunner) -> AuthorIdentity:
    """Read user.name and user.email from git config."""

    try:
        name = runner.run("config", "user.name").stdout.strip()
        email = runner.run("config", "user.email").stdout.strip()
    except GitCommandError as error:
        raise AuthorIdentityError(
            "Could not get Git user configuration. "
            "Make sure user.name and user.email are configured.",
        ) from error
    if not email:
        raise AuthorIdentityError("Git user.email is empty.")
    return AuthorIdentity(name=name, email=email)


def check_branch_name(name: str) -> None:
    """Reject names git would parse as an option instead of a revision."""

    if name.startswith("-"):
        raise ConfigurationError(f"Invalid branch name: {name!r}")


def current_branch(runner: GitRunner) -> str:
    """Return the checked-out branch name, or HEAD when detached."""

    try:
        name = runner.run("rev-parse", "--abbrev-ref", "HEAD").stdout.strip()
    except GitCommandError as error:
        if error.not_a_repository:
            raise ConfigurationError("Not a Git repository.") from error
        # Unborn branch in a fresh repository.
        return "HEAD"
    return name or "HEAD"


def recent_branches(runner: GitRunner, count: int) -> list[str]:
    """Return up to `count` local branches, most recently committed first."""

    if count <= 0:
        return []
    try:
        result = runner.run(
            "for-each-ref",
            "--sort=-committerdate",
            f"--count={count}",
            "--format=%(refname:short)",
            "refs/heads",
        )
    except GitCommandError as error:
        if error.not_a_repository:
            raise ConfigurationError("Not a Git repository.") from error
        raise ConfigurationError(f"Could not list branches: {error}") from error
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


def resolve_branches(
    runner: GitRunner,
    *,
    explicit: tuple[str, ...] = (),
    scan_count: int = 0,
) -> list[str]:
    """Pick branches to scan: explicit names, N recent branches, or the current one."""

    if explicit:
        names = list(dict.fromkeys(name.strip() for name in explicit if name.strip()))
        for name in names:
            check_branch_name(name)
        return names
    if scan_count > 0:
        branches = recent_branches(runner, scan_count)
        if branches:
            return branches
    return [current_branch(runner)]
