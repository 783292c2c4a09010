"""CLI entrypoint for standup-summary."""

import logging
from datetime import date
from pathlib import Path

import rich_click as click

from standup_summary import __version__
from standup_summary.dates import parse_target_date
from standup_summary.errors import StandupSummaryError
from standup_summary.summary.controllers import (
    ModelsListCommand,
    SummaryCliController,
    SummaryRunCommand,
)

click.rich_click.USE_MARKDOWN = True
SUMMARY_CONTROLLER = SummaryCliController()
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.version_option(version=__version__, prog_name="standup-summary")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Diagnostics verbosity (written to stderr).",
)
def standup_summary(log_level: str) -> None:
    """Summarize your Git commits for daily stand-ups."""

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )


@standup_summary.command("run")
@click.option(
    "--date",
    "target_date",
    default=None,
    help="Day to summarize (YYYY-MM-DD). Defaults to the previous workday.",
)
@click.option(
    "--path",
    "repo_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the Git repository. Defaults to STANDUP_SUMMARY_REPO_PATH or `.`.",
)
@click.option(
    "--branch",
    "branches",
    multiple=True,
    help="Branch to scan. Can be repeated; overrides --branches.",
)
@click.option(
    "--branches",
    "branch_count",
    type=click.IntRange(min=0),
    default=None,
    help="Scan the N most recently committed local branches (0 = current branch).",
)
@click.option(
    "--model",
    default=None,
    help="Explicit model id; skips model discovery.",
)
@click.option(
    "-k",
    "--api-key",
    default=None,
    help="Gemini API key (can also be set as GEMINI_API_KEY).",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Show raw commit messages before the summary.",
)
def run(  # noqa: PLR0913
    target_date: str | None,
    repo_path: Path | None,
    branches: tuple[str, ...],
    branch_count: int | None,
    model: str | None,
    api_key: str | None,
    verbose: bool,
) -> None:
    """Summarize the author's commits for one day."""

    parsed_date: date | None = None
    if target_date is not None:
        try:
            parsed_date = parse_target_date(target_date)
        except ValueError as error:
            raise click.BadParameter(str(error), param_hint="--date") from error

    try:
        lines = SUMMARY_CONTROLLER.run(
            SummaryRunCommand(
                repo_path=repo_path,
                target_date=parsed_date,
                branches=branches,
                branch_count=branch_count,
                model=model,
                api_key=api_key,
                verbose=verbose,
            ),
        )
    except StandupSummaryError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@standup_summary.command("models")
@click.option("-k", "--api-key", default=None, help="Gemini API key.")
@click.option("--model", default=None, help="Explicit model id; skips model discovery.")
def models(api_key: str | None, model: str | None) -> None:
    """List candidate models in the order generation would try them."""

    try:
        lines = SUMMARY_CONTROLLER.list_models(ModelsListCommand(api_key=api_key, model=model))
    except StandupSummaryError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    standup_summary()
