"""Prompt rendering for stand-up summaries."""

from __future__ import annotations

from standup_summary.errors import EmptyInputError
from standup_summary.models import Commit, SummaryPrompt

SYSTEM_PROMPT = (
    "You are an expert project manager. Your task is to convert a list of raw Git commit "
    "messages from a developer into a concise, high-level summary. This summary will be read "
    "during a daily stand-up meeting to a non-technical audience. Focus on the impact and "
    "progress rather than the technical details. Group related changes into a single point. "
    "Start the summary with 'Yesterday, I...' and use bullet points for the key activities. "
    "Keep it brief and business-focused. Include ticket numbers like CC-1234 from related "
    "commit messages."
)


def render_commit(commit: Commit) -> str:
    branches = ", ".join(commit.origin_branches)
    line = f"- {commit.subject} [branches: {branches}]"
    if commit.body:
        body = "\n".join(f"    {row}" for row in commit.body.splitlines() if row.strip())
        line = f"{line}\n{body}"
    return line


def build_summary_prompt(commits: list[Commit]) -> SummaryPrompt:
    """Render commits into the provider prompt; raises EmptyInputError on no commits."""

    if not commits:
        raise EmptyInputError("No commits found for the specified period.")
    commits_text = "\n".join(render_commit(commit) for commit in commits)
    return SummaryPrompt(
        system=SYSTEM_PROMPT,
        user=f"Please summarize these Git commit messages:\n\n{commits_text}",
    )
