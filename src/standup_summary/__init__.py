"""Daily stand-up summaries from git history."""

__version__ = "0.1.0"
