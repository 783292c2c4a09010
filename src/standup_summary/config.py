"""Runtime configuration for commit aggregation and summary generation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@dataclass(slots=True)
class GitSettings:
    """Repository and history query settings."""

    repo_path: Path = Path(".")
    branch_count: int = 0
    git_binary: str = "git"
    command_timeout_seconds: float = 30.0


@dataclass(slots=True)
class ProviderSettings:
    """Generation provider settings."""

    api_key: str | None = None
    model_override: str | None = None
    base_url: str = DEFAULT_GEMINI_BASE_URL
    request_timeout_seconds: float = 60.0
    retry_backoff_seconds: float = 1.0
    discovery_page_size: int = 100


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    git: GitSettings = field(default_factory=GitSettings)
    provider: ProviderSettings = field(default_factory=ProviderSettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with defaults for local use."""

        return cls(
            git=GitSettings(
                repo_path=Path(os.getenv("STANDUP_SUMMARY_REPO_PATH", ".")),
                branch_count=int(os.getenv("STANDUP_SUMMARY_BRANCH_COUNT", "0")),
                git_binary=os.getenv("STANDUP_SUMMARY_GIT_BINARY", "git"),
                command_timeout_seconds=float(
                    os.getenv("STANDUP_SUMMARY_GIT_TIMEOUT_SECONDS", "30"),
                ),
            ),
            provider=ProviderSettings(
                api_key=_env_optional("GEMINI_API_KEY"),
                model_override=_env_optional("STANDUP_SUMMARY_MODEL"),
                base_url=os.getenv("STANDUP_SUMMARY_GEMINI_BASE_URL", DEFAULT_GEMINI_BASE_URL),
                request_timeout_seconds=float(
                    os.getenv("STANDUP_SUMMARY_REQUEST_TIMEOUT_SECONDS", "60"),
                ),
                retry_backoff_seconds=float(
                    os.getenv("STANDUP_SUMMARY_RETRY_BACKOFF_SECONDS", "1.0"),
                ),
                discovery_page_size=int(
                    os.getenv("STANDUP_SUMMARY_DISCOVERY_PAGE_SIZE", "100"),
                ),
            ),
        )

    @property
    def demo_mode(self) -> bool:
        """True when no provider credential is configured."""

        return self.provider.api_key is None

    def validate(self) -> None:
        """Raise ValueError if any setting is out of range."""

        if self.git.branch_count < 0:
            raise ValueError("STANDUP_SUMMARY_BRANCH_COUNT must be >= 0.")
        if self.git.command_timeout_seconds <= 0:
            raise ValueError("STANDUP_SUMMARY_GIT_TIMEOUT_SECONDS must be > 0.")
        if not self.git.git_binary.strip():
            raise ValueError("STANDUP_SUMMARY_GIT_BINARY must not be empty.")
        if self.provider.request_timeout_seconds <= 0:
            raise ValueError("STANDUP_SUMMARY_REQUEST_TIMEOUT_SECONDS must be > 0.")
        if self.provider.retry_backoff_seconds < 0:
            raise ValueError("STANDUP_SUMMARY_RETRY_BACKOFF_SECONDS must be >= 0.")
        if self.provider.discovery_page_size <= 0:
            raise ValueError("STANDUP_SUMMARY_DISCOVERY_PAGE_SIZE must be a positive integer.")
        parsed = urlparse(self.provider.base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"Invalid provider base URL: {self.provider.base_url!r}")


def _env_optional(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None
