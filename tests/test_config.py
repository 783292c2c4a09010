from __future__ import annotations

from pathlib import Path

import allure
import pytest

from standup_summary.config import (
    DEFAULT_GEMINI_BASE_URL,
    GitSettings,
    ProviderSettings,
    Settings,
)

pytestmark = [
    allure.epic("Generation Runtime"),
    allure.feature("CLI Ops"),
]


def test_from_env_defaults(monkeypatch) -> None:
    for name in (
        "GEMINI_API_KEY",
        "STANDUP_SUMMARY_MODEL",
        "STANDUP_SUMMARY_REPO_PATH",
        "STANDUP_SUMMARY_BRANCH_COUNT",
        "STANDUP_SUMMARY_GEMINI_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.git.repo_path == Path(".")
    assert settings.git.branch_count == 0
    assert settings.provider.api_key is None
    assert settings.provider.base_url == DEFAULT_GEMINI_BASE_URL
    assert settings.demo_mode
    settings.validate()


def test_from_env_reads_overrides(monkeypatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "  secret  ")
    monkeypatch.setenv("STANDUP_SUMMARY_MODEL", "gemini-2.5-flash")
    monkeypatch.setenv("STANDUP_SUMMARY_BRANCH_COUNT", "4")
    monkeypatch.setenv("STANDUP_SUMMARY_RETRY_BACKOFF_SECONDS", "0.25")

    settings = Settings.from_env()

    assert settings.provider.api_key == "secret"
    assert settings.provider.model_override == "gemini-2.5-flash"
    assert settings.git.branch_count == 4
    assert settings.provider.retry_backoff_seconds == pytest.approx(0.25)
    assert not settings.demo_mode


def test_blank_api_key_means_demo_mode(monkeypatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "   ")
    assert Settings.from_env().demo_mode


def test_validate_rejects_negative_branch_count() -> None:
    with pytest.raises(ValueError, match="BRANCH_COUNT"):
        Settings(git=GitSettings(branch_count=-1)).validate()


def test_validate_rejects_invalid_base_url() -> None:
    with pytest.raises(ValueError, match="Invalid provider base URL"):
        Settings(provider=ProviderSettings(base_url="ftp://example.com")).validate()


def test_validate_rejects_non_positive_page_size() -> None:
    with pytest.raises(ValueError, match="DISCOVERY_PAGE_SIZE"):
        Settings(provider=ProviderSettings(discovery_page_size=0)).validate()
