"""HTTP client for the Gemini generative language REST API."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from standup_summary.config import DEFAULT_GEMINI_BASE_URL
from standup_summary.errors import ProviderRequestError
from standup_summary.models import SummaryPrompt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_PAGE_SIZE = 100
GENERATE_METHOD = "generateContent"
MAX_DISCOVERY_PAGES = 50


class GenerationClient(Protocol):
    """Provider operations used by the catalog and the generator."""

    def list_models(self) -> list[str]:
        """Return raw model names that support content generation."""
        raise NotImplementedError

    def generate_content(self, model: str, prompt: SummaryPrompt) -> dict[str, Any]:
        """Return the decoded generation response payload."""
        raise NotImplementedError


class GeminiClient:
    """httpx wrapper for model discovery and content generation."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        page_size: int = DEFAULT_PAGE_SIZE,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._page_size = page_size
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers={"x-goog-api-key": api_key, "Content-Type": "application/json"},
            transport=transport,
        )

    def list_models(self) -> list[str]:
        names: list[str] = []
        page_token: str | None = None
        for _ in range(MAX_DISCOVERY_PAGES):
            params: dict[str, str | int] = {"pageSize": self._page_size}
            if page_token:
                params["pageToken"] = page_token
            payload = self._request("GET", "/models", params=params)
            for model in payload.get("models") or []:
                if not isinstance(model, dict):
                    continue
                name = model.get("name")
                if not isinstance(name, str) or not name.strip():
                    continue
                methods = model.get("supportedGenerationMethods")
                if isinstance(methods, list) and GENERATE_METHOD not in methods:
                    continue
                names.append(name.strip())
            page_token = payload.get("nextPageToken") or None
            if page_token is None:
                break
        else:
            logger.warning("Model discovery stopped after %d pages", MAX_DISCOVERY_PAGES)
        return names

    def generate_content(self, model: str, prompt: SummaryPrompt) -> dict[str, Any]:
        body = {
            "systemInstruction": {"parts": [{"text": prompt.system}]},
            "contents": [{"role": "user", "parts": [{"text": prompt.user}]}],
        }
        model_id = model.strip().removeprefix("models/")
        return self._request("POST", f"/models/{model_id}:{GENERATE_METHOD}", json=body)

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        response = self._client.request(method, path, **kwargs)
        if not response.is_success:
            raise _error_from_response(response)
        try:
            payload = response.json()
        except ValueError as error:
            raise ProviderRequestError(
                "Provider returned a non-JSON response",
                status_code=response.status_code,
            ) from error
        if not isinstance(payload, dict):
            raise ProviderRequestError(
                "Provider returned an unexpected JSON payload",
                status_code=response.status_code,
            )
        return payload

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GeminiClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _error_from_response(response: httpx.Response) -> ProviderRequestError:
    message = response.reason_phrase or "request failed"
    status: str | None = None
    details: tuple[dict, ...] = ()
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        error = payload["error"]
        if isinstance(error.get("message"), str) and error["message"].strip():
            message = error["message"].strip()
        if isinstance(error.get("status"), str) and error["status"].strip():
            status = error["status"].strip()
        if isinstance(error.get("details"), list):
            details = tuple(detail for detail in error["details"] if isinstance(detail, dict))
    elif response.text.strip():
        message = response.text.strip()[:500]
    return ProviderRequestError(
        message,
        status_code=response.status_code,
        status=status,
        details=details,
    )
