# llm_client.py
"""Completion provider client for local LLMs (Ollama)."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, cast

import requests  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)


class CompletionError(RuntimeError):
    """The completion provider could not produce a response."""


class CompletionProvider(Protocol):
    def complete(self, system_prompt: str, user_prompt: str) -> str: ...


class OllamaClient:
    """Simple HTTP client for the Ollama REST API."""

    def __init__(
        self, host: str, model: str, timeout: int = 30, temperature: float = 0.1
    ) -> None:
        self.host = host.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self._endpoint = f"{self.host}/api/generate"

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return the model's completion for the prompt pair.

        Raises ``CompletionError`` when the request fails or the model returns
        nothing. A single attempt is made.
        """
        payload = {
            "model": self.model,
            "system": system_prompt,
            "prompt": user_prompt,
            "stream": False,
            "format": "json",
            "options": {"temperature": self.temperature},
        }
        try:
            response = requests.post(self._endpoint, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("completion_request_failed", extra={"error": str(exc)})
            raise CompletionError(f"Completion request failed: {exc}") from exc

        try:
            data: dict[str, Any] = response.json()
        except ValueError as exc:
            raise CompletionError("Completion provider returned invalid JSON.") from exc

        text = cast(Optional[str], data.get("response"))
        if not text or not text.strip():
            logger.warning("completion_empty", extra={"model": self.model})
            raise CompletionError("No response from completion provider.")
        return text.strip()
