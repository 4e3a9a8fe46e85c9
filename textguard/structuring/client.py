"""External structuring service client.

The orchestrator only needs one capability from the service: send a
prompt, get back a JSON string. Any provider can be plugged in by
implementing ``StructuringClient``; ``OpenAIStructuringClient`` talks to
any OpenAI-compatible chat-completions endpoint.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from openai import OpenAI

from textguard.config import ServiceSettings
from textguard.exceptions import ExternalCallError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You convert raw document text into a structured JSON document. "
    "Respond with a single JSON object and nothing else."
)


class StructuringClient(Protocol):
    """Anything that can turn a prompt into a JSON response string."""

    def complete_json(self, prompt: str, *, timeout: float) -> str:
        """Return the raw JSON text produced for ``prompt``.

        Raises:
            ExternalCallError: On transport failure, timeout or empty response.
        """
        ...


def _message_text(response: Any) -> str:
    choices = getattr(response, "choices", None)
    if not isinstance(choices, list) or not choices:
        raise ExternalCallError("Structuring response missing choices")

    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None) if message is not None else None
    if isinstance(content, list):
        content = "".join(str(part.get("text", "")) for part in content if isinstance(part, dict))

    text = str(content or "").strip()
    if not text:
        raise ExternalCallError("Structuring response returned empty text")
    return text


class OpenAIStructuringClient:
    """OpenAI-compatible chat-completions client in JSON mode.

    SDK retries are disabled: a failed call is a failed tier, and the
    orchestrator moves on instead of retrying.
    """

    def __init__(
        self,
        settings: ServiceSettings,
        *,
        client: Any | None = None,
        temperature: float = 0.2,
        max_tokens: int = 8192,
    ) -> None:
        if max_tokens < 1:
            raise ValueError("max_tokens must be >= 1")

        self._settings = settings
        self._client = client or OpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            max_retries=0,
        )
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def model(self) -> str:
        return self._settings.model

    def complete_json(self, prompt: str, *, timeout: float) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self._settings.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                response_format={"type": "json_object"},
                timeout=timeout,
            )
        except Exception as exc:
            raise ExternalCallError(
                f"Structuring request failed (model={self._settings.model}): {exc}"
            ) from exc

        return _message_text(response)
