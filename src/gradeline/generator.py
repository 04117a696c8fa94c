# Copyright (c) Syntropy Systems
"""Reference generator: a thin client for the chat-completions endpoint."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, cast

import httpx
from typing_extensions import Self

from gradeline.config import DEFAULT_API_URL, DEFAULT_MODEL

if TYPE_CHECKING:
    from types import TracebackType

    from gradeline.config import GradelineConfig

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Upstream text generation failed (credential, network or status)."""


def _error_detail(response: httpx.Response) -> str:
    """Pull ``error.message`` out of an error body, or fall back to the status."""
    try:
        body = cast("object", response.json())
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = cast("dict[str, object]", body).get("error")
        if isinstance(error, dict):
            message = cast("dict[str, object]", error).get("message")
            if isinstance(message, str) and message:
                return message
    return f"OpenRouter {response.status_code}"


def _message_content(data: object) -> str:
    """Return ``choices[0].message.content`` when it is a string, else ''."""
    if not isinstance(data, dict):
        return ""
    choices = cast("dict[str, object]", data).get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = cast("list[object]", choices)[0]
    if not isinstance(first, dict):
        return ""
    message = cast("dict[str, object]", first).get("message")
    if not isinstance(message, dict):
        return ""
    content = cast("dict[str, object]", message).get("content")
    return content if isinstance(content, str) else ""


class ReferenceGenerator:
    """Generates text for a prompt with a single chat-completions call.

    There is no retry: one attempt per call, and every failure surfaces as
    :class:`GenerationError`.
    """

    api_key: Optional[str]
    model: str
    api_url: str

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 60.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        """Initialize the generator.

        Args:
            api_key: Bearer credential for the endpoint
            model: Model identifier sent with every request
            api_url: Chat-completions URL
            timeout: Request timeout in seconds
            client: Preconfigured httpx client (tests inject a mock transport)

        """
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_config(cls, config: GradelineConfig) -> ReferenceGenerator:
        """Create a generator from loaded configuration."""
        return cls(
            api_key=config.api_key,
            model=config.model,
            api_url=config.api_url,
            timeout=config.request_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """Generate text for a prompt, optionally with a system message.

        Raises:
            GenerationError: credential absent, timeout, connection failure
                or a non-success status from the upstream service

        """
        if not self.api_key:
            msg = "OPENROUTER_API_KEY is not set"
            raise GenerationError(msg)

        messages: list[dict[str, str]] = []
        if system is not None:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        logger.debug("Requesting completion from %s (model=%s)", self.api_url, self.model)
        try:
            response = self._client.post(
                self.api_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={"model": self.model, "messages": messages},
            )
        except httpx.TimeoutException as e:
            msg = f"OpenRouter request timed out: {e}"
            raise GenerationError(msg) from e
        except httpx.RequestError as e:
            msg = f"Connection error: {e}"
            raise GenerationError(msg) from e

        if not response.is_success:
            detail = _error_detail(response)
            logger.warning("Completion request failed: %s", detail)
            raise GenerationError(detail)

        try:
            data = cast("object", response.json())
        except ValueError as e:
            msg = "OpenRouter returned invalid JSON"
            raise GenerationError(msg) from e

        return _message_content(data)
