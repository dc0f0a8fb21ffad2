"""
LLM client wrapper.

This module provides a thin async wrapper around two completion services:

- an OpenAI-compatible chat completion API
- a local Ollama server (``/api/generate``)

Both are called with httpx. The model is asked for *JSON*, but what comes back
is reported as a tagged outcome: ``Structured`` when a JSON object could be
extracted, ``Raw`` otherwise. Each collaborator collapses the two cases into
its own result shape. Transport failures raise ``LLMError``.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import httpx

from .config import Config

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Generic error raised by the LLM client."""


@dataclass(frozen=True)
class Structured:
    """Model output that parsed as a JSON object."""

    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Raw:
    """Model output that did not contain a usable JSON object."""

    text: str = ""


LLMOutcome = Union[Structured, Raw]


def _extract_json_from_text(text: str) -> Optional[str]:
    """
    Extract a JSON object from raw model text.

    The model might respond with:
    - pure JSON
    - JSON wrapped in ```json ... ```
    - JSON wrapped in ``` ... ```
    - leading/trailing commentary (we try to ignore it)

    Strategy:
    - Strip a fenced block if there is one.
    - Find the first '{' and the last '}' and slice between them.
    """
    text = text.strip()
    if not text:
        return None

    if "```" in text:
        parts = text.split("```")
        if len(parts) >= 3:
            # parts[1] is after first ```, maybe "json\n{...}"
            inner = parts[1]
            stripped = inner.lstrip()
            if stripped.lower().startswith("json"):
                inner = inner.split("\n", 1)[-1]
            text = inner.strip()

    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last == -1 or last <= first:
        return None

    return text[first : last + 1]


def parse_model_output(content: Any) -> LLMOutcome:
    """
    Classify raw model content as ``Structured`` or ``Raw``.
    """
    if isinstance(content, dict):
        return Structured(content)

    if not isinstance(content, str):
        return Raw(repr(content))

    candidate = _extract_json_from_text(content)
    if candidate is None:
        return Raw(content.strip())

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        logger.debug("Model content is not valid JSON (first 200 chars): %s", content[:200])
        return Raw(content.strip())

    if not isinstance(parsed, dict):
        return Raw(content.strip())

    return Structured(parsed)


class LLMClient:
    """
    Async access to the configured completion services.

    ``transport`` is passed straight to ``httpx.AsyncClient``; tests use it to
    plug in an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        config: Config,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self._transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.config.llm_timeout_seconds,
            transport=self._transport,
        )

    @property
    def has_openai(self) -> bool:
        return bool(self.config.openai_api_key)

    # -----------------------------------------------------------------------
    # Ollama
    # -----------------------------------------------------------------------

    async def ollama_available(self) -> bool:
        """Return True if the Ollama server answers its model listing."""
        if not self.config.use_ollama:
            return False

        url = f"{self.config.ollama_host.rstrip('/')}/api/tags"
        try:
            async with self._client(timeout=min(self.config.llm_timeout_seconds, 2.0)) as client:
                resp = await client.get(url)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug("Ollama not reachable at %s: %s", url, e)
            return False
        return True

    async def ollama_generate(
        self,
        prompt: str,
        system: str,
        temperature: float = 0.3,
        num_predict: int = 500,
    ) -> LLMOutcome:
        """
        Call Ollama's generate endpoint in JSON mode.

        Raises:
            LLMError: on HTTP errors or an unexpected response envelope.
        """
        url = f"{self.config.ollama_host.rstrip('/')}/api/generate"
        payload: Dict[str, Any] = {
            "model": self.config.ollama_model,
            "prompt": prompt,
            "system": system,
            "format": "json",
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": num_predict,
            },
        }

        try:
            logger.info("Calling Ollama model=%s", self.config.ollama_model)
            async with self._client() as client:
                resp = await client.post(url, json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("HTTP error calling Ollama: %s", e)
            raise LLMError(f"HTTP error from Ollama: {e}") from e

        try:
            data = resp.json()
        except json.JSONDecodeError as e:
            raise LLMError("Invalid JSON from Ollama HTTP response.") from e

        content = data.get("response") if isinstance(data, dict) else None
        if content is None:
            raise LLMError("No 'response' field in Ollama reply.")

        return parse_model_output(content)

    # -----------------------------------------------------------------------
    # OpenAI-compatible chat completions
    # -----------------------------------------------------------------------

    async def chat_json(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 500,
        temperature: float = 0.3,
    ) -> LLMOutcome:
        """
        Call the chat completion endpoint and classify the reply content.

        Arguments:
            messages: List of {'role': 'system'|'user'|'assistant', 'content': str}
            max_tokens: Maximum tokens for the response.
            temperature: Sampling temperature.

        Raises:
            LLMError: when no API key is configured, on HTTP errors, or when
                the response envelope has no message content.
        """
        if not self.config.openai_api_key:
            raise LLMError("OPENAI_API_KEY (or equivalent) is not set in config.")

        headers = {
            "Authorization": f"Bearer {self.config.openai_api_key}",
            "Content-Type": "application/json",
        }

        payload: Dict[str, Any] = {
            "model": self.config.model_name,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "response_format": {"type": "json_object"},
        }

        try:
            logger.info("Calling LLM model=%s", self.config.model_name)
            async with self._client() as client:
                resp = await client.post(self.config.openai_base_url, headers=headers, json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("HTTP error calling LLM: %s", e)
            raise LLMError(f"HTTP error from LLM API: {e}") from e

        try:
            data = resp.json()
        except json.JSONDecodeError as e:
            raise LLMError("Invalid JSON from LLM HTTP response.") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError("Unexpected structure in LLM response.") from e

        snippet = content if isinstance(content, str) else repr(content)
        logger.debug("LLM raw content (first 500 chars): %s", snippet[:500])

        return parse_model_output(content or "{}")
