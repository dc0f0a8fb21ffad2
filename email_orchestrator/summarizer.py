"""
Summarizer collaborator.

Prefers the local Ollama server, falls back to the OpenAI-compatible API,
and finally to an extractive summary of the body when neither is usable.
Never raises.
"""

import logging
import re
from typing import Any, List

from .llm_client import LLMClient, LLMError, LLMOutcome, Structured
from .models import Email, SummarizerResult
from .prompts import SUMMARIZER_SYSTEM_PROMPT, build_summarizer_messages, build_summarizer_prompt

logger = logging.getLogger(__name__)

NAME = "Email Summarizer"

FALLBACK_SUMMARY_CHARS = 300
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None]


def result_from_outcome(outcome: LLMOutcome) -> SummarizerResult:
    """Collapse a model outcome into a SummarizerResult."""
    if isinstance(outcome, Structured):
        data = outcome.data
        return SummarizerResult(
            summary=str(data.get("summary") or ""),
            key_points=_string_list(data.get("keyPoints")),
            action_items=_string_list(data.get("actionItems")),
        )
    return SummarizerResult(summary=outcome.text.strip())


def extractive_summary(email: Email) -> SummarizerResult:
    """First two sentences of the body (or the subject), capped in length."""
    body = " ".join(email.body.split())
    sentences = [s for s in _SENTENCE_SPLIT_RE.split(body) if s]
    summary = " ".join(sentences[:2]) if sentences else email.subject
    if len(summary) > FALLBACK_SUMMARY_CHARS:
        summary = summary[: FALLBACK_SUMMARY_CHARS - 3].rstrip() + "..."
    return SummarizerResult(summary=summary)


class Summarizer:
    def __init__(self, llm: LLMClient) -> None:
        self.llm = llm

    async def run(self, email: Email) -> SummarizerResult:
        if await self.llm.ollama_available():
            logger.info("Using Ollama for summarization")
            try:
                outcome = await self.llm.ollama_generate(
                    build_summarizer_prompt(email),
                    system=SUMMARIZER_SYSTEM_PROMPT,
                    temperature=0.3,
                    num_predict=500,
                )
                return result_from_outcome(outcome)
            except LLMError as e:
                logger.warning("Ollama summarization failed: %s", e)

        if self.llm.has_openai:
            logger.info("Using OpenAI-compatible API for summarization")
            try:
                outcome = await self.llm.chat_json(
                    build_summarizer_messages(email),
                    max_tokens=500,
                    temperature=0.3,
                )
                return result_from_outcome(outcome)
            except LLMError as e:
                logger.warning("LLM summarization failed: %s", e)

        logger.warning("No summarization service available; using extractive summary")
        return extractive_summary(email)
