"""
Reply generator collaborator.

Drafts a reply through the OpenAI-compatible API. Raw model text is used
as-is with the locally detected tone; without a usable service a short
templated acknowledgement is returned instead. Never raises.
"""

import logging
from typing import Dict, Optional

from .heuristics import detect_tone
from .llm_client import LLMClient, LLMError, Structured
from .models import Email, LanguageResult, ReplyResult, SummarizerResult, Tone
from .prompts import build_reply_messages

logger = logging.getLogger(__name__)

NAME = "Reply Generator"

ACKNOWLEDGEMENT_TEMPLATES: Dict[Tone, str] = {
    Tone.FORMAL: (
        "Dear Sender,\n\n"
        "Thank you for your email. I have received your message and will"
        " respond in detail as soon as possible.\n\n"
        "Kind regards"
    ),
    Tone.CASUAL: (
        "Hi,\n\n"
        "Thanks for your message! I'll get back to you soon.\n\n"
        "Cheers"
    ),
    Tone.NEUTRAL: (
        "Hello,\n\n"
        "Thank you for your email. I will get back to you shortly.\n\n"
        "Best regards"
    ),
}


def acknowledgement(tone: Tone) -> ReplyResult:
    return ReplyResult(reply=ACKNOWLEDGEMENT_TEMPLATES[tone], tone=tone)


def _coerce_tone(value, default: Tone) -> Tone:
    try:
        return Tone(str(value).lower())
    except ValueError:
        return default


class ReplyGenerator:
    def __init__(self, llm: LLMClient) -> None:
        self.llm = llm

    async def run(
        self,
        email: Email,
        summary: Optional[SummarizerResult],
        language: Optional[LanguageResult] = None,
    ) -> ReplyResult:
        tone = detect_tone(email)

        if not self.llm.has_openai:
            logger.warning("No LLM API key configured; using templated acknowledgement")
            return acknowledgement(tone)

        messages = build_reply_messages(email, summary, tone, language)
        try:
            outcome = await self.llm.chat_json(messages, max_tokens=800, temperature=0.7)
        except LLMError as e:
            logger.warning("Reply generation failed, using templated acknowledgement: %s", e)
            return acknowledgement(tone)

        if isinstance(outcome, Structured):
            reply = str(outcome.data.get("reply") or "").strip()
            if not reply:
                logger.warning("Model returned an empty reply; using templated acknowledgement")
                return acknowledgement(tone)
            return ReplyResult(reply=reply, tone=_coerce_tone(outcome.data.get("tone"), tone))

        return ReplyResult(reply=outcome.text, tone=tone)
