"""
Master orchestrator.

Runs the four independent analyzers concurrently, then, only if the email
is not spam, the reply generator, and assembles an ``OrchestrationResult``
with an action log and wall-clock timing.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, TypeVar

from . import calendar_extractor, language_detector, reply_generator, spam_detector, summarizer
from .config import Config, load_config
from .heuristics import classify_priority
from .language_detector import LanguageDetector
from .llm_client import LLMClient
from .models import (
    CalendarEvent,
    DetectedLanguage,
    Email,
    LanguageResult,
    OrchestrationResult,
    ReplyResult,
    SpamResult,
    SummarizerResult,
)
from .reply_generator import ReplyGenerator
from .summarizer import Summarizer

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Analyzers:
    """The async callables the orchestrator sequences."""

    summarizer: Callable[[Email], Awaitable[SummarizerResult]]
    spam_detector: Callable[[Email], Awaitable[SpamResult]]
    calendar_extractor: Callable[[Email], Awaitable[Optional[CalendarEvent]]]
    language_detector: Callable[[Email], Awaitable[LanguageResult]]
    reply_generator: Callable[..., Awaitable[ReplyResult]]


@dataclass
class PhaseOneResults:
    summary: SummarizerResult
    spam: SpamResult
    calendar_event: Optional[CalendarEvent]
    language: LanguageResult


def _spam_completed(spam: SpamResult) -> str:
    return f"Spam check completed (score={spam.score:.2f})"


def _calendar_completed(event: Optional[CalendarEvent]) -> str:
    if event is None:
        return "No calendar event found"
    return f"Calendar event extracted: {event.title}"


def _language_completed(language: LanguageResult) -> str:
    return f"Language detected: {language.language_name} ({language.language})"


class MasterOrchestrator:
    def __init__(self, analyzers: Analyzers) -> None:
        self.analyzers = analyzers

    @classmethod
    def from_config(cls, config: Config) -> "MasterOrchestrator":
        """Wire the real analyzers around one shared LLM client."""
        llm = LLMClient(config)
        return cls(
            Analyzers(
                summarizer=Summarizer(llm).run,
                spam_detector=spam_detector.run,
                calendar_extractor=calendar_extractor.run,
                language_detector=LanguageDetector(llm).run,
                reply_generator=ReplyGenerator(llm).run,
            )
        )

    async def _tracked(
        self,
        actions: List[str],
        name: str,
        call: Awaitable[T],
        describe: Callable[[T], str],
    ) -> T:
        actions.append(f"{name} started")
        result = await call
        actions.append(describe(result))
        return result

    async def _run_phase_one(self, email: Email, actions: List[str]) -> PhaseOneResults:
        """All four analyzers at once; returns when the slowest has finished."""
        a = self.analyzers
        summary, spam, event, language = await asyncio.gather(
            self._tracked(actions, summarizer.NAME, a.summarizer(email), lambda _: "Summarizer completed"),
            self._tracked(actions, spam_detector.NAME, a.spam_detector(email), _spam_completed),
            self._tracked(actions, calendar_extractor.NAME, a.calendar_extractor(email), _calendar_completed),
            self._tracked(actions, language_detector.NAME, a.language_detector(email), _language_completed),
        )
        return PhaseOneResults(summary=summary, spam=spam, calendar_event=event, language=language)

    async def _run_phase_two(
        self,
        email: Email,
        phase_one: PhaseOneResults,
        actions: List[str],
    ) -> Optional[ReplyResult]:
        """Spam gate, then the reply generator for legitimate mail."""
        if phase_one.spam.is_spam:
            actions.append("Reply skipped (spam detected)")
            actions.append(f"Spam detected (score={phase_one.spam.score:.2f})")
            return None

        actions.append(f"{reply_generator.NAME} started")
        reply = await self.analyzers.reply_generator(
            email, phase_one.summary, language=phase_one.language
        )
        actions.append(f"Reply generated (tone={reply.tone.value})")
        return reply

    async def process_email(self, email: Email) -> OrchestrationResult:
        started = time.perf_counter()
        actions: List[str] = []

        phase_one = await self._run_phase_one(email, actions)
        reply = await self._run_phase_two(email, phase_one, actions)

        is_spam = phase_one.spam.is_spam
        priority = classify_priority(email, phase_one.spam, phase_one.calendar_event)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        result = OrchestrationResult(
            summary="" if is_spam else phase_one.summary.summary,
            priority=priority,
            suggested_reply=reply.reply if reply is not None else None,
            spam_score=phase_one.spam.score,
            calendar_event=phase_one.calendar_event,
            actions_taken=actions,
            processing_time_ms=max(elapsed_ms, 0.0),
            detected_language=DetectedLanguage.from_language_result(phase_one.language),
        )

        logger.info(
            "Processed email subject=%r priority=%s spam=%s score=%.2f event=%s reply=%s in %.2f ms",
            email.subject,
            result.priority.value,
            is_spam,
            result.spam_score,
            result.calendar_event is not None,
            result.suggested_reply is not None,
            result.processing_time_ms,
        )
        return result


async def process_email(email: Email, config: Optional[Config] = None) -> OrchestrationResult:
    """Process one email with analyzers wired from ``config`` (or the environment)."""
    if config is None:
        config = load_config()
    return await MasterOrchestrator.from_config(config).process_email(email)
