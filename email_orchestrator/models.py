"""
Pydantic models for the inbound email, per-analyzer results, and the
orchestration result returned to callers.

Analyzer results serialize with camelCase aliases (``isSpam``, ``endDate``,
``languageName``); the orchestration result itself is snake_case.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Tone(str, Enum):
    FORMAL = "formal"
    CASUAL = "casual"
    NEUTRAL = "neutral"


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class Email(BaseModel):
    """
    Inbound email. Immutable; no analyzer mutates it.

    ``from`` is a Python keyword, so the attribute is ``from_`` and the wire
    name is ``from``.
    """

    from_: str = Field(alias="from")
    subject: str
    body: str
    attachments: List[str] = Field(default_factory=list)
    cc: List[str] = Field(default_factory=list)
    bcc: List[str] = Field(default_factory=list)
    date: Optional[str] = None

    @property
    def text(self) -> str:
        """Subject and body joined, the text every analyzer scans."""
        return f"{self.subject} {self.body}"

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Analyzer results
# ---------------------------------------------------------------------------


class SpamFeatures(BaseModel):
    sender_domain_mismatch: bool = False
    suspicious_links: bool = False
    urgency_words: bool = False
    grammar_issues: bool = False
    known_spam_patterns: bool = False

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SpamResult(BaseModel):
    """
    Weighted spam/phishing verdict. ``is_spam`` is ``score >= 0.5``.
    """

    score: float = Field(ge=0.0, le=1.0)
    is_spam: bool
    reasons: List[str] = Field(default_factory=list)
    features: SpamFeatures = Field(default_factory=SpamFeatures)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class CalendarEvent(BaseModel):
    """
    A meeting extracted from an email. ``date`` and ``end_date`` are
    ISO-8601 strings.
    """

    title: str
    date: str
    end_date: Optional[str] = None
    location: Optional[str] = None
    attendees: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    ics_content: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class LanguageResult(BaseModel):
    language: str = "en"
    language_name: str = "English"
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        # Models sometimes answer 95 instead of 0.95.
        if isinstance(v, (int, float)) and v > 1:
            v = v / 100 if v <= 100 else 1.0
        return v

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SummarizerResult(BaseModel):
    summary: str = ""
    key_points: List[str] = Field(default_factory=list)
    action_items: List[str] = Field(default_factory=list)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ReplyResult(BaseModel):
    reply: str = ""
    tone: Tone = Tone.NEUTRAL

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ---------------------------------------------------------------------------
# Orchestration result
# ---------------------------------------------------------------------------


class DetectedLanguage(BaseModel):
    code: str
    name: str
    confidence: float

    @classmethod
    def from_language_result(cls, result: LanguageResult) -> "DetectedLanguage":
        return cls(
            code=result.language,
            name=result.language_name,
            confidence=result.confidence,
        )


class OrchestrationResult(BaseModel):
    """
    The pipeline's sole output, built once per ``process_email`` call.

    ``suggested_reply`` is only set when the spam gate passed, and
    ``calendar_event`` only when the extractor found a meeting with a date.
    """

    summary: str
    priority: Priority
    suggested_reply: Optional[str] = None
    spam_score: float
    calendar_event: Optional[CalendarEvent] = None
    actions_taken: List[str] = Field(default_factory=list)
    processing_time_ms: float = Field(ge=0.0)
    detected_language: Optional[DetectedLanguage] = None


# ---------------------------------------------------------------------------
# HTTP envelopes
# ---------------------------------------------------------------------------


class ProcessEmailRequest(BaseModel):
    email: Email


class ProcessEmailResponse(BaseModel):
    success: bool
    orchestration_result: Optional[OrchestrationResult] = None
    error: Optional[str] = None


class AgentResponse(BaseModel):
    """Envelope for the single-analyzer diagnostic endpoints."""

    success: bool
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


__all__ = [
    "Priority",
    "Tone",
    "Email",
    "SpamFeatures",
    "SpamResult",
    "CalendarEvent",
    "LanguageResult",
    "SummarizerResult",
    "ReplyResult",
    "DetectedLanguage",
    "OrchestrationResult",
    "ProcessEmailRequest",
    "ProcessEmailResponse",
    "AgentResponse",
]
