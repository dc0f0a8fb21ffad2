"""
Keyword heuristics: tone of an email and the triage priority.
"""

import re
from typing import Iterable, Optional, Pattern, Tuple

from .models import CalendarEvent, Email, Priority, SpamResult, Tone

FORMAL_INDICATORS: Tuple[str, ...] = (
    # English
    "dear",
    "sincerely",
    "regards",
    "respectfully",
    "please find attached",
    "as per our",
    "pursuant to",
    "hereby",
    "kindly",
    "would you please",
    # German
    "sehr geehrte",
    "mit freundlichen grüßen",
    "hochachtungsvoll",
    # French
    "cher",
    "chère",
    "cordialement",
    "veuillez",
    # Spanish
    "estimado",
    "estimada",
    "atentamente",
    "cordialmente",
    # Turkish
    "sayın",
    "saygılarımla",
    "saygılar",
)

CASUAL_INDICATORS: Tuple[str, ...] = (
    # English
    "hey",
    "hi!",
    "thanks!",
    "cheers",
    "btw",
    "gonna",
    "wanna",
    "asap",
    "lol",
    "haha",
    "!!",
    ":)",
    ":d",
    # German
    "hallo",
    "tschüss",
    "lg",
    "vg",
    # French
    "salut",
    "bisous",
    "coucou",
    # Spanish
    "hola",
    "saludos",
    "vale",
    # Turkish
    "merhaba",
    "selam",
    "görüşürüz",
)

URGENT_KEYWORDS: Tuple[str, ...] = (
    "urgent",
    "asap",
    "immediately",
    "critical",
    "important",
    "deadline",
    "action required",
    "time-sensitive",
    "time sensitive",
    "emergency",
)

NEWSLETTER_KEYWORDS: Tuple[str, ...] = (
    "newsletter",
    "unsubscribe",
    "digest",
    "weekly roundup",
    "promotion",
    "promotional",
    "sale",
    "% off",
    "subscription update",
    "top stories",
)


def keyword_pattern(keyword: str) -> Pattern[str]:
    # Word boundaries only where the keyword itself starts/ends with a word
    # character: "hey" must not fire inside "they", "!!" may follow a word.
    left = r"(?<!\w)" if re.match(r"\w", keyword) else ""
    right = r"(?!\w)" if re.search(r"\w$", keyword) else ""
    return re.compile(left + re.escape(keyword) + right, re.IGNORECASE)


def _count_present(text: str, keywords: Iterable[str]) -> int:
    return sum(1 for k in keywords if keyword_pattern(k).search(text))


def detect_tone(email: Email) -> Tone:
    """
    Classify the email as formal, casual or neutral.

    Counts how many indicators of each kind appear in subject and body; the
    strictly larger count wins and a tie is neutral.
    """
    text = email.text
    formal = _count_present(text, FORMAL_INDICATORS)
    casual = _count_present(text, CASUAL_INDICATORS)

    if formal > casual:
        return Tone.FORMAL
    if casual > formal:
        return Tone.CASUAL
    return Tone.NEUTRAL


def has_urgent_keywords(email: Email) -> bool:
    return _count_present(email.text, URGENT_KEYWORDS) > 0


def has_newsletter_keywords(email: Email) -> bool:
    return _count_present(email.text, NEWSLETTER_KEYWORDS) > 0


def classify_priority(
    email: Email,
    spam: SpamResult,
    calendar_event: Optional[CalendarEvent],
) -> Priority:
    """
    Derive priority from the aggregate signals.

    Precedence: spam is always low; then a meeting or an urgent keyword is
    high; then newsletter/bulk keywords are low; everything else is medium.
    """
    if spam.is_spam:
        return Priority.LOW
    if calendar_event is not None or has_urgent_keywords(email):
        return Priority.HIGH
    if has_newsletter_keywords(email):
        return Priority.LOW
    return Priority.MEDIUM
