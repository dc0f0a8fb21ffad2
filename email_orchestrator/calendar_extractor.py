"""
Calendar event extractor.

Turns a meeting email into a ``CalendarEvent`` (with ICS text attached), or
returns None. The meeting-indicator gate runs first; dates are only looked
at once it passes.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import List, Optional, Pattern, Sequence, Tuple

from .date_recognizer import recognize_dates
from .ics import generate_ics
from .models import CalendarEvent, Email

logger = logging.getLogger(__name__)

NAME = "Calendar Event Extractor"

DEFAULT_DURATION_MINUTES = 60
DESCRIPTION_BODY_CHARS = 500
DEFAULT_TITLE = "Meeting"


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

MEETING_INDICATORS: Tuple[Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(?:meeting|meet|call|conference|discussion|review|sync|standup|catchup|catch-up)\b",
        r"\blet'?s?\s+(?:meet|discuss|talk|connect|sync)\b",
        r"\b(?:schedule|scheduled|invite|invitation|calendar)\b",
        r"\bjoin\s+(?:us|me|the\s+call)\b",
        r"\bplease\s+(?:attend|join|confirm)\b",
    )
)

# (pattern, capture group). First match with an acceptable length wins.
LOCATION_PATTERNS: Tuple[Tuple[Pattern[str], int], ...] = (
    # "in Room 204", "at the Executive Room", "in Conference Room A"
    (
        re.compile(
            r"\b(?:in|at)\s+(?:the\s+)?"
            r"((?:[A-Z][\w'-]*\s+){0,3}(?:Room|Office|Building|Hall|Suite|Lounge|Lobby)"
            r"(?:\s+[A-Z0-9][\w-]*)?)"
        ),
        1,
    ),
    # "room 4B", "Building 7", "conference room Everest"
    (
        re.compile(
            r"\b((?i:conference\s+room|meeting\s+room|room|building|office)\s+#?[A-Z0-9][\w-]*)"
        ),
        1,
    ),
    # "Location: 5th floor lounge"
    (re.compile(r"\b(?:location|venue|place)\s*[:.]\s*([^\n,]+)", re.IGNORECASE), 1),
    # "Zoom link: https://zoom.us/j/123"
    (
        re.compile(
            r"\b(?:zoom|teams|meet)\s*(?:link|url|meeting)?\s*[:.]?\s*(https?://[^\s]+)",
            re.IGNORECASE,
        ),
        1,
    ),
    # "join us at the Blue Bottle Cafe"
    (
        re.compile(
            r"\b(?:join us at|meet at|gather at)\s+(?!(?:noon|midnight)\b)([A-Za-z][^\n,.]*)",
            re.IGNORECASE,
        ),
        1,
    ),
)

# (pattern, minutes per unit). First match wins.
DURATION_PATTERNS: Tuple[Tuple[Pattern[str], int], ...] = (
    (re.compile(r"\b(\d+)\s*(?:hours?|hrs?)\b", re.IGNORECASE), 60),
    (re.compile(r"\b(\d+)\s*(?:minutes?|mins?)\b", re.IGNORECASE), 1),
)

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
REPLY_PREFIX_RE = re.compile(r"^(?:\s*(?:re|fwd?|fw)\s*:\s*)+", re.IGNORECASE)
TITLE_FROM_BODY_RE = re.compile(
    r"\b(?:meeting|call|discussion)\s+(?:about|for|on|regarding)\s+([^\n.,]+)",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Field extraction
# ---------------------------------------------------------------------------


def has_meeting_indicators(text: str, indicators: Sequence[Pattern[str]] = MEETING_INDICATORS) -> bool:
    return any(pattern.search(text) for pattern in indicators)


def extract_location(text: str) -> Optional[str]:
    for pattern, group in LOCATION_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        location = match.group(group).strip().rstrip(".;:!?").strip()
        if 2 < len(location) < 100:
            return location
    return None


def extract_duration_minutes(text: str) -> int:
    for pattern, unit_minutes in DURATION_PATTERNS:
        match = pattern.search(text)
        if match:
            minutes = int(match.group(1)) * unit_minutes
            if minutes > 0:
                return minutes
    return DEFAULT_DURATION_MINUTES


def extract_attendees(email: Email) -> List[str]:
    """Sender first, then every address in subject and body; lower-cased, deduplicated."""
    attendees: List[str] = []

    sender = EMAIL_RE.search(email.from_)
    if sender:
        attendees.append(sender.group(0).lower())

    for address in EMAIL_RE.findall(email.text):
        address = address.lower()
        if address not in attendees:
            attendees.append(address)

    return attendees


def derive_title(email: Email) -> str:
    title = email.subject or ""
    if not title.strip() or REPLY_PREFIX_RE.match(title):
        match = TITLE_FROM_BODY_RE.search(email.text)
        if match:
            title = match.group(1).strip()
    title = REPLY_PREFIX_RE.sub("", title).strip()
    return title or DEFAULT_TITLE


def build_description(email: Email) -> str:
    return f"From: {email.from_}\n\n{email.body[:DESCRIPTION_BODY_CHARS]}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_calendar_event(email: Email, now: Optional[datetime] = None) -> Optional[CalendarEvent]:
    """
    Extract a meeting from ``email``.

    Returns None unless the text has a meeting indicator *and* at least one
    recognizable date. The first date mentioned is the start; its own end
    time (if stated) or an "N hours/minutes" mention (default one hour)
    gives the end.
    """
    text = email.text

    if not has_meeting_indicators(text):
        logger.debug("No meeting indicators; skipping date recognition.")
        return None

    if now is None:
        now = datetime.now().astimezone()

    mentions = recognize_dates(text, now=now)
    if not mentions:
        logger.debug("Meeting indicators found but no parseable date.")
        return None

    primary = mentions[0]
    start = primary.start
    try:
        if primary.end is not None:
            end = primary.end
        else:
            end = start + timedelta(minutes=extract_duration_minutes(text))

        event = CalendarEvent(
            title=derive_title(email),
            date=start.isoformat(),
            end_date=end.isoformat(),
            location=extract_location(text),
            attendees=extract_attendees(email),
            description=build_description(email),
        )
        event.ics_content = generate_ics(event, now=now)
    except OverflowError:
        logger.debug("Event time %s is out of range; treating as no parseable date.", start)
        return None

    logger.info(
        "Calendar event extracted: title=%r start=%s location=%r attendees=%d",
        event.title,
        event.date,
        event.location,
        len(event.attendees),
    )
    return event


async def run(email: Email) -> Optional[CalendarEvent]:
    """Async adapter for the orchestrator's concurrent phase."""
    return extract_calendar_event(email)
