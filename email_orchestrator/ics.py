"""
iCalendar (RFC 5545) serializer for a single extracted event.
"""

import hashlib
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from dateutil import parser as date_parser

from .models import CalendarEvent

PRODID = "-//Email Orchestrator//EN"
UID_DOMAIN = "email-orchestrator"


def format_ics_date(value: datetime) -> str:
    """UTC basic format, e.g. 20250314T150000Z. Naive values are taken as local time."""
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def escape_ics_text(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def generate_uid(event: CalendarEvent, stamp: datetime) -> str:
    """Stable for the same event and stamp, so re-extraction yields identical ICS."""
    digest = hashlib.sha1(f"{event.title}|{event.date}|{event.end_date}".encode("utf-8")).hexdigest()
    return f"{int(stamp.timestamp() * 1000)}-{digest[:10]}@{UID_DOMAIN}"


def generate_ics(
    event: CalendarEvent,
    now: Optional[datetime] = None,
    uid: Optional[str] = None,
) -> str:
    """
    Render ``event`` as a VCALENDAR block with one VEVENT.

    A missing end date defaults to one hour after the start. Lines are
    CRLF-separated as the RFC requires.
    """
    start = date_parser.isoparse(event.date)
    end = date_parser.isoparse(event.end_date) if event.end_date else start + timedelta(hours=1)
    stamp = now or datetime.now(timezone.utc)

    lines: List[str] = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{uid or generate_uid(event, stamp)}",
        f"DTSTAMP:{format_ics_date(stamp)}",
        f"DTSTART:{format_ics_date(start)}",
        f"DTEND:{format_ics_date(end)}",
        f"SUMMARY:{escape_ics_text(event.title)}",
    ]

    if event.location:
        lines.append(f"LOCATION:{escape_ics_text(event.location)}")

    if event.description:
        lines.append(f"DESCRIPTION:{escape_ics_text(event.description)}")

    for attendee in event.attendees:
        lines.append(f"ATTENDEE;RSVP=TRUE:mailto:{attendee}")

    lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")

    return "\r\n".join(lines)
