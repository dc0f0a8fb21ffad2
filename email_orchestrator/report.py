"""
Markdown report formatting and output helpers.
"""

from pathlib import Path

from .models import Email, OrchestrationResult


def generate_report_text(email: Email, result: OrchestrationResult) -> str:
    """Convert an OrchestrationResult into a human-readable markdown string."""
    lines: list[str] = []

    lines.append(f"# Email Report: {email.subject or '(no subject)'}")
    lines.append("")
    lines.append(f"- **From:** {email.from_}")
    lines.append(f"- **Priority:** {result.priority.value}")
    lines.append(f"- **Spam score:** {result.spam_score:.2f}")
    if result.detected_language is not None:
        lang = result.detected_language
        lines.append(f"- **Language:** {lang.name} ({lang.code}, confidence {lang.confidence:.2f})")
    lines.append(f"- **Processing time:** {result.processing_time_ms:.2f} ms")
    lines.append("")

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------
    lines.append("## Summary")
    lines.append("")
    lines.append(result.summary or "_No summary (spam is not summarized)._")
    lines.append("")

    # ------------------------------------------------------------------
    # Calendar Event
    # ------------------------------------------------------------------
    lines.append("## Calendar Event")
    lines.append("")
    event = result.calendar_event
    if event is None:
        lines.append("_No calendar event found._")
    else:
        lines.append(f"- **Title:** {event.title}")
        lines.append(f"- **Start:** {event.date}")
        if event.end_date:
            lines.append(f"- **End:** {event.end_date}")
        if event.location:
            lines.append(f"- **Location:** {event.location}")
        if event.attendees:
            lines.append(f"- **Attendees:** {', '.join(event.attendees)}")
    lines.append("")

    # ------------------------------------------------------------------
    # Suggested Reply
    # ------------------------------------------------------------------
    lines.append("## Suggested Reply")
    lines.append("")
    if result.suggested_reply:
        for reply_line in result.suggested_reply.splitlines():
            lines.append(f"> {reply_line}" if reply_line else ">")
    else:
        lines.append("_No reply suggested._")
    lines.append("")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    lines.append("## Actions Taken")
    lines.append("")
    for idx, action in enumerate(result.actions_taken, start=1):
        lines.append(f"{idx}. {action}")

    lines.append("")  # final newline

    return "\n".join(lines)


def write_report_to_file(path: Path, report_text: str) -> Path:
    """Write the report text to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report_text, encoding="utf-8")
    return path
