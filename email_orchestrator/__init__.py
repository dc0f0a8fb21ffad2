"""
email_orchestrator package

Concurrent triage pipeline for a single inbound email: summary, spam score,
calendar event, language, reply suggestion and priority.
"""

__all__ = [
    "config",
    "logging_config",
    "models",
    "llm_client",
    "prompts",
    "spam_detector",
    "date_recognizer",
    "ics",
    "calendar_extractor",
    "heuristics",
    "summarizer",
    "language_detector",
    "reply_generator",
    "orchestrator",
    "report",
    "cli",
    "api",
]
