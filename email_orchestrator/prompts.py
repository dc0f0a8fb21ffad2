"""
Prompt templates for the summarizer, language detector and reply generator.
"""

from typing import Dict, List, Optional

from .models import Email, LanguageResult, SummarizerResult, Tone

LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "tr": "Turkish",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "ru": "Russian",
    "ja": "Japanese",
    "zh": "Chinese",
    "ko": "Korean",
    "ar": "Arabic",
}


def _format_email(email: Email) -> str:
    lines = [
        f"From: {email.from_}",
        f"Subject: {email.subject}",
        f"Body: {email.body}",
    ]
    if email.attachments:
        lines.append(f"Attachments: {', '.join(email.attachments)}")
    return "\n".join(lines)


def _messages(system_content: str, user_content: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": system_content},
        {"role": "user", "content": user_content},
    ]


# ---------------------------------------------------------------------------
# Summarizer
# ---------------------------------------------------------------------------


SUMMARIZER_SYSTEM_PROMPT = (
    "You are an expert email summarizer. Your task is to:\n"
    "1. Provide a concise 2-3 sentence summary of the email\n"
    "2. Extract key points (bullet format)\n"
    "3. Identify any action items or requests\n\n"
    "Be direct and focus on the most important information. Do not include"
    " pleasantries or filler.\n\n"
    "Respond in JSON format:\n"
    "{\n"
    '  "summary": "2-3 sentence summary here",\n'
    '  "keyPoints": ["point 1", "point 2"],\n'
    '  "actionItems": ["action 1", "action 2"]\n'
    "}"
)


def build_summarizer_prompt(email: Email) -> str:
    return "Summarize this email:\n\n" + _format_email(email)


def build_summarizer_messages(email: Email) -> List[Dict[str, str]]:
    return _messages(SUMMARIZER_SYSTEM_PROMPT, build_summarizer_prompt(email))


# ---------------------------------------------------------------------------
# Language detector
# ---------------------------------------------------------------------------


LANGUAGE_DETECTION_SYSTEM_PROMPT = (
    "You are a language detection expert. Analyze the given text and identify"
    " its language.\n\n"
    "Respond ONLY with a JSON object in this exact format:\n"
    "{\n"
    '  "language": "ISO 639-1 code (e.g., en, de, fr, es, tr, ar, zh, ja, ko, ru, pt, it, nl)",\n'
    '  "languageName": "Full name of the language",\n'
    '  "confidence": 0.95\n'
    "}\n\n"
    "If the text contains multiple languages, identify the primary/dominant language."
)


def build_language_prompt(email: Email) -> str:
    return f"Detect the language of this email:\n\n{email.subject}\n{email.body}"


# ---------------------------------------------------------------------------
# Reply generator
# ---------------------------------------------------------------------------


def language_display_name(language: LanguageResult) -> str:
    return LANGUAGE_NAMES.get(language.language, language.language_name or language.language)


def _language_instruction(language: Optional[LanguageResult]) -> str:
    if language is not None and language.language != "en":
        name = language_display_name(language)
        return (
            f"6. IMPORTANT: Generate the reply in {name} ({language.language})."
            f" The original email is in {name}, so respond in the same language."
        )
    return "6. IMPORTANT: Detect the language of the incoming email and reply in the SAME language."


def build_reply_system_prompt(language: Optional[LanguageResult]) -> str:
    return (
        "You are an expert email assistant that generates professional,"
        " context-aware email replies.\n\n"
        "Guidelines:\n"
        "1. Match the tone of the original email (formal/casual)\n"
        "2. Be concise but complete\n"
        "3. Address all questions or requests\n"
        "4. Include appropriate greeting and sign-off\n"
        "5. Never be overly verbose or include unnecessary pleasantries\n"
        + _language_instruction(language)
        + "\n\nRespond in JSON format:\n"
        "{\n"
        '  "reply": "Your generated reply here",\n'
        '  "tone": "formal" | "casual" | "neutral"\n'
        "}"
    )


def build_reply_messages(
    email: Email,
    summary: Optional[SummarizerResult],
    tone: Tone,
    language: Optional[LanguageResult] = None,
) -> List[Dict[str, str]]:
    """
    Build messages for the reply generator.

    The locally detected tone is passed along as a hint; the model may
    still report a different one.
    """
    parts = ["Generate a reply to this email.", "", "Original Email:", _format_email(email), ""]

    if summary is not None:
        parts.append(f"Summary: {summary.summary}")
        parts.append(f"Key Points: {', '.join(summary.key_points)}")
        parts.append(f"Action Items: {', '.join(summary.action_items)}")
        parts.append("")

    parts.append(f"Detected Tone: {tone.value}")
    if tone == Tone.FORMAL:
        parts.append("Use formal, professional language.")
    elif tone == Tone.CASUAL:
        parts.append("Use friendly, conversational language.")
    parts.append(_language_instruction(language))
    parts.append("")
    parts.append("Generate an appropriate reply:")

    return _messages(build_reply_system_prompt(language), "\n".join(parts))
