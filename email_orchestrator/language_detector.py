"""
Language detector collaborator.

Asks Ollama when it is reachable; otherwise, or when the model answer is
unusable, falls back to keyword matching per language. Never raises.
"""

import logging
from typing import Dict, Sequence, Tuple

from pydantic import ValidationError

from .heuristics import keyword_pattern
from .llm_client import LLMClient, LLMError, Structured
from .models import Email, LanguageResult
from .prompts import LANGUAGE_DETECTION_SYSTEM_PROMPT, LANGUAGE_NAMES, build_language_prompt

logger = logging.getLogger(__name__)

NAME = "Language Detector"

DEFAULT_LANGUAGE = LanguageResult(language="en", language_name="English", confidence=0.7)

# (code, name, indicator words)
LANGUAGE_KEYWORDS: Tuple[Tuple[str, str, Sequence[str]], ...] = (
    ("de", "German", ("ich", "und", "der", "die", "das", "mit", "für", "ist", "nicht", "wir", "sie", "ihr")),
    ("fr", "French", ("je", "nous", "vous", "pour", "avec", "dans", "cette", "sont", "être", "merci", "bonjour")),
    ("es", "Spanish", ("hola", "gracias", "para", "tengo", "está", "usted", "nosotros", "también", "mucho")),
    ("tr", "Turkish", ("merhaba", "için", "teşekkür", "nasıl", "selamlar", "görüşmek", "iyi", "biz", "sen")),
    ("it", "Italian", ("ciao", "grazie", "buongiorno", "bene", "questo", "sono", "per", "anche")),
    ("pt", "Portuguese", ("obrigado", "olá", "você", "para", "como", "está", "muito", "bom")),
    ("nl", "Dutch", ("hallo", "bedankt", "voor", "met", "zijn", "hebben", "goed", "graag")),
    ("ru", "Russian", ("привет", "спасибо", "для", "как", "это", "мы", "вы")),
    ("ja", "Japanese", ("ありがとう", "こんにちは", "です", "ます", "さん", "の")),
    ("zh", "Chinese", ("你好", "谢谢", "请", "我们", "这个", "是")),
    ("ko", "Korean", ("안녕하세요", "감사합니다", "저는", "있습니다")),
    ("ar", "Arabic", ("مرحبا", "شكرا", "كيف", "هذا")),
)

# Scripts whose keywords attach to neighbouring characters; matched as substrings.
UNSEGMENTED_LANGUAGES = frozenset({"ja", "zh", "ko"})


def _keyword_present(word: str, text: str, code: str) -> bool:
    if code in UNSEGMENTED_LANGUAGES:
        return word in text
    return keyword_pattern(word).search(text) is not None


def detect_language_heuristic(text: str) -> LanguageResult:
    """
    Keyword-list language guess.

    Each language scores matched/total indicator words. Words match on
    word boundaries, except in Japanese, Chinese and Korean where they match
    as substrings. The best strictly-positive score wins with confidence
    ``min(0.6 + 0.4 * score, 0.95)``. No signal means English at 0.7.
    """
    lower = text.lower()
    best_score = 0.0
    detected = DEFAULT_LANGUAGE

    for code, name, words in LANGUAGE_KEYWORDS:
        matches = sum(1 for word in words if _keyword_present(word, lower, code))
        score = matches / len(words)
        if score > best_score:
            best_score = score
            detected = LanguageResult(
                language=code,
                language_name=name,
                confidence=min(0.6 + score * 0.4, 0.95),
            )

    return detected


def _result_from_model(data: Dict) -> LanguageResult:
    code = str(data.get("language") or "en").lower()
    return LanguageResult(
        language=code,
        language_name=data.get("languageName") or LANGUAGE_NAMES.get(code, "English"),
        confidence=data.get("confidence") or 0.9,
    )


class LanguageDetector:
    def __init__(self, llm: LLMClient) -> None:
        self.llm = llm

    async def run(self, email: Email) -> LanguageResult:
        text = f"{email.subject}\n{email.body}"

        if not await self.llm.ollama_available():
            logger.info("Ollama unavailable, using heuristic language detection")
            return detect_language_heuristic(text)

        try:
            outcome = await self.llm.ollama_generate(
                build_language_prompt(email),
                system=LANGUAGE_DETECTION_SYSTEM_PROMPT,
                temperature=0.1,
                num_predict=100,
            )
        except LLMError as e:
            logger.warning("Language detection via Ollama failed, using heuristic: %s", e)
            return detect_language_heuristic(text)

        if not isinstance(outcome, Structured):
            logger.warning("Language detection returned unstructured output, using heuristic")
            return detect_language_heuristic(text)

        try:
            return _result_from_model(outcome.data)
        except ValidationError as e:
            logger.warning("Invalid language detection result, using heuristic: %s", e)
            return detect_language_heuristic(text)
