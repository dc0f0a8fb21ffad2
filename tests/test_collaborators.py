"""
Tests for the LLM-backed collaborators: summarizer, language detector and
reply generator. The LLM client is replaced with mocks.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from email_orchestrator.language_detector import LanguageDetector, detect_language_heuristic
from email_orchestrator.llm_client import LLMError, Raw, Structured
from email_orchestrator.models import Email, LanguageResult, SummarizerResult, Tone
from email_orchestrator.prompts import build_reply_messages
from email_orchestrator.reply_generator import ACKNOWLEDGEMENT_TEMPLATES, ReplyGenerator
from email_orchestrator.summarizer import Summarizer, extractive_summary


def make_llm(ollama=False, openai=True):
    llm = MagicMock()
    llm.ollama_available = AsyncMock(return_value=ollama)
    llm.has_openai = openai
    llm.ollama_generate = AsyncMock()
    llm.chat_json = AsyncMock()
    return llm


class TestSummarizer:
    """Ollama first, then the chat API, then an extractive summary."""

    def test_structured_output_from_chat_api(self, plain_email):
        llm = make_llm()
        llm.chat_json.return_value = Structured(
            {"summary": "Report attached.", "keyPoints": ["Q3 report"], "actionItems": ["Review it"]}
        )

        result = asyncio.run(Summarizer(llm).run(plain_email))

        assert result == SummarizerResult(
            summary="Report attached.", key_points=["Q3 report"], action_items=["Review it"]
        )
        llm.ollama_generate.assert_not_called()

    def test_ollama_preferred_when_available(self, plain_email):
        llm = make_llm(ollama=True)
        llm.ollama_generate.return_value = Structured({"summary": "From Ollama"})

        result = asyncio.run(Summarizer(llm).run(plain_email))

        assert result.summary == "From Ollama"
        assert result.key_points == []
        llm.chat_json.assert_not_called()

    def test_raw_output_becomes_summary(self, plain_email):
        llm = make_llm()
        llm.chat_json.return_value = Raw("A plain-text summary.")

        result = asyncio.run(Summarizer(llm).run(plain_email))

        assert result == SummarizerResult(summary="A plain-text summary.")

    def test_ollama_failure_falls_back_to_chat_api(self, plain_email):
        llm = make_llm(ollama=True)
        llm.ollama_generate.side_effect = LLMError("boom")
        llm.chat_json.return_value = Structured({"summary": "From API"})

        assert asyncio.run(Summarizer(llm).run(plain_email)).summary == "From API"

    def test_no_service_uses_extractive_summary(self, plain_email):
        llm = make_llm(openai=False)

        result = asyncio.run(Summarizer(llm).run(plain_email))

        assert result == extractive_summary(plain_email)
        assert result.summary == (
            "Hi team, the quarterly report is attached. Let me know if you have questions."
        )

    def test_chat_failure_uses_extractive_summary(self, plain_email):
        llm = make_llm()
        llm.chat_json.side_effect = LLMError("timeout")

        assert asyncio.run(Summarizer(llm).run(plain_email)) == extractive_summary(plain_email)

    def test_extractive_summary_is_capped(self):
        email = Email.model_validate({"from": "a@b.com", "subject": "Long", "body": "word " * 200})
        assert len(extractive_summary(email).summary) <= 300


class TestLanguageDetector:
    def test_heuristic_german(self):
        result = detect_language_heuristic("Hallo, ich habe das Dokument und die Notizen für dich.")
        assert result.language == "de"
        assert result.language_name == "German"
        assert 0.6 < result.confidence <= 0.95

    def test_heuristic_turkish(self):
        result = detect_language_heuristic("Merhaba, toplantı için teşekkür ederim. Görüşmek üzere!")
        assert result.language == "tr"

    def test_heuristic_defaults_to_english(self):
        result = detect_language_heuristic("The build is green.")
        assert result == LanguageResult(language="en", language_name="English", confidence=0.7)

    def test_heuristic_matches_whole_words_only(self):
        # "order", "under", "folder" and "list" contain German keywords.
        result = detect_language_heuristic(
            "Please find the order list under the shared folder and submit it by Friday."
        )
        assert result == LanguageResult(language="en", language_name="English", confidence=0.7)

    def test_heuristic_japanese_matches_inside_words(self):
        result = detect_language_heuristic("田中さん、ありがとうございます。明日の会議です。")
        assert result.language == "ja"

    def test_uses_heuristic_when_ollama_unavailable(self, plain_email):
        llm = make_llm(ollama=False)

        result = asyncio.run(LanguageDetector(llm).run(plain_email))

        assert result.language == detect_language_heuristic(plain_email.subject + "\n" + plain_email.body).language
        llm.ollama_generate.assert_not_called()

    def test_model_answer(self, plain_email):
        llm = make_llm(ollama=True)
        llm.ollama_generate.return_value = Structured({"language": "FR", "languageName": "French", "confidence": 92})

        result = asyncio.run(LanguageDetector(llm).run(plain_email))

        assert result == LanguageResult(language="fr", language_name="French", confidence=0.92)

    def test_raw_answer_falls_back_to_heuristic(self):
        email = Email.model_validate({"from": "a@b.de", "subject": "Hallo", "body": "Ich bin nicht da, und wir sind mit der Arbeit fertig."})
        llm = make_llm(ollama=True)
        llm.ollama_generate.return_value = Raw("German")

        assert asyncio.run(LanguageDetector(llm).run(email)).language == "de"

    def test_failure_falls_back_to_heuristic(self, plain_email):
        llm = make_llm(ollama=True)
        llm.ollama_generate.side_effect = LLMError("down")

        result = asyncio.run(LanguageDetector(llm).run(plain_email))

        assert isinstance(result, LanguageResult)


class TestReplyGenerator:
    def test_structured_reply(self, plain_email):
        llm = make_llm()
        llm.chat_json.return_value = Structured({"reply": "Thanks, will review.", "tone": "formal"})
        summary = SummarizerResult(summary="Report attached.")

        result = asyncio.run(ReplyGenerator(llm).run(plain_email, summary))

        assert result.reply == "Thanks, will review."
        assert result.tone == Tone.FORMAL

    def test_raw_reply_keeps_local_tone(self):
        email = Email.model_validate({"from": "a@b.com", "subject": "lunch?", "body": "Hey! wanna grab lunch? lol"})
        llm = make_llm()
        llm.chat_json.return_value = Raw("Sure, see you at noon!")

        result = asyncio.run(ReplyGenerator(llm).run(email, None))

        assert result.reply == "Sure, see you at noon!"
        assert result.tone == Tone.CASUAL

    def test_unknown_model_tone_uses_local_tone(self, plain_email):
        llm = make_llm()
        llm.chat_json.return_value = Structured({"reply": "Ok", "tone": "sarcastic"})

        assert asyncio.run(ReplyGenerator(llm).run(plain_email, None)).tone == Tone.NEUTRAL

    def test_failure_returns_acknowledgement(self, plain_email):
        llm = make_llm()
        llm.chat_json.side_effect = LLMError("down")

        result = asyncio.run(ReplyGenerator(llm).run(plain_email, None))

        assert result.reply == ACKNOWLEDGEMENT_TEMPLATES[Tone.NEUTRAL]
        assert result.tone == Tone.NEUTRAL

    def test_no_api_key_returns_acknowledgement(self, plain_email):
        llm = make_llm(openai=False)

        result = asyncio.run(ReplyGenerator(llm).run(plain_email, None))

        assert result.reply == ACKNOWLEDGEMENT_TEMPLATES[Tone.NEUTRAL]
        llm.chat_json.assert_not_called()

    def test_language_passed_to_prompt(self, plain_email):
        llm = make_llm()
        llm.chat_json.return_value = Structured({"reply": "Danke!", "tone": "casual"})
        german = LanguageResult(language="de", language_name="German", confidence=0.9)

        asyncio.run(ReplyGenerator(llm).run(plain_email, None, language=german))

        messages = llm.chat_json.call_args.args[0]
        assert "Generate the reply in German (de)" in messages[0]["content"]
        assert "Generate the reply in German (de)" in messages[1]["content"]


class TestReplyPrompt:
    def test_summary_and_tone_included(self, plain_email):
        summary = SummarizerResult(summary="Report attached.", key_points=["Q3"], action_items=["Review"])
        messages = build_reply_messages(plain_email, summary, Tone.FORMAL)

        user = messages[1]["content"]
        assert "Summary: Report attached." in user
        assert "Key Points: Q3" in user
        assert "Action Items: Review" in user
        assert "Detected Tone: formal" in user
        assert "reply in the SAME language" in user
