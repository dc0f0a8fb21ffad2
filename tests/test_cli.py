"""
Tests for the command-line entrypoint.
"""

import io
import json
from unittest.mock import AsyncMock, patch

import pytest

from email_orchestrator import cli
from email_orchestrator.cli import InputError, main, parse_email_payload
from email_orchestrator.models import OrchestrationResult, Priority

RESULT = OrchestrationResult(
    summary="Quarterly report attached.",
    priority=Priority.MEDIUM,
    suggested_reply="Thanks!",
    spam_score=0.0,
    actions_taken=["Email Summarizer started", "Summarizer completed"],
    processing_time_ms=12.5,
)

EMAIL_JSON = {
    "from": "alice@example.com",
    "subject": "Quarterly report",
    "body": "The quarterly report is attached.",
}


class TestParseEmailPayload:
    def test_bare_email(self):
        email = parse_email_payload(json.dumps(EMAIL_JSON))
        assert email.from_ == "alice@example.com"

    def test_wrapped_email(self):
        email = parse_email_payload(json.dumps({"email": EMAIL_JSON}))
        assert email.subject == "Quarterly report"

    def test_invalid_json(self):
        with pytest.raises(InputError, match="Invalid JSON"):
            parse_email_payload("{not json")

    def test_missing_fields(self):
        with pytest.raises(InputError, match="Invalid email"):
            parse_email_payload(json.dumps({"from": "a@b.com"}))


class TestMain:
    def test_file_input_prints_result(self, tmp_path, capsys):
        path = tmp_path / "email.json"
        path.write_text(json.dumps({"email": EMAIL_JSON}), encoding="utf-8")

        with patch.object(cli, "process_email", AsyncMock(return_value=RESULT)) as process:
            main(["--file", str(path), "--quiet"])

        output = json.loads(capsys.readouterr().out)
        assert output["orchestration_result"]["summary"] == "Quarterly report attached."
        assert output["orchestration_result"]["priority"] == "medium"
        assert output["orchestration_result"]["processing_time_ms"] == 12.5
        assert process.await_args.args[0].subject == "Quarterly report"

    def test_stdin_input(self, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(EMAIL_JSON)))

        with patch.object(cli, "process_email", AsyncMock(return_value=RESULT)):
            main(["--stdin", "--quiet"])

        assert "orchestration_result" in json.loads(capsys.readouterr().out)

    def test_markdown_report(self, tmp_path, capsys):
        path = tmp_path / "email.json"
        path.write_text(json.dumps(EMAIL_JSON), encoding="utf-8")
        report = tmp_path / "out" / "report.md"

        with patch.object(cli, "process_email", AsyncMock(return_value=RESULT)):
            main(["--file", str(path), "--markdown", str(report), "--quiet"])

        text = report.read_text(encoding="utf-8")
        assert text.startswith("# Email Report: Quarterly report")
        assert "Quarterly report attached." in text
        assert "> Thanks!" in text
        assert "1. Email Summarizer started" in text

    def test_action_table_goes_to_stderr(self, tmp_path, capsys):
        path = tmp_path / "email.json"
        path.write_text(json.dumps(EMAIL_JSON), encoding="utf-8")

        with patch.object(cli, "process_email", AsyncMock(return_value=RESULT)):
            main(["--file", str(path)])

        captured = capsys.readouterr()
        json.loads(captured.out)
        assert "Summarizer completed" in captured.err

    def test_missing_file_exits_1(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["--file", str(tmp_path / "missing.json"), "--quiet"])
        assert exc.value.code == 1

    def test_undecodable_file_exits_1(self, tmp_path):
        path = tmp_path / "email.json"
        path.write_bytes(b'{"from": "\xff\xfe"}')
        with pytest.raises(SystemExit) as exc:
            main(["--file", str(path), "--quiet"])
        assert exc.value.code == 1

    def test_undecodable_stdin_exits_1(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(b'{"from": "\xff\xfe"}'), encoding="utf-8"))
        with pytest.raises(SystemExit) as exc:
            main(["--stdin", "--quiet"])
        assert exc.value.code == 1

    def test_invalid_email_exits_1(self, tmp_path):
        path = tmp_path / "email.json"
        path.write_text(json.dumps({"subject": "no sender"}), encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            main(["--file", str(path), "--quiet"])
        assert exc.value.code == 1

    def test_processing_failure_exits_1(self, tmp_path):
        path = tmp_path / "email.json"
        path.write_text(json.dumps(EMAIL_JSON), encoding="utf-8")
        with patch.object(cli, "process_email", AsyncMock(side_effect=RuntimeError("boom"))):
            with pytest.raises(SystemExit) as exc:
                main(["--file", str(path), "--quiet"])
        assert exc.value.code == 1

    def test_file_or_stdin_required(self):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 2
