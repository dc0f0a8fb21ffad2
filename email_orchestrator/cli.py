import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config import load_config
from .logging_config import setup_logging
from .models import Email, OrchestrationResult
from .orchestrator import process_email
from .report import generate_report_text, write_report_to_file

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class InputError(Exception):
    """The email input could not be read, decoded or validated."""


def _read_input(args: argparse.Namespace) -> str:
    source = "stdin" if args.stdin else args.file
    try:
        if args.stdin:
            return sys.stdin.read()
        return Path(args.file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Cannot read {source}: {e}") from e


def parse_email_payload(raw: str) -> Email:
    """
    Parse CLI input into an Email.

    Accepts either ``{"email": {...}}`` or the bare email object.
    """
    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InputError(f"Invalid JSON input: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("email"), dict):
        data = data["email"]

    try:
        return Email.model_validate(data)
    except ValidationError as e:
        raise InputError(f"Invalid email: {e}") from e


def _render_actions_table(result: OrchestrationResult) -> None:
    console = Console(stderr=True)
    table = Table(title=f"Actions ({result.processing_time_ms:.2f} ms)")

    table.add_column("#")
    table.add_column("Action")

    for idx, action in enumerate(result.actions_taken, start=1):
        table.add_row(str(idx), action)

    console.print(table)
    console.print(
        f"priority=[bold]{result.priority.value}[/bold] "
        f"spam_score={result.spam_score:.2f} "
        f"reply={'yes' if result.suggested_reply else 'no'}"
    )


# ---------------------------------------------------------------------------
# Main CLI entrypoint
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="email-orchestrator",
        description="Summarize, spam-check, calendar-extract and draft a reply for one email.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--file",
        type=str,
        help="Path to a JSON file holding the email (or {\"email\": {...}}).",
    )
    source.add_argument(
        "--stdin",
        action="store_true",
        help="Read the email JSON from standard input.",
    )
    parser.add_argument(
        "--markdown",
        type=str,
        default=None,
        help="Also write a markdown report to this path.",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging.",
    )
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Only warnings in the log and no action table.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    config = load_config()
    if args.verbose:
        level: Any = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = config.log_level
    setup_logging(level, log_to_file=config.log_to_file, logs_dir=config.logs_dir)

    try:
        email = parse_email_payload(_read_input(args))
    except InputError as e:
        logger.error("%s", e)
        sys.exit(1)

    try:
        result = asyncio.run(process_email(email, config))
    except Exception:
        logger.exception("Email processing failed")
        sys.exit(1)

    payload = {"orchestration_result": result.model_dump(mode="json", by_alias=True)}
    print(json.dumps(payload, indent=2, ensure_ascii=False))

    if args.markdown:
        path = write_report_to_file(Path(args.markdown), generate_report_text(email, result))
        logger.info("Markdown report written to %s", path)

    if not args.quiet:
        _render_actions_table(result)


if __name__ == "__main__":
    main()
