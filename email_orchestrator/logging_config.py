import logging
from pathlib import Path
from typing import Union


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_to_file: bool = False,
    logs_dir: Path = Path("logs"),
) -> None:
    """Configure root logging for the application."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    log_format = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_to_file:
        logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(logs_dir / "email_orchestrator.log")
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=handlers,
        force=True,
    )

    # httpx logs every request at INFO; keep it out of the triage log.
    logging.getLogger("httpx").setLevel(logging.WARNING)
