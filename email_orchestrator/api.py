"""
HTTP API.

``POST /api/process-email`` runs the whole pipeline; the
``/api/agents/*`` endpoints run a single analyzer. Input problems are 400s,
anything unexpected is a logged 500.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from .config import load_config
from .logging_config import setup_logging
from .models import AgentResponse, Email, ProcessEmailRequest, ProcessEmailResponse
from .orchestrator import MasterOrchestrator

logger = logging.getLogger(__name__)

SERVICE_NAME = "email-orchestrator"

router = APIRouter()


class BadRequest(Exception):
    pass


async def _read_email(request: Request) -> Email:
    try:
        body: Any = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BadRequest(f"Invalid JSON body: {e}") from e

    if not isinstance(body, dict) or body.get("email") is None:
        raise BadRequest("Missing email in request body")

    try:
        return ProcessEmailRequest.model_validate(body).email
    except ValidationError as e:
        raise BadRequest(f"Invalid email: {e}") from e


def _error(status_code: int, message: str) -> JSONResponse:
    response = AgentResponse(success=False, error=message)
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json", exclude_none=True))


def _orchestrator(request: Request) -> MasterOrchestrator:
    return request.app.state.orchestrator


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/health")
async def health() -> Dict[str, str]:
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/process-email")
async def process_email_endpoint(request: Request) -> JSONResponse:
    try:
        email = await _read_email(request)
    except BadRequest as e:
        return _error(400, str(e))

    try:
        result = await _orchestrator(request).process_email(email)
    except Exception as e:
        logger.exception("Email processing failed")
        return _error(500, str(e) or "Internal server error")

    response = ProcessEmailResponse(success=True, orchestration_result=result)
    return JSONResponse(content=response.model_dump(mode="json", by_alias=True))


async def _run_agent(
    request: Request,
    pick: Callable[[MasterOrchestrator], Callable[[Email], Awaitable[Optional[BaseModel]]]],
    name: str,
) -> JSONResponse:
    try:
        email = await _read_email(request)
    except BadRequest as e:
        return _error(400, str(e))

    try:
        result = await pick(_orchestrator(request))(email)
    except Exception as e:
        logger.exception("%s failed", name)
        return _error(500, str(e) or "Internal server error")

    content = result.model_dump(mode="json", by_alias=True) if result is not None else None
    return JSONResponse(content=AgentResponse(success=True, result=content).model_dump(mode="json"))


@router.post("/agents/summarizer")
async def summarizer_endpoint(request: Request) -> JSONResponse:
    return await _run_agent(request, lambda o: o.analyzers.summarizer, "Summarizer")


@router.post("/agents/spam-detector")
async def spam_detector_endpoint(request: Request) -> JSONResponse:
    return await _run_agent(request, lambda o: o.analyzers.spam_detector, "Spam detector")


@router.post("/agents/calendar-extractor")
async def calendar_extractor_endpoint(request: Request) -> JSONResponse:
    return await _run_agent(request, lambda o: o.analyzers.calendar_extractor, "Calendar extractor")


@router.post("/agents/language-detector")
async def language_detector_endpoint(request: Request) -> JSONResponse:
    return await _run_agent(request, lambda o: o.analyzers.language_detector, "Language detector")


# ---------------------------------------------------------------------------
# App factory & entrypoint
# ---------------------------------------------------------------------------


def create_app(orchestrator: Optional[MasterOrchestrator] = None) -> FastAPI:
    if orchestrator is None:
        orchestrator = MasterOrchestrator.from_config(load_config())

    app = FastAPI(title="email-orchestrator API")
    app.state.orchestrator = orchestrator
    app.include_router(router, prefix="/api")
    return app


def main() -> None:
    config = load_config()
    setup_logging(config.log_level, log_to_file=config.log_to_file, logs_dir=config.logs_dir)

    app = create_app(MasterOrchestrator.from_config(config))
    logger.info("Starting %s on %s:%d", SERVICE_NAME, config.host, config.port)
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
