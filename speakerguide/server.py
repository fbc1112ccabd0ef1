"""HTTP boundary consumed by the rehearsal front end."""
from __future__ import annotations

import math
import os
import secrets
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, Header, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from . import __version__
from .errors import AuthenticationRequired, GenerationCancelledError, RateLimited, SpeakerGuideError
from .llm import LLMConfig, init_llm
from .logging_utils import get_logger
from .pipeline import Pipeline, RunConfig

logger = get_logger("server")


class GenerateGuideBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Entries are left untyped: the sanitizer blanks non-string slides instead of rejecting the batch.
    slide_texts: List[Any] = Field(alias="slideTexts")
    deck_title: Any = Field(default=None, alias="deckTitle")


def _error(status: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status, headers=headers)


def create_app(pipeline: Optional[Pipeline] = None, service_token: Optional[str] = None) -> FastAPI:
    """Build the FastAPI app around one pipeline and its guide session."""
    if pipeline is None:
        pipeline = Pipeline(RunConfig(), init_llm(LLMConfig.from_env()))
    if service_token is None:
        service_token = os.environ.get("SPEAKERGUIDE_SERVICE_TOKEN", "")

    app = FastAPI(title="speakerguide", version=__version__)
    app.state.pipeline = pipeline

    def require_token(authorization: Optional[str] = Header(default=None)) -> None:
        if not service_token:
            return
        if not authorization or not secrets.compare_digest(authorization, f"Bearer {service_token}"):
            raise AuthenticationRequired()

    @app.exception_handler(SpeakerGuideError)
    async def _speakerguide_error(request: Request, exc: SpeakerGuideError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        else:
            logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        headers = None
        retry_after = exc.retry_after if isinstance(exc, RateLimited) else None
        if retry_after is not None and math.isfinite(retry_after):
            headers = {"Retry-After": str(int(retry_after))}
        return _error(exc.http_status, exc.message, headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = ", ".join(".".join(str(p) for p in e.get("loc", ())[1:]) or "body" for e in exc.errors())
        return _error(400, f"Invalid request body: {fields or 'body'}")

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return _error(500, "Internal server error")

    router = APIRouter(dependencies=[Depends(require_token)])

    @router.post("/generate-guide")
    def generate_guide(body: GenerateGuideBody) -> Any:
        deck = pipeline.generate_deck(body.deck_title, body.slide_texts)
        if deck is None:
            raise GenerationCancelledError()
        return {"guides": [g.to_wire() for g in deck.guides]}

    @router.post("/decks")
    def upload_deck(file: UploadFile = File(...), title: Optional[str] = Form(default=None)) -> Any:
        # one byte past the limit is enough for check_upload to reject it
        data = file.file.read(pipeline.cfg.max_upload_bytes + 1)
        deck = pipeline.run_upload(data, file.filename or "", title=title, content_type=file.content_type)
        if deck is None:
            raise GenerationCancelledError()
        return deck.to_wire()

    @router.get("/decks/current")
    def current_deck() -> Any:
        deck = pipeline.session.store.current()
        if deck is None:
            return _error(404, "No deck has been generated yet.")
        return deck.to_wire()

    @router.delete("/decks/current")
    def discard_deck() -> Any:
        pipeline.session.abandon()
        return {"status": "discarded"}

    app.include_router(router)

    @app.get("/health")
    def health() -> Any:
        return {"status": "healthy", "busy": pipeline.session.is_busy}

    return app
