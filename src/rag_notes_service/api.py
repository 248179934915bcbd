"""
HTTP surface for the notes service.

    GET  /ask?question=...   plain-text answer
    POST /notes              {"text": "..."} -> {"id", "text", "inserted"}
    GET  /health             row and vector counts
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .config import load_config
from .context import ServiceContext, build_context
from .errors import ClientError, NotesServiceError
from .ingest import ingest_note
from .log import setup_logging
from .query import answer_question

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RAG_NOTES_CONFIG"


def get_context(request: Request) -> ServiceContext:
    return request.app.state.ctx


def create_app(ctx: Optional[ServiceContext] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "ctx", None) is None:
            cfg = load_config(Path(os.getenv(CONFIG_ENV_VAR, "config.yaml")))
            setup_logging(cfg.log_level)
            app.state.ctx = build_context(cfg)
        yield

    app = FastAPI(title="RAG Notes Service", lifespan=lifespan)
    app.state.ctx = ctx

    @app.exception_handler(NotesServiceError)
    async def notes_error_handler(request: Request, exc: NotesServiceError) -> Response:
        if exc.status_code == 204:
            return Response(status_code=204)
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
        return PlainTextResponse("Invalid request body", status_code=400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return PlainTextResponse(str(exc), status_code=500)

    @app.get("/ask", response_class=PlainTextResponse)
    def ask(question: Optional[str] = None, ctx: ServiceContext = Depends(get_context)):
        return PlainTextResponse(answer_question(question, ctx))

    @app.post("/notes")
    def create_note(payload: Any = Body(None), ctx: ServiceContext = Depends(get_context)):
        if not isinstance(payload, dict):
            return PlainTextResponse("Invalid request body", status_code=400)
        text = payload.get("text")
        if not isinstance(text, str):
            raise ClientError()
        result = ingest_note(text, ctx)
        return JSONResponse(result.to_dict())

    @app.get("/health")
    def health(ctx: ServiceContext = Depends(get_context)):
        return {"status": "ok", "notes": ctx.store.count_notes(), "vectors": ctx.index.size}

    return app


__all__ = ["create_app", "get_context"]
