"""FastAPI application exposing the answer pipeline as a REST API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from policy_rag.errors import GenerationError, ValidationError
from policy_rag.serving.bootstrap import AIComponents

logger = logging.getLogger(__name__)

READY_MESSAGE = "Welcome to the Return Policy Chatbot backend (AI ready)!"
GENERATION_FAILED_MESSAGE = "Could not generate an answer. Please try again later."
INVALID_BODY_MESSAGE = "Request body must be a JSON object with a 'question' string."


# ── Request / Response schemas ────────────────────────────────────────
class QueryRequest(BaseModel):
    """Incoming question from the user.

    ``question`` is optional at the schema level so a missing question
    is answered with a 400 and an ``error`` body instead of FastAPI's 422.
    """

    question: str | None = None
    session_id: str | None = None


class QueryResponse(BaseModel):
    """Answer returned by the pipeline."""

    answer: str


class ErrorResponse(BaseModel):
    error: str


# ── App factory ───────────────────────────────────────────────────────
def create_app(components: AIComponents) -> FastAPI:
    """Build the API around an already-initialised component bundle."""
    app = FastAPI(
        title="Return Policy Chatbot API",
        version="0.1.0",
        description="Answers customer questions about the return policy.",
    )
    app.state.components = components
    pipeline = components.pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected malformed query body: %s", exc.errors())
        return JSONResponse(status_code=400, content={"error": INVALID_BODY_MESSAGE})

    # ── Routes ────────────────────────────────────────────────────────
    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        """Readiness message."""
        return READY_MESSAGE

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok"}

    @app.post(
        "/query",
        response_model=QueryResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def query(request: QueryRequest):
        """Answer one question within the (optional) session."""
        try:
            answer = await pipeline.answer(request.question, request.session_id)
        except ValidationError as exc:
            return JSONResponse(status_code=400, content={"error": str(exc)})
        except GenerationError:
            logger.exception("Failed to generate answer")
            return JSONResponse(status_code=500, content={"error": GENERATION_FAILED_MESSAGE})
        return QueryResponse(answer=answer)

    return app
