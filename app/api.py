from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from app.config import Settings, configure_logging, load_settings
from app.llm_service import QueryAgentService
from app.schemas import CompletionRequest, ErrorResponse

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, service: QueryAgentService | None = None) -> FastAPI:
    settings = settings or load_settings()
    if service is None:
        settings.require_llm()
        service = QueryAgentService(settings)

    app = FastAPI(title="AI Database Query")
    app.state.settings = settings
    app.state.service = service

    @app.get("/api/health")
    async def health(request: Request):
        current: Settings = request.app.state.settings
        return {
            "status": "ok",
            "model": current.openai_model,
            "mcp_server_url": current.mcp_server_url,
        }

    @app.post("/api/completion")
    async def completion(body: CompletionRequest, request: Request):
        logger.info("Completion request: type=%s prompt_chars=%d", body.type, len(body.prompt))
        try:
            text = await request.app.state.service.run(body.prompt, body.type)
        except Exception:
            logger.exception("Error processing query")
            return JSONResponse(status_code=500, content=ErrorResponse().model_dump())

        # the model's answer is passed through untouched; the client decides if it parses
        return Response(content=text, status_code=200, media_type="application/json")

    return app


def build_default_app() -> FastAPI:
    settings = load_settings()
    configure_logging(settings.log_level)
    return create_app(settings)
