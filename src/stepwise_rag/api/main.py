"""FastAPI entrypoint for analyze/health/trace endpoints."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from stepwise_rag.agent.orchestrator import QueryOrchestrator
from stepwise_rag.agent.registry import ToolRegistry
from stepwise_rag.agent.tools import register_builtin_tools
from stepwise_rag.config import AgentConfig, BackendSettings
from stepwise_rag.errors import InputError
from stepwise_rag.llm.backend import ChatBackend, LangChainChatBackend, create_chat_model
from stepwise_rag.llm.fallback import OfflineChatBackend
from stepwise_rag.obs.logging import configure_logging
from stepwise_rag.obs.session import SessionContext
from stepwise_rag.obs.sinks import LoggingTraceSink, TraceSink
from stepwise_rag.obs.tracing import TraceStore
from stepwise_rag.retrieval.seed import seed_knowledge_base
from stepwise_rag.retrieval.vector_store import (
    FaissKnowledgeIndex,
    InMemoryKnowledgeIndex,
    KnowledgeIndex,
)

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    text: str | None = None


def _create_index(settings: BackendSettings) -> KnowledgeIndex:
    if settings.index_backend == "faiss":
        return FaissKnowledgeIndex()
    return InMemoryKnowledgeIndex()


def create_app(
    *,
    settings: BackendSettings | None = None,
    backend: ChatBackend | None = None,
    index: KnowledgeIndex | None = None,
    sink: TraceSink | None = None,
    config: AgentConfig | None = None,
) -> FastAPI:
    """Wire service handles, seed the knowledge base, and build the app.

    Any handle left as None is built from `settings`. Without an API key the
    deterministic offline backend answers instead of a hosted model.
    """

    settings = settings or BackendSettings.from_env()
    configure_logging(settings.log_level)
    config = config or AgentConfig()

    if backend is None:
        llm = create_chat_model(settings)
        backend = LangChainChatBackend(llm) if llm is not None else OfflineChatBackend()
    backend_mode = "offline" if isinstance(backend, OfflineChatBackend) else "llm"

    index = index if index is not None else _create_index(settings)
    seed_knowledge_base(index)

    session = SessionContext(config.session_name)
    registry = ToolRegistry(session=session, sink=sink or LoggingTraceSink())
    register_builtin_tools(registry, index, retrieval_config=config.retrieval)

    trace_store = TraceStore()
    orchestrator = QueryOrchestrator(
        backend=backend,
        tool_registry=registry,
        session=session,
        trace_store=trace_store,
        config=config,
    )

    app = FastAPI(title="Stepwise RAG Agent", version="0.1.0")
    app.state.orchestrator = orchestrator
    app.state.trace_store = trace_store

    @app.exception_handler(InputError)
    async def _input_error(_request: Request, exc: InputError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        if request.url.path == "/analyze":
            return JSONResponse(status_code=400, content={"error": "Missing text"})
        return await request_validation_exception_handler(request, exc)

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "llm_configured": settings.llm_configured,
            "backend_mode": backend_mode,
            "knowledge_documents": index.count(),
        }

    @app.post("/analyze")
    def analyze(request: AnalyzeRequest) -> Any:
        if not request.text:
            raise InputError()
        try:
            result = orchestrator.invoke(request.text)
        except InputError:
            raise
        except Exception as exc:
            logger.exception("analyze failed")
            return JSONResponse(status_code=500, content={"error": str(exc) or "Internal Server Error"})
        return {"response": result.response}

    @app.get("/traces")
    def traces(limit: int = Query(default=20, ge=1, le=1000)) -> dict[str, Any]:
        return {"items": [asdict(record) for record in trace_store.list_recent(limit=limit)]}

    @app.get("/traces/{session_id}")
    def trace_detail(session_id: str) -> dict[str, Any]:
        try:
            record = trace_store.get(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @app.get("/metrics")
    def metrics() -> dict[str, Any]:
        return trace_store.summary()

    return app


def build_default_app() -> FastAPI:
    load_dotenv()
    return create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(build_default_app(), host="0.0.0.0", port=int(os.getenv("PORT", "3000")))


if __name__ == "__main__":
    main()
