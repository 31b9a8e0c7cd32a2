"""FastAPI application entry point."""
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic_settings import BaseSettings, SettingsConfigDict
from starlette.responses import Response

from study_assistant import __version__
from study_assistant.api.routes import documents, retrieval, study
from study_assistant.services.chunk_store import ChunkStore
from study_assistant.services.document_store import DocumentStore
from study_assistant.services.ingestion_service import IngestionService
from study_assistant.services.llm_service import LLMService
from study_assistant.services.retrieval_service import RetrievalService
from study_assistant.utils.logger import logger
from study_assistant.utils.tracer import initialize_tracing, shutdown_tracing


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        # Look for .env in both backend/ and parent directory
        env_file=(
            os.path.join(os.path.dirname(__file__), "..", "..", ".env"),
            os.path.join(os.path.dirname(__file__), "..", ".env"),
        ),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    llm_api_key: str = ""
    llm_api_url: str = "https://api.openai.com/v1/chat/completions"
    llm_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 60.0
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    # Ingestion
    max_pages: int = 1000  # Maximum number of pages per document
    chunk_batch_size: int = 50  # Chunks per store append
    max_workers: int = 0  # Max workers for parallel page chunking (0 = auto: cores * 2, max 16)

    # Retrieval
    chat_top_k: int = 8  # Maximum keyword-matched chunks for a chat message
    chat_fallback_count: int = 5  # Leading chunks used when a message matches nothing
    summary_max_chunks: int = 60  # Sampling budget for summaries

    # Generation
    questions_batch_size: int = 15  # Chunks per question generation request
    rate_limit_backoff_seconds: float = 2.0
    chat_history_limit: int = 6  # Most recent chat messages forwarded to the generator

    # OpenTelemetry tracing configuration
    tracing_enabled: bool = True
    otlp_endpoint: str = ""  # OTLP endpoint URL (empty = use console exporter)


# Global services (initialized in lifespan)
chunk_store: ChunkStore = None
document_store: DocumentStore = None
ingestion_service: IngestionService = None
retrieval_service: RetrievalService = None
llm_service: LLMService = None
settings: Settings = None
tracer_provider = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global chunk_store, document_store, ingestion_service, retrieval_service, llm_service
    global settings, tracer_provider

    # Startup
    logger.info("Starting Study Assistant")
    settings = Settings()

    tracer_provider = initialize_tracing(
        service_name="study-assistant",
        service_version=__version__,
        otlp_endpoint=settings.otlp_endpoint if settings.otlp_endpoint else None,
        tracing_enabled=settings.tracing_enabled,
    )

    chunk_store = ChunkStore(max_batch_size=max(settings.chunk_batch_size, 1))
    document_store = DocumentStore()
    ingestion_service = IngestionService(
        chunk_store=chunk_store,
        document_store=document_store,
        batch_size=settings.chunk_batch_size,
        max_workers=settings.max_workers,
        max_pages=settings.max_pages,
    )
    retrieval_service = RetrievalService(
        chunk_store=chunk_store,
        document_store=document_store,
        chat_top_k=settings.chat_top_k,
        chat_fallback_count=settings.chat_fallback_count,
        summary_max_chunks=settings.summary_max_chunks,
    )

    if settings.llm_api_key:
        llm_service = LLMService(
            api_key=settings.llm_api_key,
            api_url=settings.llm_api_url,
            model=settings.llm_model,
            timeout=settings.llm_timeout_seconds,
        )
        logger.info(f"Generator configured: {settings.llm_model}")
    else:
        llm_service = None
        logger.warning("LLM_API_KEY is not set. Generation endpoints are disabled; retrieval still works.")

    logger.info("All services initialized successfully")

    yield

    # Shutdown
    logger.info("Shutting down Study Assistant")
    if llm_service:
        await llm_service.close()
    if tracer_provider:
        shutdown_tracing(tracer_provider)


app = FastAPI(
    title="Study Assistant",
    description="Document chunking and keyword retrieval for study questions, chat and summaries",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle validation errors with better error messages.

    Specifically handles JSON decode errors from invalid control characters.
    """
    errors = exc.errors()

    for error in errors:
        if error.get("type") == "json_invalid":
            ctx = error.get("ctx", {})
            if "Invalid control character" in str(ctx.get("error", "")):
                return JSONResponse(
                    status_code=422,
                    content={
                        "detail": "Invalid JSON: Control characters detected in request body.",
                        "error": "json_parse_error",
                        "hint": "Escape control characters in page text or messages using proper JSON encoding.",
                    },
                )

    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_errors(errors)},
    )


def jsonable_errors(errors):
    """Drop non-serializable context objects from validation errors."""
    return jsonable_encoder([
        {key: value for key, value in error.items() if key in ("type", "loc", "msg", "input")}
        for error in errors
    ])


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Source-Pages"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Study Assistant"}


@app.get("/metrics")
async def prometheus_metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(documents.router, prefix="/api", tags=["documents"])
app.include_router(retrieval.router, prefix="/api", tags=["retrieval"])
app.include_router(study.router, prefix="/api", tags=["study"])


if __name__ == "__main__":
    import uvicorn

    run_settings = Settings()
    uvicorn.run(app, host=run_settings.api_host, port=run_settings.api_port)
