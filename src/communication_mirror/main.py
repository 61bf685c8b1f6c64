"""
FastAPI application entry point for Communication Mirror.

`create_app` is the composition root: it builds settings, the model
runtime, the analysis service, the session store and the model loader
once, and hands them to the routes through `app.state`.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from communication_mirror.analysis.service import AnalysisService
from communication_mirror.api.error_handlers import EXCEPTION_HANDLERS
from communication_mirror.api.middleware import RequestTracingMiddleware
from communication_mirror.api.routes_analysis import router as analysis_router
from communication_mirror.api.routes_sessions import router as sessions_router
from communication_mirror.api.routes_status import router as status_router
from communication_mirror.config import Settings
from communication_mirror.llm.base_client import ModelRuntime
from communication_mirror.llm.model_loader import ModelLoader
from communication_mirror.llm.ollama_client import OllamaRuntime
from communication_mirror.llm.prompt_builder import PromptBuilder
from communication_mirror.logging_config import configure_logging
from communication_mirror.monitoring.events import StructlogEventSink
from communication_mirror.sessions.store import SessionStore

logger = structlog.get_logger(__name__)


def build_runtime(settings: Settings, prompt_builder: PromptBuilder) -> OllamaRuntime:
    return OllamaRuntime(
        base_url=settings.OLLAMA_BASE_URL,
        model=settings.OLLAMA_MODEL,
        system_prompt=prompt_builder.build_system_prompt(),
        timeout=settings.OLLAMA_TIMEOUT,
        max_retries=settings.OLLAMA_MAX_RETRIES,
        context_size=settings.LLM_CONTEXT_SIZE,
    )


def create_app(
    settings: Optional[Settings] = None,
    runtime: Optional[ModelRuntime] = None,
    session_store: Optional[SessionStore] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Application settings (loaded from the environment if omitted)
        runtime: Model runtime (an OllamaRuntime from settings if omitted)
        session_store: Session store (built from settings if omitted)

    Returns:
        Configured FastAPI app
    """
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)

    prompt_builder = PromptBuilder(settings.PROMPT_TEMPLATES_DIR)
    runtime = runtime or build_runtime(settings, prompt_builder)
    service = AnalysisService(runtime, prompt_builder, settings, event_sink=StructlogEventSink())
    store = session_store or SessionStore(
        max_interactions=settings.SESSION_MAX_INTERACTIONS,
        ttl_seconds=settings.SESSION_TTL_SECONDS,
        sweep_interval_seconds=settings.SESSION_SWEEP_INTERVAL_SECONDS,
    )
    loader = ModelLoader(service)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Application startup",
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
            runtime=runtime.model_info(),
        )
        store.start_sweeper()
        loader.start()
        try:
            yield
        finally:
            logger.info("Application shutdown")
            await loader.stop()
            await store.dispose()
            await service.dispose()
            logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Message analysis (intent, tone, impact, alternatives) with structured LLM output",
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.analysis_service = service
    app.state.session_store = store
    app.state.model_loader = loader

    # Request tracing first so request_id is in every log line
    app.add_middleware(RequestTracingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)

    app.include_router(analysis_router)
    app.include_router(sessions_router)
    app.include_router(status_router)

    if settings.PROMETHEUS_ENABLED:
        Instrumentator().instrument(app).expose(app)

    @app.get("/")
    async def root():
        """Root endpoint with API documentation links."""
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health",
            "status": "/api/status",
            "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
        }

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "communication_mirror.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
    )
