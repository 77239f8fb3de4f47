"""FastAPI application factory — entry point for the home recommendations service."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from homerecs.adapters.catalog.google_books import GoogleBooksCatalog
from homerecs.adapters.llm.mock import MockLLMAdapter
from homerecs.adapters.llm.ollama import OllamaLLMAdapter
from homerecs.adapters.llm.openai_adapter import OpenAILLMAdapter
from homerecs.adapters.signals.sql import SqlSignalSource
from homerecs.api.routes.recommendations import router as recommendations_router
from homerecs.api.schemas import Features, HealthResponse
from homerecs.config import LLMProvider, Settings, settings
from homerecs.database import async_session_factory, engine, init_models
from homerecs.ports.llm import LLMPort
from homerecs.services.recommendations import HomeRecommender
from homerecs.services.retriever import CandidateRetriever
from homerecs.services.selector import LLMSelector

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "homerecs"


def build_llm(config: Settings) -> LLMPort:
    """Pick the LLM adapter named by ``LLM_PROVIDER``."""
    if config.llm_provider is LLMProvider.OLLAMA:
        return OllamaLLMAdapter(
            base_url=config.ollama_base_url,
            model=config.ollama_model,
            timeout=config.llm_timeout_seconds,
        )
    if config.llm_provider is LLMProvider.MOCK:
        return MockLLMAdapter()
    return OpenAILLMAdapter(
        api_key=config.openai_api_key,
        model=config.openai_model,
        timeout=config.llm_timeout_seconds,
    )


def build_recommender(config: Settings, catalog: GoogleBooksCatalog) -> HomeRecommender:
    return HomeRecommender(
        signal_source=SqlSignalSource(async_session_factory),
        retriever=CandidateRetriever(catalog),
        selector=LLMSelector(build_llm(config), retry_attempts=config.llm_retry_attempts),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown events."""
    logger.info("homerecs starting up...")
    logger.info("Environment: %s", settings.environment)
    logger.info("LLM provider: %s (configured: %s)", settings.llm_provider.value, settings.llm_configured)
    logger.info("Book search configured: %s", settings.book_search_configured)
    await init_models()
    yield
    await app.state.catalog.aclose()
    await engine.dispose()
    logger.info("homerecs shutting down...")


def create_app(config: Settings = settings) -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="homerecs",
        description="Personalized home recommendations for a social reading app",
        version="1.0.0",
        lifespan=lifespan,
    )

    catalog = GoogleBooksCatalog(
        api_key=config.google_books_api_key,
        timeout=config.google_books_timeout_seconds,
        rate_limit_backoff=config.google_books_rate_limit_backoff_seconds,
    )
    application.state.catalog = catalog
    application.state.recommender = build_recommender(config, catalog)

    # ── Middleware ──────────────────────────────────
    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error Handlers ─────────────────────────────
    @application.exception_handler(StarletteHTTPException)
    async def http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @application.exception_handler(RequestValidationError)
    async def validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        content = {"error": "Invalid request"}
        if config.is_development:
            content["details"] = str(exc.errors())
        return JSONResponse(status_code=400, content=content)

    @application.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        content = {"error": "Internal server error"}
        if config.is_development:
            content["details"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    # ── Routes ─────────────────────────────────────
    application.include_router(recommendations_router)

    # ── Health Check ───────────────────────────────
    @application.get("/health", tags=["System"], response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service=SERVICE_NAME,
            features=Features(
                llm=config.llm_configured,
                book_search=config.book_search_configured,
            ),
            llm_provider=config.llm_provider.value,
        )

    return application


app = create_app()
