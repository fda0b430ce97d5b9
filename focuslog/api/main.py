"""
FocusLog API - FastAPI Application

REST surface over the routine, summary and insight services.

Usage:
    uvicorn focuslog.api.main:create_app --factory --host 127.0.0.1 --port 8080

    Or via the CLI:
    focuslog serve
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

# Load .env file before anything reads the environment
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from focuslog import __version__
from focuslog.ai.client import AnthropicTextGenerator, TextGenerator
from focuslog.api.models import HealthCheck
from focuslog.api.routes import api_router
from focuslog.config_models import FocusLogConfig, load_config
from focuslog.insights.classification import ClassificationRules
from focuslog.logging_config import setup_logging
from focuslog.services.routine_service import RoutineService
from focuslog.services.summary_service import SummaryService
from focuslog.storage.base import RecordStore
from focuslog.storage.sqlite_store import SQLiteRecordStore

logger = logging.getLogger(__name__)


_UNSET = object()


def create_app(
    config: FocusLogConfig | None = None,
    store: RecordStore | None = None,
    generator: TextGenerator | None | object = _UNSET,
    routine_service: RoutineService | None = None,
    summary_service: SummaryService | None = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the application.

    Collaborators are created here, once per process, and shared by every
    request through ``app.state``. Tests inject their own store, generator
    or fully built services.
    """
    config = config or load_config()
    if configure_logging:
        setup_logging(config.logging)

    if store is None:
        store = SQLiteRecordStore(config.storage.resolved_path())
    if generator is _UNSET:
        generator = AnthropicTextGenerator.from_config(config.ai)

    rules = ClassificationRules.from_config(config.classification)
    if routine_service is None:
        routine_service = RoutineService(
            store,
            generator=generator,
            config=config.routine_service,
            rules=rules,
            patterns_config=config.patterns,
        )
    if summary_service is None:
        summary_service = SummaryService(
            store,
            generator=generator,
            rules=rules,
            patterns_config=config.patterns,
            retry_delay=config.routine_service.schema_retry_delay_seconds,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting FocusLog API (store={store.name}, ai={'on' if generator else 'off'})")
        yield
        logger.info("Shutting down FocusLog API...")
        client = getattr(generator, "client", None)
        if client is not None:
            try:
                await client.close()
            except Exception as e:
                logger.warning(f"Error closing AI client: {e}")

    app = FastAPI(
        title="FocusLog API",
        description="Focus analytics and routine suggestions",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.store = store
    app.state.generator = generator
    app.state.routine_service = routine_service
    app.state.summary_service = summary_service

    app.include_router(api_router)

    @app.get("/health", response_model=HealthCheck, tags=["health"])
    async def health_check():
        return HealthCheck(
            version=__version__,
            timestamp=datetime.now(),
            ai_enabled=app.state.generator is not None,
        )

    return app
