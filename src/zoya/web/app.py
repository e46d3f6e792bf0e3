"""FastAPI application for the Zoya assistant.

Creates the FastAPI app with:
- Lifespan context manager wiring config, store, Claude client,
  classifier, summarizer, executor and event broadcaster onto app.state
- Exception handlers mapping domain errors to JSON error bodies
- The REST API router and the /ws push channel

Usage:
    from zoya.web.app import create_app

    app = create_app()
    # Run with: uvicorn.run(app, host="127.0.0.1", port=8000)
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from zoya.core.errors import (
    ClientInputError,
    EntityNotFoundError,
    EntityValidationError,
    StorageUnavailableError,
)
from zoya.core.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize dependencies on startup, clean up on shutdown.

    On startup:
    1. Load config (defaults when the file is missing)
    2. Create and initialize the store
    3. Build the Claude client and the classifier family
    4. Build the executor and the broadcaster

    On shutdown:
    - Let pending broadcasts finish, close the store and the client
    """
    from zoya.classifier.command_classifier import CommandClassifier
    from zoya.classifier.provider import AvailabilityState, build_client
    from zoya.classifier.summarizer import EmailDrafter, EmailSummarizer
    from zoya.config import get_config_or_default
    from zoya.db.factory import create_store
    from zoya.engine.executor import CommandExecutor
    from zoya.web.events import EventBroadcaster

    # 1. Load config
    config = get_config_or_default()
    app.state.config = config

    # 2. Initialize store
    store = await create_store(config)
    app.state.store = store

    # 3. Claude client, breaker state, classifier family
    anthropic_client = build_client(config.classifier)
    availability = AvailabilityState(cooldown_seconds=config.classifier.cooldown_seconds)
    classifier = CommandClassifier(anthropic_client, config.classifier, availability)
    summarizer = EmailSummarizer(anthropic_client, config.classifier, availability)

    app.state.anthropic_client = anthropic_client
    app.state.classifier = classifier
    app.state.summarizer = summarizer
    app.state.drafter = EmailDrafter(anthropic_client, config.classifier, availability)

    # 4. Executor and broadcaster
    app.state.executor = CommandExecutor(store, classifier, summarizer, tz=config.tzinfo)
    broadcaster = EventBroadcaster()
    app.state.broadcaster = broadcaster

    logger.info(
        "app_started",
        storage_backend=store.backend_name,
        classifier_mode=classifier.mode,
        timezone=config.timezone,
    )

    yield

    # Shutdown
    await broadcaster.drain()
    await store.close()
    if anthropic_client is not None:
        await anthropic_client.close()
    logger.info("app_stopped")


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


async def _client_input_error(request: Request, exc: ClientInputError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


async def _entity_validation_error(request: Request, exc: EntityValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": str(exc), "errors": exc.errors},
    )


async def _entity_not_found(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"success": False, "error": str(exc)})


async def _storage_unavailable(request: Request, exc: StorageUnavailableError) -> JSONResponse:
    logger.error(
        "storage_unavailable_response",
        path=request.url.path,
        operation=exc.operation,
        error=str(exc),
    )
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    from zoya.web.routes import APP_VERSION, api_router, ws_router

    app = FastAPI(
        title="Zoya Assistant",
        description="Multilingual personal assistant: commands, calendar, email, tasks",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    app.add_exception_handler(ClientInputError, _client_input_error)
    app.add_exception_handler(EntityValidationError, _entity_validation_error)
    app.add_exception_handler(EntityNotFoundError, _entity_not_found)
    app.add_exception_handler(StorageUnavailableError, _storage_unavailable)

    app.include_router(api_router)
    app.include_router(ws_router)

    return app
