"""FastAPI dependency injection helpers.

Extracts shared dependencies from app.state for use in route handlers.
All dependencies are initialized during the FastAPI lifespan.

Usage:
    from zoya.web.dependencies import get_store

    @router.get("/tasks")
    async def list_tasks(store: Store = Depends(get_store)):
        return [t.to_dict() for t in await store.get_tasks()]
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from zoya.classifier.command_classifier import CommandClassifier
    from zoya.classifier.summarizer import EmailDrafter, EmailSummarizer
    from zoya.config_schema import AppConfig
    from zoya.db.store import Store
    from zoya.engine.executor import CommandExecutor
    from zoya.web.events import EventBroadcaster


def get_store(request: Request) -> Store:
    """Get the shared Store from app state."""
    return request.app.state.store


def get_config(request: Request) -> AppConfig:
    """Get the current AppConfig from app state."""
    return request.app.state.config


def get_executor(request: Request) -> CommandExecutor:
    return request.app.state.executor


def get_classifier(request: Request) -> CommandClassifier:
    return request.app.state.classifier


def get_summarizer(request: Request) -> EmailSummarizer:
    return request.app.state.summarizer


def get_drafter(request: Request) -> EmailDrafter:
    return request.app.state.drafter


def get_broadcaster(request: Request) -> EventBroadcaster:
    """Get the push-update broadcaster from app state."""
    return request.app.state.broadcaster
