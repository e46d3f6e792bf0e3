"""HTTP API and push channel for the Zoya assistant.

Provides a FastAPI application with:
- Command submission and dashboard aggregate
- CRUD endpoints for emails, calendar events, tasks and reminders
- Command history and health endpoints
- A websocket channel pushing state-change events to observers
"""

from zoya.web.app import create_app

__all__ = ["create_app"]
