"""
ecs_chatops.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Hand routers the dispatcher built at app startup.
"""

from __future__ import annotations

from fastapi import Request

from ecs_chatops.services.dispatcher import SlackDispatcher


def dispatcher_dep(request: Request) -> SlackDispatcher:
    # Built on app startup in `ecs_chatops.api.app.create_app`.
    return request.app.state.dispatcher  # type: ignore[attr-defined]
