"""
ecs_chatops.lambda_handler

AWS Lambda entrypoint behind an API Gateway proxy integration.

Responsibilities:
- Translate the proxy event into the dispatcher's (body, headers) input.
- Translate `HandlerResponse` back into the proxy response shape.
"""

from __future__ import annotations

import asyncio
import base64
from functools import lru_cache
from typing import Any

import structlog

from ecs_chatops.observability.logging import bind_lambda_invocation, configure_logging
from ecs_chatops.services.dispatcher import SlackDispatcher, build_dispatcher
from ecs_chatops.settings import get_settings


@lru_cache(maxsize=1)
def get_dispatcher() -> SlackDispatcher:
    # Built once per Lambda container and reused across warm invocations.
    settings = get_settings()
    configure_logging(
        service_name=settings.service_name, level=settings.log_level, env=settings.env
    )
    return build_dispatcher(settings)


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    headers = event.get("headers") or {}

    bind_lambda_invocation(event, context)
    try:
        result = asyncio.run(get_dispatcher().handle(body=body, headers=headers))
    finally:
        structlog.contextvars.clear_contextvars()

    return {
        "statusCode": result.status_code,
        "isBase64Encoded": False,
        "headers": dict(result.headers),
        "body": result.body,
    }
