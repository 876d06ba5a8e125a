"""
ecs_chatops.observability.logging

Structured logging for the bot, whether it runs under uvicorn or inside Lambda.

Responsibilities:
- Configure `structlog` to emit one JSON object per line (CloudWatch Logs reads stdout).
- Stamp every entry with the service name and deployment env.
- Bind per-invocation Lambda identifiers so entries can be joined with API Gateway logs.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from typing import Any

import structlog


def configure_logging(*, service_name: str, level: str, env: str = "dev") -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    # boto's own loggers stay at WARNING even when we run at DEBUG.
    for name in ("botocore", "boto3", "urllib3"):
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _static_fields(service=service_name, env=env),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def bind_lambda_invocation(event: Mapping[str, Any], context: Any) -> None:
    """
    Reset contextvars for a new Lambda invocation.

    `aws_request_id` matches the Lambda runtime's own START/END lines; `request_id` is the
    API Gateway id, which is all we have when invoked without a context (tests, local runs).
    """

    request_context = event.get("requestContext") or {}
    gateway_id = request_context.get("requestId", "")
    aws_request_id = getattr(context, "aws_request_id", None) or ""

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=aws_request_id or gateway_id)
    if aws_request_id:
        structlog.contextvars.bind_contextvars(
            aws_request_id=aws_request_id,
            function_version=getattr(context, "function_version", None),
        )
    if gateway_id:
        structlog.contextvars.bind_contextvars(gateway_request_id=gateway_id)


def _static_fields(**fields: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        for key, value in fields.items():
            event_dict.setdefault(key, value)
        return event_dict

    return processor


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
