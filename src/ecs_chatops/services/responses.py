"""
ecs_chatops.services.responses

Transport-neutral response value returned by the dispatcher.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain"


@dataclass(frozen=True, slots=True)
class HandlerResponse:
    status_code: int
    body: str = ""
    headers: dict[str, str] = field(default_factory=lambda: {"Content-Type": JSON_CONTENT_TYPE})

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", JSON_CONTENT_TYPE)


def empty(status_code: int = 200) -> HandlerResponse:
    return HandlerResponse(status_code=status_code)


def json_message(message: dict[str, Any]) -> HandlerResponse:
    return HandlerResponse(status_code=200, body=json.dumps(message))


def plain_text(body: str) -> HandlerResponse:
    return HandlerResponse(status_code=200, body=body, headers={"Content-Type": TEXT_CONTENT_TYPE})
