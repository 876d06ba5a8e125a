"""
ecs_chatops.chat.events

Events API envelope parsing.

Responsibilities:
- Recognize URL verification challenges and `app_mention` callbacks.
- Split a mention's text into command arguments.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ecs_chatops.errors import MalformedPayloadError

URL_VERIFICATION = "url_verification"
CALLBACK_EVENT = "event_callback"
APP_MENTION = "app_mention"


class InnerEvent(BaseModel):
    type: str
    channel: str = ""
    user: str = ""
    text: str = ""


class EventEnvelope(BaseModel):
    type: str
    token: str = ""
    challenge: str = ""
    event: InnerEvent | None = None
    event_id: str = ""

    @property
    def mention(self) -> InnerEvent | None:
        if self.type != CALLBACK_EVENT or self.event is None:
            return None
        return self.event if self.event.type == APP_MENTION else None


def parse_envelope(raw: str) -> EventEnvelope:
    try:
        data: Any = json.loads(raw)
        return EventEnvelope.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise MalformedPayloadError(f"invalid event envelope: {e}") from e


def mention_args(text: str) -> list[str]:
    """
    ``"<@U123> web-"`` -> ``["web-"]``; the first word is the bot mention itself.
    """

    return text.split()[1:]
