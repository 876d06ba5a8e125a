"""
ecs_chatops.chat.client

Outbound Slack messaging.

Responsibilities:
- Post new (non-replacing) messages with text and/or legacy attachments.
"""

from __future__ import annotations

import asyncio
from typing import Any

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError

from ecs_chatops.errors import ChatPlatformError
from ecs_chatops.observability.logging import get_logger

log = get_logger(__name__)


class ChatClient:
    """
    Thin async wrapper over `slack_sdk.WebClient`, constructed per invocation with the
    freshly decrypted bot token.
    """

    def __init__(self, *, token: str, base_url: str, timeout: int = 10) -> None:
        self._web = WebClient(token=token, base_url=base_url, timeout=timeout)

    async def post_message(
        self,
        *,
        channel: str,
        text: str | None = None,
        attachments: list[dict[str, Any]] | None = None,
    ) -> None:
        try:
            await asyncio.to_thread(
                self._web.chat_postMessage,
                channel=channel,
                text=text,
                attachments=attachments,
            )
        except SlackApiError as e:
            error = e.response.get("error", "unknown") if e.response is not None else "unknown"
            log.error("slack_post_failed", channel=channel, error=error)
            raise ChatPlatformError(f"chat.postMessage failed: {error}") from e
        except (SlackClientError, OSError) as e:
            log.error("slack_post_failed", channel=channel, error=str(e))
            raise ChatPlatformError(f"chat.postMessage failed: {e}") from e
