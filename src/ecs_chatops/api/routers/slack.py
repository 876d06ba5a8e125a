"""
ecs_chatops.api.routers.slack

Slack request URL (Events API and interactive components share it).

Responsibilities:
- Hand the raw body and headers to the dispatcher and return its response verbatim.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from ecs_chatops.api.deps import dispatcher_dep
from ecs_chatops.services.dispatcher import SlackDispatcher

router = APIRouter(prefix="/slack", tags=["slack"])


@router.post("/events")
async def slack_events(
    request: Request,
    dispatcher: SlackDispatcher = Depends(dispatcher_dep),
) -> Response:
    # Signature verification needs the exact bytes Slack signed.
    body = (await request.body()).decode("utf-8")
    result = await dispatcher.handle(body=body, headers=dict(request.headers))
    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type=result.content_type,
    )
