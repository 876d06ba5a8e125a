"""
tests.test_dispatcher

End-to-end request handling through the single dispatch point (fakes for AWS and Slack).
"""

from __future__ import annotations

import json
import time
from urllib.parse import urlencode

import pytest
from slack_sdk.signature import SignatureVerifier

from conftest import (
    VERIFICATION_TOKEN,
    FakeChat,
    FakeControlPlane,
    FakeFleet,
    interaction_body,
    posted_message,
)
from ecs_chatops.aws.secrets import SecretDecryptor
from ecs_chatops.errors import ControlPlaneError
from ecs_chatops.services.dispatcher import SlackDispatcher
from ecs_chatops.services.mentions import HELP_TEXT
from ecs_chatops.settings import Settings
from ecs_chatops.workflow import codec
from ecs_chatops.workflow.catalog import RevisionCatalog
from ecs_chatops.workflow.state import Action


def _mention(text: str, *, token: str = VERIFICATION_TOKEN) -> str:
    return json.dumps(
        {
            "token": token,
            "type": "event_callback",
            "event_id": "Ev123",
            "event": {"type": "app_mention", "channel": "C123", "user": "U123", "text": text},
        }
    )


@pytest.mark.asyncio
async def test_url_verification_echoes_challenge(dispatcher: SlackDispatcher) -> None:
    body = json.dumps({"token": VERIFICATION_TOKEN, "type": "url_verification", "challenge": "abc"})

    resp = await dispatcher.handle(body=body, headers={})

    assert resp.status_code == 200
    assert resp.body == "abc"
    assert resp.content_type == "text/plain"


@pytest.mark.asyncio
async def test_wrong_verification_token_is_rejected(
    dispatcher: SlackDispatcher, chat: FakeChat
) -> None:
    resp = await dispatcher.handle(body=_mention("<@UBOT>", token="forged"), headers={})

    assert resp.status_code == 401
    assert resp.body == ""
    assert chat.posts == []


@pytest.mark.asyncio
async def test_mention_without_args_posts_cluster_menu(
    dispatcher: SlackDispatcher, chat: FakeChat
) -> None:
    resp = await dispatcher.handle(body=_mention("<@UBOT>"), headers={})

    assert resp.status_code == 200
    assert resp.body == ""
    assert chat.tokens == ["xoxb-test"]
    [post] = chat.posts
    assert post["channel"] == "C123"
    [menu] = post["attachments"]
    assert [o.value for o in codec.options_of(menu, Action.CLUSTERS)] == [
        "stg-cluster",
        "prod-cluster",
    ]


@pytest.mark.asyncio
async def test_mention_with_prefix_lists_instances(
    dispatcher: SlackDispatcher, chat: FakeChat, fleet: FakeFleet
) -> None:
    await dispatcher.handle(body=_mention("<@UBOT>   web"), headers={})

    assert fleet.prefixes == ["web"]
    [att] = chat.posts[0]["attachments"]
    assert att["pretext"] == "*Instance ID List in ap-northeast-1*"
    assert att["fields"] == [
        {"title": "web-1", "value": "i-0001", "short": False},
        {"title": "web-2", "value": "i-0002", "short": False},
    ]


@pytest.mark.asyncio
async def test_mention_with_unmatched_prefix_posts_empty_fields(
    dispatcher: SlackDispatcher, chat: FakeChat
) -> None:
    resp = await dispatcher.handle(body=_mention("<@UBOT> nothing-here"), headers={})

    assert resp.status_code == 200
    assert chat.posts[0]["attachments"][0]["fields"] == []


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["<@UBOT> help", "<@UBOT> web extra"])
async def test_help_and_extra_args_post_usage(
    dispatcher: SlackDispatcher, chat: FakeChat, text: str
) -> None:
    await dispatcher.handle(body=_mention(text), headers={})

    assert chat.posts == [{"channel": "C123", "text": HELP_TEXT, "attachments": None}]


@pytest.mark.asyncio
async def test_event_retry_is_acknowledged_without_posting(
    dispatcher: SlackDispatcher, chat: FakeChat
) -> None:
    resp = await dispatcher.handle(
        body=_mention("<@UBOT>"), headers={"X-Slack-Retry-Num": "1"}
    )

    assert resp.status_code == 200
    assert chat.posts == []


@pytest.mark.asyncio
async def test_interaction_returns_replacement_message(dispatcher: SlackDispatcher) -> None:
    menu = posted_message(codec.cluster_menu(["stg-cluster"]))

    resp = await dispatcher.handle(
        body=interaction_body(menu, "clusters", selected="stg-cluster"), headers={}
    )

    assert resp.status_code == 200
    assert resp.content_type == "application/json"
    message = json.loads(resp.body)
    assert message["replace_original"] is True
    assert message["attachments"][0]["text"] == "Choose ECS Service in stg-cluster"


@pytest.mark.asyncio
async def test_interaction_with_forged_token_is_rejected(
    dispatcher: SlackDispatcher, control_plane: FakeControlPlane
) -> None:
    menu = posted_message(codec.cluster_menu(["stg-cluster"]))

    resp = await dispatcher.handle(
        body=interaction_body(menu, "clusters", selected="stg-cluster", token="forged"),
        headers={},
    )

    assert resp.status_code == 401
    assert control_plane.calls == []


@pytest.mark.asyncio
async def test_unrecognized_interaction_is_empty_ack(dispatcher: SlackDispatcher) -> None:
    menu = posted_message(codec.cluster_menu(["stg-cluster"]))

    resp = await dispatcher.handle(body=interaction_body(menu, "mystery", value="1"), headers={})

    assert (resp.status_code, resp.body) == (200, "")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {
            "type": "block_actions",
            "user": {"id": "U123", "username": "alice"},
            "actions": [{"action_id": "approve", "block_id": "b1", "type": "button"}],
        },
        {"actions": [{"name": "somethingElse"}], "user": {"id": "U123", "name": "alice"}},
    ],
)
async def test_foreign_callback_is_empty_ack(
    dispatcher: SlackDispatcher, control_plane: FakeControlPlane, payload: dict
) -> None:
    body = urlencode({"payload": json.dumps({**payload, "token": VERIFICATION_TOKEN})})
    forged = urlencode({"payload": json.dumps({**payload, "token": "forged"})})

    resp = await dispatcher.handle(body=body, headers={})
    rejected = await dispatcher.handle(body=forged, headers={})

    assert (resp.status_code, resp.body) == (200, "")
    assert rejected.status_code == 401
    assert control_plane.calls == []


@pytest.mark.asyncio
async def test_invalid_state_maps_to_500(dispatcher: SlackDispatcher) -> None:
    message = posted_message({"text": "stale", "callback_id": "sandbox"})

    resp = await dispatcher.handle(
        body=interaction_body(message, "services", selected="web"), headers={}
    )

    assert (resp.status_code, resp.body) == (500, "")


@pytest.mark.asyncio
async def test_malformed_payload_maps_to_500(dispatcher: SlackDispatcher) -> None:
    resp = await dispatcher.handle(body="payload=%7Bbroken", headers={})

    assert (resp.status_code, resp.body) == (500, "")


@pytest.mark.asyncio
async def test_control_plane_failure_maps_to_500(
    dispatcher: SlackDispatcher, control_plane: FakeControlPlane, chat: FakeChat
) -> None:
    async def _boom() -> list[str]:
        raise ControlPlaneError("denied", operation="ListClusters", code="AccessDeniedException")

    control_plane.list_clusters = _boom  # type: ignore[method-assign]

    resp = await dispatcher.handle(body=_mention("<@UBOT>"), headers={})

    assert (resp.status_code, resp.body) == (500, "")
    assert chat.posts == []


@pytest.mark.asyncio
async def test_decryption_failure_is_fatal(
    control_plane: FakeControlPlane, catalog: RevisionCatalog, fleet: FakeFleet
) -> None:
    dispatcher = SlackDispatcher(
        settings=Settings(env="test", secrets_encrypted=True, verification_token=""),
        control_plane=control_plane,
        catalog=catalog,
        fleet=fleet,
        secrets=SecretDecryptor(kms=None, encrypted=True),
    )
    body = json.dumps({"token": "", "type": "url_verification", "challenge": "abc"})

    resp = await dispatcher.handle(body=body, headers={})

    assert (resp.status_code, resp.body) == (500, "")


@pytest.mark.asyncio
async def test_signed_requests_are_checked_when_secret_configured(
    settings: Settings, control_plane: FakeControlPlane, catalog: RevisionCatalog, fleet: FakeFleet
) -> None:
    secret = "signing-secret"
    dispatcher = SlackDispatcher(
        settings=settings.model_copy(update={"signing_secret": secret}),
        control_plane=control_plane,
        catalog=catalog,
        fleet=fleet,
        secrets=SecretDecryptor(kms=None, encrypted=False),
    )
    body = json.dumps({"token": VERIFICATION_TOKEN, "type": "url_verification", "challenge": "ok"})
    timestamp = str(int(time.time()))
    signature = SignatureVerifier(secret).generate_signature(timestamp=timestamp, body=body)

    good = await dispatcher.handle(
        body=body,
        headers={"x-slack-request-timestamp": timestamp, "x-slack-signature": signature},
    )
    stale = await dispatcher.handle(
        body=body,
        headers={
            "x-slack-request-timestamp": str(int(time.time()) - 3600),
            "x-slack-signature": signature,
        },
    )
    unsigned = await dispatcher.handle(body=body, headers={})

    assert (good.status_code, good.body) == (200, "ok")
    assert stale.status_code == 401
    assert unsigned.status_code == 401
