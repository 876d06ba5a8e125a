"""
tests.conftest

Shared fakes and builders for workflow/dispatcher tests.

Responsibilities:
- In-memory control plane, fleet and chat client that record their calls.
- Builders for Slack interaction payloads that carry a rendered message back in.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import urlencode

import pytest

from ecs_chatops.aws.secrets import SecretDecryptor
from ecs_chatops.services.dispatcher import SlackDispatcher
from ecs_chatops.settings import Settings
from ecs_chatops.workflow import codec
from ecs_chatops.workflow.catalog import RevisionCatalog
from ecs_chatops.workflow.machine import WorkflowStateMachine
from ecs_chatops.workflow.state import InstanceInfo, Revision

VERIFICATION_TOKEN = "verif-token"


class FakeControlPlane:
    def __init__(self) -> None:
        self.clusters = ["stg-cluster", "prod-cluster"]
        self.services = {"stg-cluster": ["web", "api"], "prod-cluster": ["web"]}
        self.revisions = [
            Revision(task_family="stg-web-worker", revision_number=12, content_tag="ffff111"),
            Revision(task_family="stg-web", revision_number=10, content_tag="bbbb222"),
            Revision(task_family="stg-web", revision_number=9, content_tag="aaaa111"),
            Revision(task_family="stg-web", revision_number=7, content_tag="9c0ffee"),
        ]
        self.calls: list[tuple[Any, ...]] = []
        self.updates: list[tuple[str, str, str]] = []

    async def list_clusters(self) -> list[str]:
        self.calls.append(("list_clusters",))
        return list(self.clusters)

    async def list_services(self, cluster_name: str) -> list[str]:
        self.calls.append(("list_services", cluster_name))
        return list(self.services.get(cluster_name, []))

    async def list_revisions(self, family_prefix: str) -> list[Revision]:
        self.calls.append(("list_revisions", family_prefix))
        return [r for r in self.revisions if r.task_family.startswith(family_prefix)]

    async def trigger_update(
        self, cluster_name: str, service_name: str, revision_identifier: str
    ) -> None:
        self.calls.append(("trigger_update", cluster_name, service_name, revision_identifier))
        self.updates.append((cluster_name, service_name, revision_identifier))


class FakeFleet:
    def __init__(self, instances: list[InstanceInfo] | None = None) -> None:
        self.instances = instances or []
        self.prefixes: list[str] = []

    async def filter_instances(self, prefix: str) -> list[InstanceInfo]:
        self.prefixes.append(prefix)
        return sorted(
            (i for i in self.instances if i.name.startswith(prefix)), key=lambda i: i.name
        )


class FakeChat:
    def __init__(self) -> None:
        self.posts: list[dict[str, Any]] = []
        self.tokens: list[str] = []

    async def post_message(
        self,
        *,
        channel: str,
        text: str | None = None,
        attachments: list[dict[str, Any]] | None = None,
    ) -> None:
        self.posts.append({"channel": channel, "text": text, "attachments": attachments})


@pytest.fixture
def control_plane() -> FakeControlPlane:
    return FakeControlPlane()


@pytest.fixture
def catalog(control_plane: FakeControlPlane) -> RevisionCatalog:
    return RevisionCatalog(source=control_plane)


@pytest.fixture
def machine(control_plane: FakeControlPlane, catalog: RevisionCatalog) -> WorkflowStateMachine:
    return WorkflowStateMachine(control_plane=control_plane, catalog=catalog)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        env="test",
        region="ap-northeast-1",
        secrets_encrypted=False,
        verification_token=VERIFICATION_TOKEN,
        bot_user_oauth_token="xoxb-test",
    )


@pytest.fixture
def fleet() -> FakeFleet:
    return FakeFleet(
        [
            InstanceInfo(name="web-2", instance_id="i-0002"),
            InstanceInfo(name="web-1", instance_id="i-0001"),
            InstanceInfo(name="batch-1", instance_id="i-0003"),
        ]
    )


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def dispatcher(
    settings: Settings,
    control_plane: FakeControlPlane,
    catalog: RevisionCatalog,
    fleet: FakeFleet,
    chat: FakeChat,
) -> SlackDispatcher:
    def _chat_factory(token: str) -> FakeChat:
        chat.tokens.append(token)
        return chat

    return SlackDispatcher(
        settings=settings,
        control_plane=control_plane,
        catalog=catalog,
        fleet=fleet,
        secrets=SecretDecryptor(kms=None, encrypted=False),
        chat_factory=_chat_factory,  # type: ignore[arg-type]
    )


def posted_message(attachment: dict[str, Any]) -> dict[str, Any]:
    """
    What Slack hands back as `original_message` for a message we posted.
    """

    return {
        "type": "message",
        "subtype": "bot_message",
        "text": "",
        "ts": "1700000000.000100",
        "attachments": [{"id": 1, "fallback": "fallback", **attachment}],
    }


def interaction_payload(
    message: dict[str, Any],
    action: str,
    *,
    selected: str | None = None,
    value: str = "",
    user: str = "alice",
    token: str = VERIFICATION_TOKEN,
) -> dict[str, Any]:
    act: dict[str, Any] = {"name": action, "type": "select" if selected is not None else "button"}
    if selected is not None:
        act["selected_options"] = [{"value": selected}]
    if value:
        act["value"] = value
    return {
        "type": "interactive_message",
        "token": token,
        "callback_id": message["attachments"][0].get("callback_id", ""),
        "actions": [act],
        "user": {"id": "U123", "name": user},
        "channel": {"id": "C123", "name": "deploys"},
        "action_ts": "1700000001.000200",
        "original_message": message,
    }


def interaction(message: dict[str, Any], action: str, **kwargs: Any) -> codec.Interaction:
    return codec.parse_interaction(json.dumps(interaction_payload(message, action, **kwargs)))


def interaction_body(message: dict[str, Any], action: str, **kwargs: Any) -> str:
    return urlencode({"payload": json.dumps(interaction_payload(message, action, **kwargs))})
