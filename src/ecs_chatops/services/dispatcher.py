"""
ecs_chatops.services.dispatcher

Single inbound dispatch point for every Slack request.

Responsibilities:
- Verify the request (signature, verification token).
- Route interaction callbacks to the workflow and Events API deliveries to mentions.
- Resolve secrets per invocation and build the per-invocation chat client.
- Map every failure to the response contract (200 / 401 / 500) and log it.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from urllib.parse import parse_qs

from ecs_chatops.aws.clients import AwsClients, build_clients
from ecs_chatops.aws.control_plane import ControlPlaneClient
from ecs_chatops.aws.fleet import FleetInventory
from ecs_chatops.aws.secrets import SecretDecryptor
from ecs_chatops.chat.client import ChatClient
from ecs_chatops.chat.events import URL_VERIFICATION, parse_envelope
from ecs_chatops.chat.verification import RequestVerifier, verify_token
from ecs_chatops.errors import (
    ChatOpsError,
    ControlPlaneError,
    MalformedPayloadError,
    VerificationError,
)
from ecs_chatops.observability.logging import get_logger
from ecs_chatops.services import responses
from ecs_chatops.services.mentions import Fleet, MentionCommands
from ecs_chatops.services.responses import HandlerResponse
from ecs_chatops.settings import Settings
from ecs_chatops.workflow import codec
from ecs_chatops.workflow.catalog import RevisionCatalog
from ecs_chatops.workflow.machine import ControlPlane, WorkflowStateMachine

log = get_logger(__name__)

INTERACTION_PREFIX = "payload="

ChatFactory = Callable[[str], ChatClient]


class SlackDispatcher:
    def __init__(
        self,
        *,
        settings: Settings,
        control_plane: ControlPlane,
        catalog: RevisionCatalog,
        fleet: Fleet,
        secrets: SecretDecryptor,
        chat_factory: ChatFactory | None = None,
    ) -> None:
        self._settings = settings
        self._secrets = secrets
        self._verifier = RequestVerifier(signing_secret=settings.signing_secret)
        self._machine = WorkflowStateMachine(control_plane=control_plane, catalog=catalog)
        self._mentions = MentionCommands(machine=self._machine, fleet=fleet, region=settings.region)
        self._chat_factory = chat_factory or self._default_chat

    async def handle(self, *, body: str, headers: Mapping[str, str]) -> HandlerResponse:
        try:
            self._verifier.verify_signature(body, headers)
            if body.startswith(INTERACTION_PREFIX):
                return await self._handle_interaction(body)
            return await self._handle_event(body, headers)
        except VerificationError as e:
            log.warning("request_rejected", reason=str(e))
            return responses.empty(401)
        except ControlPlaneError as e:
            log.error(
                "invocation_failed", kind=e.kind, operation=e.operation, code=e.code, error=str(e)
            )
            return responses.empty(500)
        except ChatOpsError as e:
            log.error("invocation_failed", kind=e.kind, error=str(e))
            return responses.empty(500)
        except Exception:
            log.exception("invocation_failed", kind="unexpected")
            return responses.empty(500)

    async def _handle_interaction(self, body: str) -> HandlerResponse:
        raw = parse_qs(body).get("payload")
        if not raw:
            raise MalformedPayloadError("form body has no payload field")
        interaction = codec.parse_interaction(raw[0])
        verify_token(expected=await self._verification_token(), presented=interaction.token)

        log.info("interaction_received", action=interaction.action_name, user=interaction.user_name)
        message = await self._machine.advance(interaction)
        if message is None:
            return responses.empty(200)
        return responses.json_message(message)

    async def _handle_event(self, body: str, headers: Mapping[str, str]) -> HandlerResponse:
        envelope = parse_envelope(body)
        verify_token(expected=await self._verification_token(), presented=envelope.token)

        if envelope.type == URL_VERIFICATION:
            return responses.plain_text(envelope.challenge)

        if _retry_num(headers) is not None:
            # Redelivery of an event whose first delivery owns the post.
            log.info("event_retry_acknowledged", event_id=envelope.event_id)
            return responses.empty(200)

        mention = envelope.mention
        if mention is None:
            log.info("event_ignored", type=envelope.type)
            return responses.empty(200)

        bot_token = await self._secrets.decrypt(
            self._settings.bot_user_oauth_token, name="bot_user_oauth_token"
        )
        await self._mentions.handle(mention, chat=self._chat_factory(bot_token))
        return responses.empty(200)

    async def _verification_token(self) -> str:
        return await self._secrets.decrypt(
            self._settings.verification_token, name="verification_token"
        )

    def _default_chat(self, token: str) -> ChatClient:
        return ChatClient(token=token, base_url=self._settings.slack_api_base_url)


def _retry_num(headers: Mapping[str, str]) -> str | None:
    for key, value in headers.items():
        if key.lower() == "x-slack-retry-num":
            return value
    return None


def build_dispatcher(settings: Settings, *, clients: AwsClients | None = None) -> SlackDispatcher:
    """
    Composition root: one set of boto3 clients per process, shared by every invocation.
    """

    clients = clients or build_clients(settings)
    control_plane = ControlPlaneClient(ecs=clients.ecs)
    return SlackDispatcher(
        settings=settings,
        control_plane=control_plane,
        catalog=RevisionCatalog(
            source=control_plane,
            cluster_suffix=settings.cluster_suffix,
            delimiter=settings.task_family_delimiter,
        ),
        fleet=FleetInventory(ec2=clients.ec2),
        secrets=SecretDecryptor(kms=clients.kms, encrypted=settings.secrets_encrypted),
    )


# --- Module Notes -----------------------------------------------------------
# Nothing is persisted between invocations: the workflow's context arrives inside the
# interaction payload and leaves inside the returned message.
