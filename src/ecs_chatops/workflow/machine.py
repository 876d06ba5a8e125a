from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from ecs_chatops.errors import InvalidStateError
from ecs_chatops.observability.logging import get_logger
from ecs_chatops.workflow import codec
from ecs_chatops.workflow.catalog import RevisionCatalog
from ecs_chatops.workflow.codec import Interaction, Option, RevisionChoice, StepToken
from ecs_chatops.workflow.state import Action, WorkflowStep

log = get_logger(__name__)

Message = dict[str, Any]


class ControlPlane(Protocol):
    async def list_clusters(self) -> list[str]: ...

    async def list_services(self, cluster_name: str) -> list[str]: ...

    async def trigger_update(
        self, cluster_name: str, service_name: str, revision_identifier: str
    ) -> None: ...


class WorkflowStateMachine:
    """
    Stateless driver of the cluster -> service -> revision -> confirmation flow.

    Every call reconstructs its context from the inbound interaction alone; the returned
    message carries the context the next call will need.
    """

    def __init__(self, *, control_plane: ControlPlane, catalog: RevisionCatalog) -> None:
        self._control_plane = control_plane
        self._catalog = catalog
        self._handlers: dict[Action, Callable[[Interaction], Awaitable[Message]]] = {
            Action.CANCEL: self._cancel,
            Action.CLUSTERS: self._cluster_selected,
            Action.SERVICES: self._service_selected,
            Action.IMAGE_TAGS: self._revision_selected,
            Action.TASK_START: self._start_deploy,
        }

    async def start(self) -> Message:
        clusters = await self._control_plane.list_clusters()
        log.info("workflow_started", clusters=len(clusters))
        return codec.cluster_menu(clusters)

    async def advance(self, interaction: Interaction) -> Message | None:
        """
        Returns the replacement message, or None when the action is not one of ours.
        """

        handler = self._handlers.get(interaction.action)
        if handler is None:
            log.info("workflow_noop", action=interaction.action_name)
            return None
        return await handler(interaction)

    async def _cancel(self, interaction: Interaction) -> Message:
        log.info("workflow_cancelled", user=interaction.user_name)
        return codec.render_cancelled(interaction.original_message, user_name=interaction.user_name)

    async def _cluster_selected(self, interaction: Interaction) -> Message:
        _expect(interaction, WorkflowStep.CLUSTER_SELECTION)
        cluster = interaction.require_selection()

        services = await self._control_plane.list_services(cluster)
        log.info("cluster_selected", cluster=cluster, services=len(services))
        return codec.render_update(
            interaction.original_message,
            text=f"Choose ECS Service in {cluster}",
            actions=[
                codec.select_menu(Action.SERVICES, [Option(text=s, value=s) for s in services]),
                codec.cancel_button(),
            ],
            token=StepToken(step=WorkflowStep.SERVICE_SELECTION, cluster_name=cluster),
        )

    async def _service_selected(self, interaction: Interaction) -> Message:
        token = _expect(interaction, WorkflowStep.SERVICE_SELECTION)
        service = interaction.require_selection()
        # Fails on a cluster without the naming marker before any control-plane call.
        unit = self._catalog.unit_for(token.cluster_name, service)

        revisions = await self._catalog.list_revisions(unit)
        log.info(
            "service_selected",
            cluster=unit.cluster_name,
            task_family=unit.task_family_name,
            revisions=len(revisions),
        )
        options = [
            Option(
                text=f"{r.identifier} | {r.content_tag}",
                value=RevisionChoice(r.identifier, service).serialize(),
            )
            for r in revisions
        ]
        return codec.render_update(
            interaction.original_message,
            text="Choose image tag (commit hash)",
            actions=[codec.select_menu(Action.IMAGE_TAGS, options), codec.cancel_button()],
            token=StepToken(step=WorkflowStep.REVISION_SELECTION, cluster_name=token.cluster_name),
        )

    async def _revision_selected(self, interaction: Interaction) -> Message:
        token = _expect(interaction, WorkflowStep.REVISION_SELECTION)
        raw = interaction.require_selection()
        choice = RevisionChoice.parse(raw)

        log.info(
            "revision_selected", cluster=token.cluster_name, revision=choice.revision_identifier
        )
        return codec.render_update(
            interaction.original_message,
            text=f"Deploy {choice.revision_identifier}?",
            actions=[
                codec.button(Action.TASK_START, "Start", style="primary", value=raw),
                codec.cancel_button(),
            ],
            token=StepToken(step=WorkflowStep.CONFIRMATION, cluster_name=token.cluster_name),
        )

    async def _start_deploy(self, interaction: Interaction) -> Message:
        token = _expect(interaction, WorkflowStep.CONFIRMATION)
        choice = RevisionChoice.parse(interaction.require_value())
        unit = self._catalog.unit_for(token.cluster_name, choice.service_name)
        family, _, _ = choice.revision_identifier.rpartition(":")
        if family != unit.task_family_name:
            raise InvalidStateError(
                f"{choice.revision_identifier!r} is not a revision of {unit.task_family_name!r}"
            )

        await self._control_plane.trigger_update(
            token.cluster_name, choice.service_name, choice.revision_identifier
        )
        log.info(
            "deploy_started",
            cluster=token.cluster_name,
            service=choice.service_name,
            revision=choice.revision_identifier,
            user=interaction.user_name,
        )
        return codec.render_update(
            interaction.original_message,
            actions=[],
            fields=[codec.field(f"@{interaction.user_name} started deploy.")],
            color=codec.COLOR_STARTED,
            token=StepToken(step=WorkflowStep.STARTED, cluster_name=token.cluster_name),
        )


def _expect(interaction: Interaction, step: WorkflowStep) -> StepToken:
    token = interaction.step_token()
    if token.step.is_terminal:
        raise InvalidStateError(
            f"{interaction.action_name} received after workflow {token.step.value}"
        )
    if token.step is not step:
        raise InvalidStateError(
            f"{interaction.action_name} received at {token.step.value}, expected {step.value}"
        )
    return token
