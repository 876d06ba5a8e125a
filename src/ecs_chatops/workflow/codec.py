"""
ecs_chatops.workflow.codec

Encoding of workflow state into (and out of) Slack interactive messages.

Responsibilities:
- Serialize/parse the step token carried in an attachment's `callback_id`.
- Serialize/parse the `revision/service` composite carried in option and button values.
- Render attachments, select menus, buttons and fields in Slack's legacy attachment shape.
- Parse an inbound interaction callback into a typed `Interaction`.

All delimiter conventions live in this module.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ecs_chatops.errors import InvalidStateError, MalformedPayloadError
from ecs_chatops.workflow.state import Action, InstanceInfo, WorkflowStep

TOKEN_PREFIX = "ecsdeploy"
TOKEN_VERSION = "v1"
TOKEN_DELIMITER = "|"
CHOICE_DELIMITER = "/"

COLOR_PROMPT = "#ff8c00"
COLOR_CANCELLED = "#808080"
COLOR_STARTED = "#0174DF"


@dataclass(frozen=True, slots=True)
class StepToken:
    """
    Workflow context smuggled through the attachment `callback_id`.

    Wire form: ``ecsdeploy|v1|<step>|<cluster>``. The cluster is empty only while the
    cluster itself is being chosen.
    """

    step: WorkflowStep
    cluster_name: str = ""

    def serialize(self) -> str:
        if TOKEN_DELIMITER in self.cluster_name:
            raise InvalidStateError(f"cluster name contains {TOKEN_DELIMITER!r}")
        return TOKEN_DELIMITER.join(
            [TOKEN_PREFIX, TOKEN_VERSION, self.step.value, self.cluster_name]
        )

    @classmethod
    def parse(cls, raw: str) -> StepToken:
        parts = raw.split(TOKEN_DELIMITER)
        if len(parts) != 4 or parts[0] != TOKEN_PREFIX:
            raise InvalidStateError(f"unrecognized step token: {raw!r}")
        _, version, step_raw, cluster = parts
        if version != TOKEN_VERSION:
            raise InvalidStateError(f"unsupported step token version: {version!r}")
        try:
            step = WorkflowStep(step_raw)
        except ValueError as e:
            raise InvalidStateError(f"unknown workflow step: {step_raw!r}") from e
        if not cluster and step is not WorkflowStep.CLUSTER_SELECTION:
            raise InvalidStateError(f"step token for {step.value} carries no cluster")
        return cls(step=step, cluster_name=cluster)


@dataclass(frozen=True, slots=True)
class RevisionChoice:
    """
    Option/button value chosen at revision selection: ``<family>:<rev>/<service>``.
    """

    revision_identifier: str
    service_name: str

    def serialize(self) -> str:
        for part in (self.revision_identifier, self.service_name):
            if CHOICE_DELIMITER in part:
                raise InvalidStateError(f"{part!r} contains {CHOICE_DELIMITER!r}")
        return f"{self.revision_identifier}{CHOICE_DELIMITER}{self.service_name}"

    @classmethod
    def parse(cls, raw: str) -> RevisionChoice:
        parts = raw.split(CHOICE_DELIMITER)
        if len(parts) != 2 or not all(parts):
            raise MalformedPayloadError(f"expected '<revision>/<service>', got {raw!r}")
        return cls(revision_identifier=parts[0], service_name=parts[1])


@dataclass(frozen=True, slots=True)
class Option:
    text: str
    value: str


# Inbound payload schema (only the fields we read; Slack sends many more).


class _PayloadOption(BaseModel):
    text: str = ""
    value: str


class _PayloadAction(BaseModel):
    name: str
    type: str = ""
    value: str = ""
    selected_options: list[_PayloadOption] = Field(default_factory=list)


class _PayloadUser(BaseModel):
    id: str = ""
    name: str


class _PayloadHead(BaseModel):
    token: str = ""
    actions: list[dict[str, Any]] = Field(default_factory=list)
    user: dict[str, Any] = Field(default_factory=dict)


class _InteractionPayload(BaseModel):
    type: str = ""
    token: str = ""
    callback_id: str = ""
    actions: list[_PayloadAction] = Field(min_length=1)
    user: _PayloadUser
    original_message: dict[str, Any]


@dataclass(frozen=True, slots=True)
class Interaction:
    action: Action
    action_name: str
    selected_value: str | None
    button_value: str
    identifier: str
    user_name: str
    token: str
    original_message: dict[str, Any]

    def require_selection(self) -> str:
        if not self.selected_value:
            raise MalformedPayloadError(f"{self.action_name}: no option selected")
        return self.selected_value

    def require_value(self) -> str:
        if not self.button_value:
            raise MalformedPayloadError(f"{self.action_name}: button carries no value")
        return self.button_value

    def step_token(self) -> StepToken:
        if not self.identifier:
            raise InvalidStateError("interaction carries no step token")
        return StepToken.parse(self.identifier)


def parse_interaction(raw: str) -> Interaction:
    """
    Decode an interactive-message callback.

    Only the token and the first action name are read before dispatch. Callbacks that are not
    ours (unknown names, `block_actions` controls keyed by `action_id`, no actions at all)
    come back as `Action.UNRECOGNIZED` without their shape being checked.
    """

    try:
        data = json.loads(raw)
        head = _PayloadHead.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise MalformedPayloadError(f"invalid interaction payload: {e}") from e

    first_raw = head.actions[0] if head.actions else {}
    name = first_raw.get("name")
    action = Action(name) if isinstance(name, str) else Action.UNRECOGNIZED
    if action is Action.UNRECOGNIZED:
        label = name if isinstance(name, str) else first_raw.get("action_id", "")
        return Interaction(
            action=action,
            action_name=str(label),
            selected_value=None,
            button_value="",
            identifier="",
            user_name=str(head.user.get("name") or head.user.get("username") or ""),
            token=head.token,
            original_message={},
        )

    try:
        payload = _InteractionPayload.model_validate(data)
    except ValidationError as e:
        raise MalformedPayloadError(f"invalid interaction payload: {e}") from e

    attachments = payload.original_message.get("attachments")
    if not isinstance(attachments, list) or not attachments:
        raise MalformedPayloadError("original message has no attachments to update")

    first = payload.actions[0]
    selected = first.selected_options[0].value if first.selected_options else None
    return Interaction(
        action=Action(first.name),
        action_name=first.name,
        selected_value=selected,
        button_value=first.value,
        identifier=payload.callback_id,
        user_name=payload.user.name,
        token=payload.token,
        original_message=payload.original_message,
    )


# Rendering


def select_menu(name: Action, options: list[Option]) -> dict[str, Any]:
    return {
        "name": name.value,
        "type": "select",
        "options": [{"text": o.text, "value": o.value} for o in options],
    }


def button(name: Action, text: str, *, style: str, value: str = "") -> dict[str, Any]:
    action: dict[str, Any] = {"name": name.value, "text": text, "type": "button", "style": style}
    if value:
        action["value"] = value
    return action


def cancel_button() -> dict[str, Any]:
    return button(Action.CANCEL, "Cancel", style="danger")


def field(title: str, value: str = "", *, short: bool = False) -> dict[str, Any]:
    return {"title": title, "value": value, "short": short}


def attachment(
    *,
    text: str = "",
    color: str = "",
    callback_id: str = "",
    actions: list[dict[str, Any]] | None = None,
    fields: list[dict[str, Any]] | None = None,
    pretext: str = "",
) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if pretext:
        out["pretext"] = pretext
    if text:
        out["text"] = text
    if color:
        out["color"] = color
    if callback_id:
        out["callback_id"] = callback_id
    if actions is not None:
        out["actions"] = actions
    if fields is not None:
        out["fields"] = fields
    return out


def render_update(
    original_message: dict[str, Any],
    *,
    actions: list[dict[str, Any]],
    fields: list[dict[str, Any]] | None = None,
    text: str = "",
    color: str = "",
    token: StepToken | None = None,
) -> dict[str, Any]:
    """
    Rewrite the first attachment of `original_message` for an in-place replacement.

    Empty `text`/`color` and a missing `token` keep the original values; actions and
    fields are always replaced. The input is not mutated.
    """

    message = copy.deepcopy(original_message)
    target = message["attachments"][0]
    if text:
        target["text"] = text
    if color:
        target["color"] = color
    if token is not None:
        target["callback_id"] = token.serialize()
    target["actions"] = actions
    target["fields"] = fields or []
    message["replace_original"] = True
    return message


def render_cancelled(original_message: dict[str, Any], *, user_name: str) -> dict[str, Any]:
    return render_update(
        original_message,
        actions=[],
        fields=[field(f"@{user_name} canceled.")],
        color=COLOR_CANCELLED,
    )


def cluster_menu(clusters: list[str]) -> dict[str, Any]:
    return attachment(
        text="Choose ECS Cluster",
        color=COLOR_PROMPT,
        callback_id=StepToken(step=WorkflowStep.CLUSTER_SELECTION).serialize(),
        actions=[
            select_menu(Action.CLUSTERS, [Option(text=c, value=c) for c in clusters]),
            cancel_button(),
        ],
    )


def instance_list(instances: list[InstanceInfo], *, region: str) -> dict[str, Any]:
    return attachment(
        pretext=f"*Instance ID List in {region}*",
        color=COLOR_STARTED,
        fields=[field(i.name, i.instance_id) for i in instances],
    )


def options_of(message: dict[str, Any], action_name: Action) -> list[Option]:
    """
    Read back the options of the named select menu from a rendered message or attachment.
    """

    attachments = message.get("attachments", [message])
    for att in attachments:
        for action in att.get("actions", []):
            if action.get("name") == action_name.value:
                return [Option(text=o["text"], value=o["value"]) for o in action.get("options", [])]
    return []


# --- Module Notes -----------------------------------------------------------
# Delimiters are never escaped. ECS cluster/service/family names are limited to letters,
# digits, hyphens and underscores, so `|` and `/` cannot collide; serialize() still refuses
# a component that contains one rather than emit an ambiguous token.
