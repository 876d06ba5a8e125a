"""
ecs_chatops.workflow.state

Value types shared by the deployment workflow.

Responsibilities:
- Enumerate the fixed workflow steps and the recognized interactive actions.
- Define the revision / deployable-unit views built fresh from the control plane.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class WorkflowStep(str, Enum):
    CLUSTER_SELECTION = "cluster-selection"
    SERVICE_SELECTION = "service-selection"
    REVISION_SELECTION = "revision-selection"
    CONFIRMATION = "confirmation"
    CANCELLED = "cancelled"
    STARTED = "started"

    @property
    def is_terminal(self) -> bool:
        return self in (WorkflowStep.CANCELLED, WorkflowStep.STARTED)


class Action(str, Enum):
    """
    Names of the interactive controls rendered by the workflow.

    Any other name maps to `UNRECOGNIZED` instead of raising, so callbacks that are not ours
    (or that arrive after the message changed) fall through to a no-op.
    """

    CLUSTERS = "clusters"
    SERVICES = "services"
    IMAGE_TAGS = "imgTags"
    TASK_START = "taskStart"
    CANCEL = "cancel"
    UNRECOGNIZED = ""

    @classmethod
    def _missing_(cls, value: object) -> Action:
        return cls.UNRECOGNIZED


@dataclass(frozen=True, slots=True)
class DeployableUnit:
    cluster_name: str
    task_family_name: str


@dataclass(frozen=True, slots=True)
class Revision:
    """
    One numbered task definition of a family.

    `revision_number` is an int from the moment it leaves the control plane; the string
    form only exists inside `identifier`.
    """

    task_family: str
    revision_number: int
    content_tag: str

    @property
    def identifier(self) -> str:
        return f"{self.task_family}:{self.revision_number}"


@dataclass(frozen=True, slots=True)
class InstanceInfo:
    name: str
    instance_id: str


# --- Module Notes -----------------------------------------------------------
# None of these types are persisted; they are rebuilt on every inbound event.
