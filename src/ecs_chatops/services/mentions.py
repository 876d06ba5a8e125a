"""
ecs_chatops.services.mentions

Direct-mention commands.

Responsibilities:
- `@bot` starts the deployment workflow by posting the cluster menu.
- `@bot <prefix>` lists running EC2 instances whose Name starts with the prefix.
- Anything else posts the usage text.
"""

from __future__ import annotations

from typing import Protocol

from ecs_chatops.chat.client import ChatClient
from ecs_chatops.chat.events import InnerEvent, mention_args
from ecs_chatops.observability.logging import get_logger
from ecs_chatops.workflow import codec
from ecs_chatops.workflow.machine import WorkflowStateMachine
from ecs_chatops.workflow.state import InstanceInfo

log = get_logger(__name__)

HELP_TEXT = (
    "```\n"
    "# Usage\n"
    "@<bot-user-name> : ECS deploy interactive menu\n"
    "@<bot-user-name> <instance name prefix> : Return instance Ids\n"
    "```\n"
)


class Fleet(Protocol):
    async def filter_instances(self, prefix: str) -> list[InstanceInfo]: ...


class MentionCommands:
    def __init__(self, *, machine: WorkflowStateMachine, fleet: Fleet, region: str) -> None:
        self._machine = machine
        self._fleet = fleet
        self._region = region

    async def handle(self, event: InnerEvent, *, chat: ChatClient) -> None:
        args = mention_args(event.text)
        log.info("mention_received", channel=event.channel, args=args)

        if not args:
            menu = await self._machine.start()
            await chat.post_message(channel=event.channel, attachments=[menu])
        elif len(args) == 1 and args[0] != "help":
            instances = await self._fleet.filter_instances(args[0])
            log.info("instances_found", prefix=args[0], count=len(instances))
            await chat.post_message(
                channel=event.channel,
                attachments=[codec.instance_list(instances, region=self._region)],
            )
        else:
            await chat.post_message(channel=event.channel, text=HELP_TEXT)
