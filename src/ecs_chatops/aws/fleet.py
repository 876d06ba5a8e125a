"""
ecs_chatops.aws.fleet

EC2 inventory lookup behind the one-argument mention command.

Responsibilities:
- Find running instances whose `Name` tag starts with a prefix, sorted by name.
"""

from __future__ import annotations

import asyncio
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ecs_chatops.errors import ControlPlaneError
from ecs_chatops.observability.logging import get_logger
from ecs_chatops.workflow.state import InstanceInfo

log = get_logger(__name__)


class FleetInventory:
    def __init__(self, *, ec2: Any) -> None:
        self._ec2 = ec2

    async def filter_instances(self, prefix: str) -> list[InstanceInfo]:
        try:
            reservations = await asyncio.to_thread(self._running_reservations)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", "Unknown"))
            log.error("ec2_client_error", operation="DescribeInstances", code=code, message=str(e))
            raise ControlPlaneError(str(e), operation="DescribeInstances", code=code) from e
        except BotoCoreError as e:
            log.error("ec2_transport_error", operation="DescribeInstances", error=str(e))
            raise ControlPlaneError(
                str(e), operation="DescribeInstances", code=type(e).__name__
            ) from e

        instances: list[InstanceInfo] = []
        for reservation in reservations:
            for inst in reservation.get("Instances", []):
                name = _name_tag(inst)
                if name is not None and name.startswith(prefix):
                    instances.append(InstanceInfo(name=name, instance_id=inst["InstanceId"]))
        return sorted(instances, key=lambda i: i.name)

    def _running_reservations(self) -> list[dict[str, Any]]:
        paginator = self._ec2.get_paginator("describe_instances")
        pages = paginator.paginate(
            Filters=[{"Name": "instance-state-name", "Values": ["running"]}]
        )
        return [r for page in pages for r in page.get("Reservations", [])]


def _name_tag(instance: dict[str, Any]) -> str | None:
    for tag in instance.get("Tags", []):
        if tag.get("Key") == "Name":
            return tag.get("Value", "")
    return None
