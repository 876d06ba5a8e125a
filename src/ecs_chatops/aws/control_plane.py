"""
ecs_chatops.aws.control_plane

ECS control-plane boundary.

Responsibilities:
- List clusters and services as bare names.
- List task-definition revisions of a family prefix with their image tags, newest first.
- Trigger `UpdateService` with a chosen task-definition revision.
- Translate botocore failures into `ControlPlaneError` and log the ECS error code.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from ecs_chatops.errors import ControlPlaneError
from ecs_chatops.observability.logging import get_logger
from ecs_chatops.workflow.state import Revision

log = get_logger(__name__)

T = TypeVar("T")


def bare_name(identifier: str) -> str:
    """
    ``arn:aws:ecs:...:cluster/foo`` -> ``foo``. Names without a path are returned as is.
    """

    return identifier.rsplit("/", 1)[-1]


def image_tag(image: str) -> str:
    """
    Content tag of a container image reference.

    ``123.dkr.ecr.../app:3f2c1ab`` -> ``3f2c1ab``; a registry port is not a tag, an
    untagged image is ``latest`` and a digest-pinned image yields its digest.
    """

    if "@" in image:
        return image.rsplit("@", 1)[1]
    last_segment = image.rsplit("/", 1)[-1]
    if ":" not in last_segment:
        return "latest"
    return last_segment.rsplit(":", 1)[1]


def parse_task_definition(identifier: str) -> tuple[str, int]:
    """
    ``arn:...:task-definition/stg-web:7`` (or ``stg-web:7``) -> ``("stg-web", 7)``.
    """

    family, sep, revision = bare_name(identifier).rpartition(":")
    if not sep or not family or not revision.isdigit():
        raise ControlPlaneError(
            f"unexpected task definition identifier: {identifier!r}",
            operation="ListTaskDefinitions",
            code="UnexpectedIdentifier",
        )
    return family, int(revision)


class ControlPlaneClient:
    """
    Async facade over a boto3 ECS client.

    boto3 is blocking, so each call runs in a worker thread. The client is injected so a
    single process-scoped handle can be shared across invocations.
    """

    def __init__(self, *, ecs: Any) -> None:
        self._ecs = ecs

    async def list_clusters(self) -> list[str]:
        arns = await self._call("ListClusters", self._paginate, "list_clusters", "clusterArns")
        return [bare_name(a) for a in arns]

    async def list_services(self, cluster_name: str) -> list[str]:
        arns = await self._call(
            "ListServices", self._paginate, "list_services", "serviceArns", cluster=cluster_name
        )
        return [bare_name(a) for a in arns]

    async def list_revisions(self, family_prefix: str) -> list[Revision]:
        arns = await self._call(
            "ListTaskDefinitions",
            self._paginate,
            "list_task_definitions",
            "taskDefinitionArns",
            familyPrefix=family_prefix,
            status="ACTIVE",
        )
        # Describes are independent of each other; gather fails as a whole on the first error.
        revisions = await asyncio.gather(*(self._describe_revision(a) for a in arns))
        return sorted(revisions, key=lambda r: (-r.revision_number, r.task_family))

    async def trigger_update(
        self, cluster_name: str, service_name: str, revision_identifier: str
    ) -> None:
        result = await self._call(
            "UpdateService",
            self._ecs.update_service,
            cluster=cluster_name,
            service=service_name,
            taskDefinition=revision_identifier,
        )
        service = result.get("service", {})
        log.info(
            "ecs_update_service",
            cluster=cluster_name,
            service=service_name,
            task_definition=service.get("taskDefinition", revision_identifier),
            deployments=len(service.get("deployments", [])),
        )

    async def _describe_revision(self, arn: str) -> Revision:
        family, number = parse_task_definition(arn)
        result = await self._call(
            "DescribeTaskDefinition",
            self._ecs.describe_task_definition,
            taskDefinition=f"{family}:{number}",
        )
        containers = result.get("taskDefinition", {}).get("containerDefinitions", [])
        if not containers:
            raise ControlPlaneError(
                f"task definition {family}:{number} has no containers",
                operation="DescribeTaskDefinition",
                code="NoContainerDefinitions",
            )
        # The first container is the application container by convention.
        return Revision(
            task_family=family,
            revision_number=number,
            content_tag=image_tag(containers[0]["image"]),
        )

    def _paginate(self, operation: str, key: str, **kwargs: Any) -> list[str]:
        items: list[str] = []
        for page in self._ecs.get_paginator(operation).paginate(**kwargs):
            items.extend(page.get(key, []))
        return items

    async def _call(self, operation: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except ClientError as e:
            err = e.response.get("Error", {})
            code = str(err.get("Code", "Unknown"))
            message = str(err.get("Message", e))
            log.error("ecs_client_error", operation=operation, code=code, message=message)
            raise ControlPlaneError(message, operation=operation, code=code) from e
        except BotoCoreError as e:
            log.error("ecs_transport_error", operation=operation, error=str(e))
            raise ControlPlaneError(str(e), operation=operation, code=type(e).__name__) from e


# --- Module Notes -----------------------------------------------------------
# ECS error codes seen here include ServerException, ClientException,
# InvalidParameterException, ClusterNotFoundException, ServiceNotFoundException,
# ServiceNotActiveException, PlatformUnknownException,
# PlatformTaskDefinitionIncompatibilityException and AccessDeniedException. They are logged
# verbatim and never echoed to the chat user.
