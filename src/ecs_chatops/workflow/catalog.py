"""
ecs_chatops.workflow.catalog

Task-family naming policy.

Responsibilities:
- Derive the deployable unit (cluster + task family) from a cluster and service name.
- List the revisions of exactly that family, newest first.
"""

from __future__ import annotations

from typing import Protocol

from ecs_chatops.errors import InvalidStateError
from ecs_chatops.workflow.state import DeployableUnit, Revision


class RevisionSource(Protocol):
    async def list_revisions(self, family_prefix: str) -> list[Revision]: ...


class RevisionCatalog:
    """
    Clusters are named ``<env><cluster_suffix>`` and host task families named
    ``<env><delimiter><service>``; e.g. ``stg-cluster`` / ``web`` -> ``stg-web``.
    """

    def __init__(
        self,
        *,
        source: RevisionSource,
        cluster_suffix: str = "-cluster",
        delimiter: str = "-",
    ) -> None:
        self._source = source
        self._cluster_suffix = cluster_suffix
        self._delimiter = delimiter

    def has_cluster_marker(self, cluster_name: str) -> bool:
        return len(cluster_name) > len(self._cluster_suffix) and cluster_name.endswith(
            self._cluster_suffix
        )

    def unit_for(self, cluster_name: str, service_name: str) -> DeployableUnit:
        if not self.has_cluster_marker(cluster_name):
            raise InvalidStateError(
                f"cluster {cluster_name!r} does not end with {self._cluster_suffix!r}"
            )
        env_prefix = cluster_name[: -len(self._cluster_suffix)]
        return DeployableUnit(
            cluster_name=cluster_name,
            task_family_name=f"{env_prefix}{self._delimiter}{service_name}",
        )

    async def list_revisions(self, unit: DeployableUnit) -> list[Revision]:
        revisions = await self._source.list_revisions(unit.task_family_name)
        # The control plane matches by prefix; "stg-web" would also pull in "stg-web-worker".
        return [r for r in revisions if r.task_family == unit.task_family_name]
