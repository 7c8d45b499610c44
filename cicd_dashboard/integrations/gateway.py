"""BuildGateway Protocol: the seam between the refresh pipeline and the network.

BuildApiClient is the production implementation. The aggregator and the
refresh scheduler only depend on this protocol, so tests drive them with
in-memory doubles.
"""

from typing import Protocol, runtime_checkable

from cicd_dashboard.schemas.builds import Build, Repository, SyncResponse


@runtime_checkable
class BuildGateway(Protocol):
    """The four backend operations the dashboard pipeline needs.

    Every method resolves with typed data or raises TransportError.
    """

    async def list_repositories(self) -> list[Repository]:
        ...

    async def list_builds(self, repository_id: int) -> list[Build]:
        ...

    async def trigger_sync(self, owner: str, repo: str, repository_id: int) -> SyncResponse:
        ...

    async def trigger_scheduled_sync(self) -> dict:
        ...
