"""BuildAggregator: joins every repository with its latest build.

One aggregation cycle = fetch repositories, fetch each repository's builds
concurrently, reduce each to its latest build, join back in repository order.
"""

import asyncio

import structlog

from cicd_dashboard.core.exceptions import AggregationError, TransportError
from cicd_dashboard.domain.latest_build import reduce_latest
from cicd_dashboard.integrations.gateway import BuildGateway
from cicd_dashboard.schemas.builds import Build, LatestBuildView, Repository

logger = structlog.get_logger(__name__)


class BuildAggregator:
    """Service layer for the per-repository latest-build view.

    Only the repository-list fetch can fail a cycle. Build-fetch failures are
    absorbed per repository (latest_build=None).
    """

    def __init__(self, gateway: BuildGateway):
        self.gateway = gateway

    async def aggregate(self) -> list[LatestBuildView]:
        """Run one aggregation cycle.

        Returns:
            One LatestBuildView per repository, in the order the backend
            listed the repositories.

        Raises:
            AggregationError: If the repository list cannot be fetched
        """
        try:
            repositories = await self.gateway.list_repositories()
        except TransportError as e:
            logger.warning("repository_list_fetch_failed", error=str(e), status_code=e.status_code)
            raise AggregationError(e) from e

        if not repositories:
            return []

        latest_builds = await asyncio.gather(
            *(self._latest_build_for(repository) for repository in repositories)
        )

        views = [
            LatestBuildView(repository=repository, latest_build=latest)
            for repository, latest in zip(repositories, latest_builds)
        ]

        logger.debug(
            "aggregation_complete",
            repositories=len(views),
            without_builds=sum(1 for view in views if view.latest_build is None),
        )
        return views

    async def _latest_build_for(self, repository: Repository) -> Build | None:
        """Fetch and reduce one repository's builds; any failure becomes None."""
        try:
            return reduce_latest(await self.gateway.list_builds(repository.id))
        except TransportError as e:
            logger.warning(
                "build_fetch_failed",
                repository_id=repository.id,
                repository=repository.name,
                error=str(e),
                status_code=e.status_code,
            )
        except Exception as e:
            logger.error(
                "build_fetch_unexpected_error",
                repository_id=repository.id,
                repository=repository.name,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
        return None
