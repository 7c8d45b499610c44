"""Build-tracking API integration: repositories, builds and sync triggers.

This module is the only place that talks to the backend over HTTP:
- Listing repositories and their builds
- Triggering a per-repository sync from the CI provider
- Triggering the backend's scheduled sync on demand

Every operation either returns typed models or raises TransportError.
There are no retries here; the refresh scheduler owns retry by re-polling.
"""

from typing import Any

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from cicd_dashboard.core.config import get_settings
from cicd_dashboard.core.exceptions import TransportError
from cicd_dashboard.schemas.builds import Build, BuildStatus, Repository, SyncResponse

logger = structlog.get_logger(__name__)

_REPOSITORY_LIST = TypeAdapter(list[Repository])
_BUILD_LIST = TypeAdapter(list[Build])


class BuildApiClient:
    """Async client for the build-tracking backend."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: API root, e.g. http://localhost:8080/api (defaults to settings)
            timeout: Transport timeout in seconds (defaults to settings)
            transport: Optional httpx transport, used by tests
        """
        settings = get_settings()
        self.base_url = (base_url or settings.build_api_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.request_timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "BuildApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        await self._client.aclose()

    async def _request(self, method: str, endpoint: str, data: dict | None = None) -> Any:
        """Make a request and return the decoded JSON body."""
        try:
            response = await self._client.request(method, endpoint, json=data)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Build API error ({e.response.status_code}) on {method} {endpoint}",
                cause=e,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"Build API unreachable on {method} {endpoint}: {type(e).__name__}",
                cause=e,
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Build API returned non-JSON body on {method} {endpoint}", cause=e) from e

    @staticmethod
    def _decode(adapter_or_model: Any, payload: Any, endpoint: str) -> Any:
        try:
            if isinstance(adapter_or_model, TypeAdapter):
                return adapter_or_model.validate_python(payload)
            return adapter_or_model.model_validate(payload)
        except ValidationError as e:
            logger.warning("build_api_invalid_payload", endpoint=endpoint, error_count=e.error_count())
            raise TransportError(f"Build API returned an invalid payload for {endpoint}", cause=e) from e

    # Repository operations

    async def list_repositories(self) -> list[Repository]:
        """List every tracked repository, in backend order."""
        payload = await self._request("GET", "/repositories")
        return self._decode(_REPOSITORY_LIST, payload, "/repositories")

    async def get_repository(self, repository_id: int) -> Repository:
        """Get a single repository."""
        endpoint = f"/repositories/{repository_id}"
        payload = await self._request("GET", endpoint)
        return self._decode(Repository, payload, endpoint)

    # Build operations

    async def list_builds(self, repository_id: int) -> list[Build]:
        """List the builds recorded for one repository."""
        endpoint = f"/builds/repository/{repository_id}"
        payload = await self._request("GET", endpoint)
        return self._decode(_BUILD_LIST, payload, endpoint)

    async def list_all_builds(self) -> list[Build]:
        """List builds across all repositories."""
        payload = await self._request("GET", "/builds")
        return self._decode(_BUILD_LIST, payload, "/builds")

    async def list_builds_by_status(self, status: BuildStatus) -> list[Build]:
        """List builds currently in the given status."""
        endpoint = f"/builds/status/{BuildStatus(status).value}"
        payload = await self._request("GET", endpoint)
        return self._decode(_BUILD_LIST, payload, endpoint)

    # Sync operations

    async def trigger_sync(self, owner: str, repo: str, repository_id: int) -> SyncResponse:
        """Ask the backend to pull fresh builds for one repository.

        Args:
            owner: Repository owner on the CI provider
            repo: Repository name on the CI provider
            repository_id: Backend id of the repository to attach builds to
        """
        payload = await self._request(
            "POST",
            "/builds/sync",
            data={"owner": owner, "repo": repo, "repositoryId": repository_id},
        )
        return self._decode(SyncResponse, payload, "/builds/sync")

    async def trigger_scheduled_sync(self) -> dict:
        """Run the backend's scheduled sync now. Returns its acknowledgement as-is."""
        payload = await self._request("POST", "/scheduler/trigger-sync", data={})
        return payload if isinstance(payload, dict) else {"response": payload}
