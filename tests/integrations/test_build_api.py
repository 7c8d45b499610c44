"""Tests for BuildApiClient against an in-process httpx transport.

Tests cover:
1. Decoding camelCase payloads (and the legacy githubUrl field) into models
2. Endpoint paths and request bodies for reads and sync triggers
3. HTTP errors, connection errors and invalid payloads -> TransportError
"""

import json
from datetime import timezone

import httpx
import pytest

from cicd_dashboard.core.exceptions import TransportError
from cicd_dashboard.integrations.build_api import BuildApiClient
from cicd_dashboard.integrations.gateway import BuildGateway
from cicd_dashboard.schemas.builds import BuildStatus

pytestmark = pytest.mark.unit

BASE_URL = "http://builds.test/api"

REPOSITORIES = [
    {"id": 1, "name": "payments", "githubUrl": "https://github.com/acme/payments", "createdAt": "2026-01-05T10:00:00"},
    {"id": 2, "name": "ledger", "externalUrl": "https://github.com/acme/ledger", "createdAt": "2026-01-06T10:00:00Z"},
]

BUILDS = [
    {
        "id": 41,
        "repositoryId": 1,
        "repositoryName": "payments",
        "status": "SUCCESS",
        "commitSha": "a1b2c3d4e5f6",
        "startedAt": "2026-03-01T08:00:00",
        "completedAt": "2026-03-01T08:06:00",
    },
    {
        "id": 42,
        "repositoryId": 1,
        "status": "IN_PROGRESS",
        "commitSha": "0f9e8d7c6b5a",
        "startedAt": "2026-03-01T09:00:00",
    },
]


def _client(handler) -> BuildApiClient:
    return BuildApiClient(base_url=BASE_URL, timeout=1.0, transport=httpx.MockTransport(handler))


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


def _routes(requests_seen: list[httpx.Request]):
    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        path = request.url.path
        if path == "/api/repositories":
            return httpx.Response(200, json=REPOSITORIES)
        if path == "/api/repositories/1":
            return httpx.Response(200, json=REPOSITORIES[0])
        if path in ("/api/builds/repository/1", "/api/builds", "/api/builds/status/IN_PROGRESS"):
            return httpx.Response(200, json=BUILDS)
        if path == "/api/builds/sync":
            return httpx.Response(
                200,
                json={"success": True, "syncedCount": 3, "message": "Synced 3 builds", "repositoryName": "payments"},
            )
        if path == "/api/scheduler/trigger-sync":
            return httpx.Response(200, json={"status": "success", "message": "GitHub sync triggered"})
        return httpx.Response(404, json={"error": "not found"})

    return handler


def test_client_satisfies_gateway_protocol():
    assert isinstance(BuildApiClient(base_url=BASE_URL), BuildGateway)


@pytest.mark.asyncio
async def test_list_repositories_decodes_both_url_fields(requests_seen):
    async with _client(_routes(requests_seen)) as client:
        repositories = await client.list_repositories()

    assert [r.id for r in repositories] == [1, 2]
    assert repositories[0].external_url == "https://github.com/acme/payments"
    assert repositories[1].external_url == "https://github.com/acme/ledger"
    # Zone-less timestamps are read as UTC
    assert repositories[0].created_at.tzinfo == timezone.utc
    assert requests_seen[0].method == "GET"


@pytest.mark.asyncio
async def test_list_builds_uses_repository_path(requests_seen):
    async with _client(_routes(requests_seen)) as client:
        builds = await client.list_builds(1)

    assert requests_seen[0].url.path == "/api/builds/repository/1"
    assert [b.id for b in builds] == [41, 42]
    assert builds[0].status is BuildStatus.SUCCESS
    assert builds[0].repository_id == 1
    assert builds[0].completed_at is not None
    assert builds[1].completed_at is None
    assert builds[1].started_at.tzinfo == timezone.utc


@pytest.mark.asyncio
async def test_supplemental_reads(requests_seen):
    async with _client(_routes(requests_seen)) as client:
        repository = await client.get_repository(1)
        all_builds = await client.list_all_builds()
        running = await client.list_builds_by_status(BuildStatus.IN_PROGRESS)

    assert repository.name == "payments"
    assert len(all_builds) == 2
    assert len(running) == 2
    assert [r.url.path for r in requests_seen] == [
        "/api/repositories/1",
        "/api/builds",
        "/api/builds/status/IN_PROGRESS",
    ]


@pytest.mark.asyncio
async def test_trigger_sync_posts_camel_case_body(requests_seen):
    async with _client(_routes(requests_seen)) as client:
        response = await client.trigger_sync("acme", "payments", 1)

    request = requests_seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/builds/sync"
    assert json.loads(request.content) == {"owner": "acme", "repo": "payments", "repositoryId": 1}
    assert response.success is True
    assert response.synced_count == 3
    assert response.repository_name == "payments"


@pytest.mark.asyncio
async def test_trigger_scheduled_sync_returns_acknowledgement(requests_seen):
    async with _client(_routes(requests_seen)) as client:
        ack = await client.trigger_scheduled_sync()

    assert requests_seen[0].method == "POST"
    assert requests_seen[0].url.path == "/api/scheduler/trigger-sync"
    assert json.loads(requests_seen[0].content) == {}
    assert ack["status"] == "success"


@pytest.mark.asyncio
async def test_http_error_status_raises_transport_error():
    def handler(request):
        return httpx.Response(500, json={"error": "boom"})

    async with _client(handler) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.list_repositories()

    assert exc_info.value.status_code == 500
    assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_connection_error_raises_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.list_builds(1)

    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.cause, httpx.ConnectError)


@pytest.mark.asyncio
async def test_invalid_payload_raises_transport_error():
    def handler(request):
        return httpx.Response(200, json=[{"id": 1, "status": "EXPLODED"}])

    async with _client(handler) as client:
        with pytest.raises(TransportError):
            await client.list_builds(1)


@pytest.mark.asyncio
async def test_non_json_body_raises_transport_error():
    def handler(request):
        return httpx.Response(200, text="<html>gateway</html>")

    async with _client(handler) as client:
        with pytest.raises(TransportError):
            await client.list_repositories()
