"""Shared test fixtures for all test groups."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from cicd_dashboard.integrations.gateway import BuildGateway
from cicd_dashboard.schemas.builds import Build, BuildStatus, Repository

BASE_TIME = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


def make_repository(repository_id: int, name: str | None = None) -> Repository:
    """Repository hosted at https://github.com/acme/<name>."""
    name = name or f"service-{repository_id}"
    return Repository(
        id=repository_id,
        name=name,
        external_url=f"https://github.com/acme/{name}",
        created_at=BASE_TIME - timedelta(days=30),
    )


def make_build(
    build_id: int,
    repository_id: int = 1,
    status: BuildStatus = BuildStatus.SUCCESS,
    started_minutes: int = 0,
    commit_sha: str = "4f2c9e1b7d3a5f60c8e2",
) -> Build:
    """Build started `started_minutes` after BASE_TIME."""
    return Build(
        id=build_id,
        repository_id=repository_id,
        status=status,
        commit_sha=commit_sha,
        started_at=BASE_TIME + timedelta(minutes=started_minutes),
    )


@pytest.fixture
def gateway() -> AsyncMock:
    """AsyncMock mimicking BuildApiClient: no repositories, no builds."""
    gw = AsyncMock(spec=BuildGateway)
    gw.list_repositories = AsyncMock(return_value=[])
    gw.list_builds = AsyncMock(return_value=[])
    gw.trigger_sync = AsyncMock()
    gw.trigger_scheduled_sync = AsyncMock(
        return_value={"status": "success", "message": "GitHub sync triggered successfully."}
    )
    return gw
