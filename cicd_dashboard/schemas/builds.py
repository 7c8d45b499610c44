"""Pydantic models for the build-tracking API and the dashboard view state.

Wire models accept the backend's camelCase field names; everything is frozen
once validated so snapshots can be shared without copying.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _as_utc(value: datetime | None) -> datetime | None:
    """Treat zone-less timestamps from the backend as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BuildStatus(str, Enum):
    """Build lifecycle states reported by the backend."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class Repository(BaseModel):
    """Tracked repository."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    name: str
    external_url: str = Field(
        ...,
        validation_alias=AliasChoices("external_url", "externalUrl", "githubUrl"),
        description="Link to the repository on its hosting service",
    )
    created_at: datetime = Field(..., validation_alias=AliasChoices("created_at", "createdAt"))

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        return _as_utc(value)


class Build(BaseModel):
    """Snapshot of one build as seen at fetch time."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    repository_id: int = Field(..., validation_alias=AliasChoices("repository_id", "repositoryId"))
    status: BuildStatus
    commit_sha: str = Field(..., validation_alias=AliasChoices("commit_sha", "commitSha"))
    started_at: datetime = Field(..., validation_alias=AliasChoices("started_at", "startedAt"))
    completed_at: datetime | None = Field(
        None, validation_alias=AliasChoices("completed_at", "completedAt")
    )
    repository_name: str | None = Field(
        None, validation_alias=AliasChoices("repository_name", "repositoryName")
    )

    @field_validator("started_at", "completed_at")
    @classmethod
    def normalize_timestamps(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class SyncResponse(BaseModel):
    """Result of a per-repository sync request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success: bool
    synced_count: int = Field(0, validation_alias=AliasChoices("synced_count", "syncedCount"))
    message: str = ""
    repository_name: str | None = Field(
        None, validation_alias=AliasChoices("repository_name", "repositoryName")
    )


class LatestBuildView(BaseModel):
    """A repository joined with its latest build (absent if none or fetch failed)."""

    model_config = ConfigDict(frozen=True)

    repository: Repository
    latest_build: Build | None = None


class DashboardSnapshot(BaseModel):
    """Everything the presentation layer reads. Replaced whole, never mutated."""

    model_config = ConfigDict(frozen=True)

    items: tuple[LatestBuildView, ...] = ()
    loading: bool = False
    error: str | None = None
    last_updated: datetime
    auto_refresh: bool = True


class StatusCounts(BaseModel):
    """Tally of latest-build statuses across the dashboard."""

    success: int = Field(0, description="Repositories whose latest build succeeded")
    failed: int = Field(0, description="Repositories whose latest build failed")
    in_progress: int = Field(0, description="Repositories with a build running")
    pending: int = Field(0, description="Repositories with a build queued")
    total: int = Field(0, description="All repositories, including those without builds")
