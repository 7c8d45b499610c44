"""Pydantic schemas for dashboard API responses.

The dashboard pairs every repository with its latest build and a status tally.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from cicd_dashboard.schemas.builds import BuildStatus, LatestBuildView, StatusCounts, SyncResponse


class RepositoryCard(BaseModel):
    """Display strings for one repository card."""

    repository_id: int = Field(..., description="Repository id")
    name: str = Field(..., description="Repository name")
    external_url: str = Field(..., description="Link to the repository")
    status: BuildStatus | None = Field(None, description="Latest build status, if any")
    status_label: str = Field(..., description="Status text (e.g. IN PROGRESS, No builds)")
    active: bool = Field(False, description="True while the latest build is running")
    short_sha: str = Field(..., description="First 7 characters of the commit SHA, or N/A")
    started_ago: str = Field(..., description="Relative start time of the latest build")
    completed_ago: str = Field(..., description="Relative completion time of the latest build")


class DashboardResponse(BaseModel):
    """Full dashboard payload for the UI.

    All list fields default to empty arrays (never null).
    """

    items: list[LatestBuildView] = Field(default_factory=list, description="Repositories with latest builds")
    cards: list[RepositoryCard] = Field(default_factory=list, description="Card labels, same order as items")
    counts: StatusCounts = Field(default_factory=StatusCounts, description="Status tally")
    loading: bool = Field(False, description="A user-visible refresh is in flight")
    error: str | None = Field(None, description="User-facing error message")
    last_updated: datetime = Field(..., description="When items were last replaced")
    auto_refresh: bool = Field(True, description="Whether periodic results are applied")


class AutoRefreshResponse(BaseModel):
    auto_refresh: bool


class SyncTriggerResponse(BaseModel):
    """Outcome of a sync command."""

    triggered: bool = Field(..., description="Whether the backend accepted the trigger")
    follow_up_in_seconds: float = Field(..., description="Delay before the follow-up refresh")
    acknowledgement: dict = Field(default_factory=dict, description="Backend acknowledgement, as returned")
    sync: SyncResponse | None = Field(None, description="Per-repository sync result, if applicable")
