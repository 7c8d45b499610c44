"""Text labels for repository cards.

Colors and icons belong to the UI; these helpers only produce the strings
and flags a card displays.
"""

from datetime import datetime, timezone

from cicd_dashboard.schemas.builds import BuildStatus, LatestBuildView
from cicd_dashboard.schemas.dashboard import RepositoryCard

_SHORT_SHA_LENGTH = 7


def status_label(status: BuildStatus | None) -> str:
    """Human-readable status, e.g. IN_PROGRESS -> "IN PROGRESS"."""
    if status is None:
        return "No builds"
    return BuildStatus(status).value.replace("_", " ")


def short_commit_sha(sha: str | None) -> str:
    if not sha:
        return "N/A"
    return sha[:_SHORT_SHA_LENGTH]


def is_active(status: BuildStatus | None) -> bool:
    """Only running builds get the animated indicator."""
    return status == BuildStatus.IN_PROGRESS


def relative_age(timestamp: datetime | None, now: datetime | None = None) -> str:
    """Coarse "time ago" text for a timestamp.

    Args:
        timestamp: Moment to describe (naive values are read as UTC)
        now: Injectable current time for testing

    Returns:
        "Just now", "{m}m ago", "{h}h ago", "{d}d ago", or the ISO date
        once the timestamp is a week old or more.
    """
    if timestamp is None:
        return "N/A"
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    if now is None:
        now = datetime.now(timezone.utc)

    seconds = (now - timestamp).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return timestamp.date().isoformat()


def build_card(item: LatestBuildView, now: datetime | None = None) -> RepositoryCard:
    """Flatten a LatestBuildView into the card the UI renders."""
    build = item.latest_build
    status = build.status if build else None
    return RepositoryCard(
        repository_id=item.repository.id,
        name=item.repository.name,
        external_url=item.repository.external_url,
        status=status,
        status_label=status_label(status),
        active=is_active(status),
        short_sha=short_commit_sha(build.commit_sha if build else None),
        started_ago=relative_age(build.started_at if build else None, now),
        completed_ago=relative_age(build.completed_at if build else None, now),
    )
