"""Status tally over the dashboard items."""

from collections.abc import Iterable

from cicd_dashboard.schemas.builds import BuildStatus, LatestBuildView, StatusCounts

# CANCELLED has no bucket of its own; it only counts toward total.
_BUCKETS = {
    BuildStatus.SUCCESS: "success",
    BuildStatus.FAILED: "failed",
    BuildStatus.IN_PROGRESS: "in_progress",
    BuildStatus.PENDING: "pending",
}


def compute_status_counts(items: Iterable[LatestBuildView]) -> StatusCounts:
    """Count repositories by the status of their latest build.

    Repositories without a latest build count toward total only.
    """
    counts = dict.fromkeys(_BUCKETS.values(), 0)
    total = 0

    for item in items:
        total += 1
        if item.latest_build is None:
            continue
        bucket = _BUCKETS.get(item.latest_build.status)
        if bucket:
            counts[bucket] += 1

    return StatusCounts(total=total, **counts)
