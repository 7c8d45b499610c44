"""ViewState: the single mutable reference the presentation layer reads."""

from datetime import datetime, timezone

from cicd_dashboard.domain.status_counts import compute_status_counts
from cicd_dashboard.schemas.builds import DashboardSnapshot, StatusCounts


class ViewState:
    """Holds the current DashboardSnapshot.

    Snapshots are frozen; every write swaps in a new one, so readers never see
    a half-applied cycle.
    """

    def __init__(self, auto_refresh: bool = True, now: datetime | None = None) -> None:
        self._snapshot = DashboardSnapshot(
            last_updated=now or datetime.now(timezone.utc),
            auto_refresh=auto_refresh,
        )

    @property
    def snapshot(self) -> DashboardSnapshot:
        return self._snapshot

    def replace(self, **changes) -> DashboardSnapshot:
        """Swap in a copy of the current snapshot with the given fields changed."""
        if "items" in changes:
            changes["items"] = tuple(changes["items"])
        updated = self._snapshot.model_copy(update=changes)
        self._snapshot = updated
        return updated

    def status_counts(self) -> StatusCounts:
        return compute_status_counts(self._snapshot.items)
