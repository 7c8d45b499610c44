"""Tests for the dashboard status tally."""
import pytest

from cicd_dashboard.domain.status_counts import compute_status_counts
from cicd_dashboard.schemas.builds import BuildStatus, LatestBuildView, StatusCounts
from tests.conftest import make_build, make_repository

pytestmark = pytest.mark.unit


def _view(repository_id: int, status: BuildStatus | None) -> LatestBuildView:
    build = make_build(repository_id * 10, repository_id=repository_id, status=status) if status else None
    return LatestBuildView(repository=make_repository(repository_id), latest_build=build)


def test_empty_items():
    assert compute_status_counts([]) == StatusCounts()


def test_mixed_statuses_with_absent_build():
    """[SUCCESS, FAILED, absent, IN_PROGRESS] -> one of each, total 4."""
    items = [
        _view(1, BuildStatus.SUCCESS),
        _view(2, BuildStatus.FAILED),
        _view(3, None),
        _view(4, BuildStatus.IN_PROGRESS),
    ]

    counts = compute_status_counts(items)

    assert counts.model_dump() == {
        "success": 1,
        "failed": 1,
        "in_progress": 1,
        "pending": 0,
        "total": 4,
    }


def test_cancelled_counts_toward_total_only():
    counts = compute_status_counts([_view(1, BuildStatus.CANCELLED), _view(2, BuildStatus.PENDING)])

    assert counts.total == 2
    assert counts.pending == 1
    assert counts.success == counts.failed == counts.in_progress == 0
