"""Dashboard API endpoints.

GET  /api/dashboard                                  - Snapshot, cards and status tally
GET  /api/dashboard/status-counts                    - Status tally only
POST /api/dashboard/refresh                          - Manual refresh
POST /api/dashboard/auto-refresh/toggle              - Pause/resume periodic results
POST /api/dashboard/sync                             - Trigger the backend's scheduled sync
POST /api/dashboard/repositories/{repository_id}/sync - Sync one repository
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from cicd_dashboard.core.exceptions import RepositoryNotFoundError
from cicd_dashboard.domain.cards import build_card
from cicd_dashboard.domain.status_counts import compute_status_counts
from cicd_dashboard.schemas.builds import DashboardSnapshot, StatusCounts
from cicd_dashboard.schemas.dashboard import AutoRefreshResponse, DashboardResponse, SyncTriggerResponse
from cicd_dashboard.services.refresh_scheduler import RefreshScheduler

router = APIRouter()


def get_scheduler(request: Request) -> RefreshScheduler:
    """Resolve the session's scheduler from application state."""
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Dashboard is not running")
    return scheduler


def _to_response(snapshot: DashboardSnapshot) -> DashboardResponse:
    return DashboardResponse(
        items=list(snapshot.items),
        cards=[build_card(item) for item in snapshot.items],
        counts=compute_status_counts(snapshot.items),
        loading=snapshot.loading,
        error=snapshot.error,
        last_updated=snapshot.last_updated,
        auto_refresh=snapshot.auto_refresh,
    )


@router.get("", response_model=DashboardResponse)
async def get_dashboard(scheduler: RefreshScheduler = Depends(get_scheduler)) -> DashboardResponse:
    """Current dashboard: every repository with its latest build.

    Reads the snapshot as-is; never triggers a fetch.
    """
    return _to_response(scheduler.snapshot)


@router.get("/status-counts", response_model=StatusCounts)
async def get_status_counts(scheduler: RefreshScheduler = Depends(get_scheduler)) -> StatusCounts:
    return compute_status_counts(scheduler.snapshot.items)


@router.post("/refresh", response_model=DashboardResponse)
async def manual_refresh(scheduler: RefreshScheduler = Depends(get_scheduler)) -> DashboardResponse:
    """Run a refresh cycle now and return the resulting dashboard.

    Backend failures are reported in the error field, not as an HTTP error.
    """
    snapshot = await scheduler.refresh()
    return _to_response(snapshot)


@router.post("/auto-refresh/toggle", response_model=AutoRefreshResponse)
async def toggle_auto_refresh(scheduler: RefreshScheduler = Depends(get_scheduler)) -> AutoRefreshResponse:
    return AutoRefreshResponse(auto_refresh=scheduler.toggle_auto_refresh())


@router.post("/sync", response_model=SyncTriggerResponse)
async def trigger_sync(scheduler: RefreshScheduler = Depends(get_scheduler)) -> SyncTriggerResponse:
    """Trigger the backend's scheduled sync; a refresh follows after the settle delay."""
    acknowledgement = await scheduler.trigger_sync()
    if acknowledgement is None:
        raise HTTPException(status_code=502, detail=scheduler.snapshot.error)

    return SyncTriggerResponse(
        triggered=True,
        follow_up_in_seconds=scheduler.settle_delay,
        acknowledgement=acknowledgement,
    )


@router.post("/repositories/{repository_id}/sync", response_model=SyncTriggerResponse)
async def sync_repository(
    repository_id: int,
    scheduler: RefreshScheduler = Depends(get_scheduler),
) -> SyncTriggerResponse:
    """Sync one repository's builds from its CI provider."""
    try:
        response = await scheduler.sync_repository(repository_id)
    except RepositoryNotFoundError:
        raise HTTPException(status_code=404, detail="Repository not found")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if response is None:
        raise HTTPException(status_code=502, detail=scheduler.snapshot.error)

    return SyncTriggerResponse(
        triggered=response.success,
        follow_up_in_seconds=scheduler.settle_delay if response.success else 0.0,
        sync=response,
    )
