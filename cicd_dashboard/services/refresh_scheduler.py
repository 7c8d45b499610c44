"""RefreshScheduler: keeps the dashboard snapshot fresh on an asyncio timer.

Owns the polling lifecycle for one dashboard session:
  1. start() spawns the repeating timer and one immediate user-visible cycle
  2. every tick spawns a periodic cycle; ticks never wait on earlier cycles
  3. refresh(), trigger_sync() and sync_repository() are the user commands

Cycle outcomes:
  - user-visible cycles (start, manual refresh, sync follow-up) surface
    failures in snapshot.error and always apply their results
  - periodic cycles only log failures, and their results are dropped while
    auto-refresh is paused (the timer keeps running and fetching)
  - nothing is cancelled when cycles overlap; the last one to complete wins

Runs as asyncio tasks in the caller's event loop, not a thread or process.
"""

from __future__ import annotations

import asyncio
import itertools
from datetime import datetime, timezone
from enum import Enum

import structlog

from cicd_dashboard.core.config import get_settings
from cicd_dashboard.core.exceptions import AggregationError, RepositoryNotFoundError, TransportError
from cicd_dashboard.domain.repository_url import parse_owner_repo
from cicd_dashboard.integrations.gateway import BuildGateway
from cicd_dashboard.schemas.builds import DashboardSnapshot, SyncResponse
from cicd_dashboard.services.aggregator import BuildAggregator
from cicd_dashboard.services.view_state import ViewState

logger = structlog.get_logger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load repository data. Please check if the backend is running."
SYNC_ERROR_MESSAGE = "Failed to trigger sync. Please try again."
REPOSITORY_SYNC_ERROR_MESSAGE = "Failed to sync builds. Please try again."


class RefreshTrigger(str, Enum):
    """What started an aggregation cycle."""

    START = "start"
    MANUAL = "manual"
    PERIODIC = "periodic"
    SYNC_FOLLOW_UP = "sync_follow_up"


class RefreshScheduler:
    """Periodic + on-demand refresh of a ViewState from a BuildGateway.

    Usage:
        scheduler = RefreshScheduler(gateway=BuildApiClient())
        scheduler.start()                  # inside a running event loop
        snapshot = scheduler.snapshot      # read by the presentation layer
        await scheduler.refresh()          # manual refresh
        scheduler.toggle_auto_refresh()    # pause/resume applying periodic results
        await scheduler.trigger_sync()     # backend sync + delayed follow-up refresh
        await scheduler.stop()             # on session teardown
    """

    def __init__(
        self,
        gateway: BuildGateway,
        view_state: ViewState | None = None,
        *,
        interval: float | None = None,
        settle_delay: float | None = None,
        auto_refresh: bool | None = None,
    ) -> None:
        settings = get_settings()
        self.gateway = gateway
        self.aggregator = BuildAggregator(gateway)
        self.interval = interval if interval is not None else settings.refresh_interval_seconds
        self.settle_delay = settle_delay if settle_delay is not None else settings.sync_settle_delay_seconds
        if auto_refresh is None:
            auto_refresh = settings.auto_refresh_enabled
        self._paused = not auto_refresh
        self.view_state = view_state or ViewState(auto_refresh=auto_refresh)
        if self.view_state.snapshot.auto_refresh != auto_refresh:
            self.view_state.replace(auto_refresh=auto_refresh)

        self._timer_task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()
        self._cycles = itertools.count(1)
        self._log = logger.bind(component="refresh_scheduler")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> DashboardSnapshot:
        return self.view_state.snapshot

    @property
    def running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def pending_cycles(self) -> int:
        """Spawned cycles and follow-ups that have not finished yet."""
        return len(self._pending)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the timer and kick off one user-visible cycle right away.

        Must be called from inside a running event loop. Calling start() on a
        running scheduler is a no-op.
        """
        if self.running:
            return

        self._log.info("refresh_scheduler_started", interval=self.interval, paused=self._paused)
        self._timer_task = asyncio.create_task(self._run_timer())
        self._spawn(self._run_cycle(RefreshTrigger.START))

    async def stop(self) -> None:
        """Cancel the timer and every pending cycle, then wait for them to unwind."""
        tasks = list(self._pending)
        if self._timer_task is not None:
            tasks.append(self._timer_task)
            self._timer_task = None

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._log.info("refresh_scheduler_stopped", cancelled=len(tasks))

    async def drain(self) -> None:
        """Wait until every spawned cycle and follow-up has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._spawn(self.poll())

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log.error(
                "refresh_task_crashed",
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=exc,
            )

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    async def poll(self) -> bool:
        """Run one periodic cycle, exactly what a timer tick does.

        Returns:
            True if the result was applied to the snapshot
        """
        return await self._run_cycle(RefreshTrigger.PERIODIC)

    async def refresh(self) -> DashboardSnapshot:
        """Manual refresh: run a user-visible cycle to completion.

        Never raises for failed cycles; they land in snapshot.error.
        """
        await self._run_cycle(RefreshTrigger.MANUAL)
        return self.view_state.snapshot

    async def _run_cycle(self, trigger: RefreshTrigger) -> bool:
        cycle = next(self._cycles)
        user_visible = trigger is not RefreshTrigger.PERIODIC
        log = self._log.bind(cycle=cycle, trigger=trigger.value)

        if user_visible:
            self.view_state.replace(loading=True, error=None)

        try:
            items = await self.aggregator.aggregate()
        except AggregationError as e:
            if user_visible:
                log.error("refresh_cycle_failed", error=str(e))
                self.view_state.replace(loading=False, error=LOAD_ERROR_MESSAGE)
            else:
                # Background failure: keep the last good snapshot untouched.
                log.warning("periodic_refresh_failed", error=str(e))
            return False
        except Exception as e:
            log.error(
                "refresh_cycle_crashed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            if user_visible:
                self.view_state.replace(loading=False, error=LOAD_ERROR_MESSAGE)
            return False

        if not user_visible and self._paused:
            log.info("periodic_refresh_discarded", reason="auto_refresh_paused")
            return False

        self.view_state.replace(
            items=items,
            last_updated=datetime.now(timezone.utc),
            loading=False,
            error=None,
        )
        log.info("refresh_cycle_applied", repositories=len(items))
        return True

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def toggle_auto_refresh(self) -> bool:
        """Pause or resume applying periodic results. The timer keeps running.

        Returns:
            The new auto-refresh flag (True = results applied)
        """
        self._paused = not self._paused
        self.view_state.replace(auto_refresh=not self._paused)
        self._log.info("auto_refresh_toggled", auto_refresh=not self._paused)
        return not self._paused

    async def trigger_sync(self) -> dict | None:
        """Trigger the backend's scheduled sync.

        On success one follow-up refresh runs after the settle delay. On
        failure snapshot.error is set and nothing is scheduled.

        Returns:
            The backend acknowledgement, or None if the trigger failed
        """
        try:
            acknowledgement = await self.gateway.trigger_scheduled_sync()
        except TransportError as e:
            self._log.error("scheduled_sync_trigger_failed", error=str(e), status_code=e.status_code)
            self.view_state.replace(error=SYNC_ERROR_MESSAGE)
            return None

        self._log.info("scheduled_sync_triggered", acknowledgement=acknowledgement)
        self._schedule_follow_up()
        return acknowledgement

    async def sync_repository(self, repository_id: int) -> SyncResponse | None:
        """Sync one repository's builds from its CI provider.

        The repository must be on the current snapshot; owner and repo are
        derived from its external URL.

        Returns:
            The backend's SyncResponse, or None if the request itself failed

        Raises:
            RepositoryNotFoundError: If the repository is not on the dashboard
            ValueError: If owner/repo cannot be derived from the URL
        """
        view = next(
            (item for item in self.view_state.snapshot.items if item.repository.id == repository_id),
            None,
        )
        if view is None:
            raise RepositoryNotFoundError(repository_id)

        owner, repo = parse_owner_repo(view.repository.external_url)
        log = self._log.bind(repository_id=repository_id, owner=owner, repo=repo)

        try:
            response = await self.gateway.trigger_sync(owner, repo, repository_id)
        except TransportError as e:
            log.error("repository_sync_failed", error=str(e), status_code=e.status_code)
            self.view_state.replace(error=REPOSITORY_SYNC_ERROR_MESSAGE)
            return None

        if not response.success:
            log.warning("repository_sync_rejected", message=response.message)
            self.view_state.replace(error=response.message or REPOSITORY_SYNC_ERROR_MESSAGE)
            return response

        log.info("repository_synced", synced_count=response.synced_count)
        self._schedule_follow_up()
        return response

    def _schedule_follow_up(self) -> asyncio.Task:
        return self._spawn(self._refresh_after_settle())

    async def _refresh_after_settle(self) -> None:
        await asyncio.sleep(self.settle_delay)
        await self._run_cycle(RefreshTrigger.SYNC_FOLLOW_UP)
