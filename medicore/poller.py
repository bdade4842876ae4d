"""Queue poller: keeps a view's queue snapshot in step with the server.

States:
- IDLE: no fetch in flight
- FETCHING: a fetch is in flight
- STOPPED: view unmounted; nothing is applied any more

Rules:
- start() fetches immediately, then every ``interval`` seconds
- A scheduled tick is skipped while a fetch is in flight
- Every fetch gets a sequence number; a response is applied only if no
  later-issued response has been applied already
- Poll failures are logged and the previous snapshot is kept
- After stop(), late responses are discarded
"""
import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional, Set, Tuple

import pydantic

from medicore import config
from medicore.api.visits import VisitService
from medicore.errors import MediCoreError
from medicore.logging_config import get_logger
from medicore.models import QueueSnapshot

logger = get_logger(__name__)

FetchResult = Tuple[Optional[QueueSnapshot], Optional[Exception]]


class PollerState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    STOPPED = "stopped"


class QueuePoller:
    """
    Recurring fetch of the clinic queue for one mounted view.

    Must be started and stopped from inside a running event loop.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[QueueSnapshot]],
        on_snapshot: Optional[Callable[[QueueSnapshot], None]] = None,
        interval: float = config.POLL_INTERVAL_SECONDS,
        min_refresh_display: float = config.MIN_REFRESH_DISPLAY_SECONDS,
    ):
        """
        Initialize the poller.

        Args:
            fetch: Coroutine function returning a fresh QueueSnapshot
            on_snapshot: Called with each applied snapshot
            interval: Seconds between scheduled fetches (default: 3)
            min_refresh_display: Minimum seconds refresh() takes to return,
                                 so a refresh indicator stays visible
        """
        self._fetch_fn = fetch
        self.on_snapshot = on_snapshot
        self.interval = interval
        self.min_refresh_display = min_refresh_display

        self.snapshot: Optional[QueueSnapshot] = None
        self.last_error: Optional[Exception] = None

        self._issued_seq = 0
        self._applied_seq = 0
        self._latest: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()
        self._timer: Optional[asyncio.Task] = None
        self._started = False
        self._stopped = False

    @classmethod
    def for_visits(cls, visits: VisitService, **kwargs) -> "QueuePoller":
        """Poll GET /visits/status through the blocking API client."""
        async def fetch() -> QueueSnapshot:
            return await asyncio.to_thread(visits.queue_status)

        return cls(fetch, **kwargs)

    @property
    def state(self) -> PollerState:
        if self._stopped:
            return PollerState.STOPPED
        if self._in_flight:
            return PollerState.FETCHING
        return PollerState.IDLE

    @property
    def applied_count(self) -> int:
        """Sequence number of the last applied snapshot (0: none yet)."""
        return self._applied_seq

    def start(self) -> None:
        """Mount: fetch now and schedule the repeating fetch."""
        if self._started:
            return
        self._started = True
        self._launch()
        self._timer = asyncio.get_running_loop().create_task(self._schedule())

    def stop(self) -> None:
        """Unmount: cancel the schedule and any in-flight fetch."""
        if self._stopped:
            return
        self._stopped = True
        if self._timer is not None:
            self._timer.cancel()
        for task in list(self._in_flight):
            task.cancel()
        logger.debug("queue_poller_stopped", applied=self._applied_seq)

    async def refresh(self, force: bool = False) -> Optional[QueueSnapshot]:
        """
        Manual refresh, identical to a scheduled fetch.

        Joins the fetch already in flight unless ``force`` is set, so a
        refresh during a poll applies exactly one snapshot.

        Args:
            force: Issue a new request even if one is in flight

        Returns:
            The current snapshot after the fetch

        Raises:
            MediCoreError: The fetch failed (snapshot left unchanged)
        """
        if self._stopped:
            return self.snapshot

        loop = asyncio.get_running_loop()
        started_at = loop.time()

        if not force and self._latest is not None and not self._latest.done():
            task = self._latest
        else:
            task = self._launch()

        try:
            _, error = await asyncio.shield(task)
        except asyncio.CancelledError:
            if self._stopped and task.cancelled():
                return self.snapshot
            raise

        remaining = self.min_refresh_display - (loop.time() - started_at)
        if remaining > 0:
            await asyncio.sleep(remaining)

        if error is not None:
            raise error
        return self.snapshot

    async def __aenter__(self) -> "QueuePoller":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.stop()

    def _launch(self) -> asyncio.Task:
        self._issued_seq += 1
        task = asyncio.get_running_loop().create_task(self._fetch(self._issued_seq))
        self._latest = task
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _schedule(self):
        while True:
            await asyncio.sleep(self.interval)
            if self._in_flight:
                logger.debug("queue_poll_tick_skipped", in_flight=len(self._in_flight))
                continue
            self._launch()

    async def _fetch(self, seq: int) -> FetchResult:
        try:
            snapshot = await self._fetch_fn()
        except (MediCoreError, pydantic.ValidationError) as e:
            if not self._stopped:
                self.last_error = e
                logger.warning("queue_poll_failed", seq=seq, error=str(e))
            return None, e

        if self._stopped:
            logger.debug("queue_poll_discarded_after_stop", seq=seq)
            return None, None
        if seq <= self._applied_seq:
            logger.debug("queue_poll_discarded_stale", seq=seq, applied=self._applied_seq)
            return None, None

        self._applied_seq = seq
        self.snapshot = snapshot
        self.last_error = None
        logger.debug("queue_snapshot_applied", seq=seq, total_today=snapshot.total_today)

        if self.on_snapshot is not None:
            self.on_snapshot(snapshot)
        return snapshot, None
