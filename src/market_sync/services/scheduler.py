"""Periodic dashboard refresh driven by connectivity."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from market_sync.services.aggregator import DataAggregator
from market_sync.services.connectivity import ConnectivityMonitor
from market_sync.services.state import (
    DashboardState,
    apply_poll_result,
    mark_news_seen,
    set_online,
)
from market_sync.utils.market_clock import is_market_open

logger = logging.getLogger(__name__)

StateListener = Callable[[DashboardState], None]


class SchedulerState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    PAUSED = "paused"
    STOPPED = "stopped"


class PollingScheduler:
    """
    Fires a poll cycle on start and then every interval seconds.

    Ticks are skipped while a cycle is still in flight and while offline.
    Going back online resumes polling with an immediate cycle. stop() clears
    the timer; a cycle already in flight finishes and its result is dropped.
    """

    def __init__(
        self,
        aggregator: DataAggregator,
        connectivity: ConnectivityMonitor,
        interval: float = 30.0,
        closed_interval: float | None = None,
        market_open: Callable[[], bool] = is_market_open,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._aggregator = aggregator
        self._connectivity = connectivity
        self.interval = interval
        self.closed_interval = closed_interval
        self._market_open = market_open
        self._sleep = sleep

        self.state = SchedulerState.IDLE
        self.dashboard = DashboardState(online=connectivity.online)
        self._timer: asyncio.Task | None = None
        self._in_flight: asyncio.Task | None = None
        self._listeners: list[StateListener] = []
        self._unsubscribe = connectivity.add_listener(self._on_connectivity)

    @property
    def online(self) -> bool:
        return self._connectivity.online

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def current_interval(self) -> float:
        if self.closed_interval and not self._market_open():
            return self.closed_interval
        return self.interval

    async def start(self) -> None:
        """Fire the first cycle now and start the timer."""
        if self.state is SchedulerState.STOPPED:
            raise RuntimeError("scheduler was stopped; build a new one to restart")
        if self._timer is not None:
            return

        self.state = SchedulerState.POLLING if self.online else SchedulerState.PAUSED
        logger.info(f"scheduler: starting ({self.state.value}, every {self.interval:.0f}s)")
        await self.tick()
        self._timer = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while True:
            await self._sleep(self.current_interval())
            await self.tick()

    async def tick(self) -> bool:
        """
        One timer tick.

        Returns:
            True if a new cycle was launched
        """
        if self._connectivity.has_probe:
            await self._connectivity.refresh()
        if self.state is not SchedulerState.POLLING:
            return False
        return self._launch_cycle()

    def _launch_cycle(self) -> bool:
        if self.in_flight:
            logger.debug("scheduler: previous cycle still running, skipping tick")
            return False
        self._in_flight = asyncio.create_task(self._cycle())
        return True

    async def _cycle(self) -> None:
        try:
            result = await self._aggregator.poll()
        except Exception:
            logger.exception("scheduler: poll cycle failed")
            return

        if self.state is SchedulerState.STOPPED:
            logger.debug("scheduler: stopped during cycle, discarding result")
            return

        self.dashboard = apply_poll_result(self.dashboard, result)
        self._notify()

    def _on_connectivity(self, online: bool) -> None:
        self.dashboard = set_online(self.dashboard, online)
        if self.state is SchedulerState.POLLING and not online:
            self.state = SchedulerState.PAUSED
            logger.info("scheduler: offline, pausing")
        elif self.state is SchedulerState.PAUSED and online:
            self.state = SchedulerState.POLLING
            logger.info("scheduler: back online, resuming")
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("scheduler: no running loop, next tick will poll")
            else:
                self._launch_cycle()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.dashboard)

    def mark_news_seen(self, latest_id: str | None = None) -> DashboardState:
        self.dashboard = mark_news_seen(self.dashboard, latest_id)
        self._notify()
        return self.dashboard

    async def wait_idle(self) -> None:
        """Wait for the in-flight cycle, if any, to finish."""
        if self._in_flight is not None:
            await asyncio.shield(self._in_flight)

    async def stop(self) -> None:
        """Clear the timer. An in-flight cycle completes; its result is dropped."""
        if self.state is SchedulerState.STOPPED:
            return
        self.state = SchedulerState.STOPPED
        self._unsubscribe()
        if self._timer is not None:
            self._timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._timer
            self._timer = None
        logger.info("scheduler: stopped")
