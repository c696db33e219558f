"""Tests for the polling scheduler."""

import asyncio

import pytest

from market_sync.models import NewsCategory, NewsItem, PollResult, Sentiment
from market_sync.services.connectivity import ConnectivityMonitor
from market_sync.services.scheduler import PollingScheduler, SchedulerState


def make_news(*ids: str) -> list[NewsItem]:
    return [
        NewsItem(item_id, item_id, "test", "#", None, NewsCategory.MACRO, Sentiment.NEUTRAL)
        for item_id in ids
    ]


class FakeAggregator:
    """poll() counts calls and optionally waits for a gate to open."""

    def __init__(self, *pages: tuple[str, ...]):
        self.pages = list(pages) or [("a",)]
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def poll(self) -> PollResult:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        page = self.pages.pop(0) if len(self.pages) > 1 else self.pages[0]
        return PollResult(news=make_news(*page))


class ManualTimer:
    """Replacement sleep that only returns when fire() is called."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self._gate: asyncio.Event | None = None

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self._gate = asyncio.Event()
        await self._gate.wait()

    def fire(self) -> None:
        self._gate.set()


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


def make_scheduler(aggregator, connectivity=None, **kwargs) -> PollingScheduler:
    kwargs.setdefault("sleep", ManualTimer())
    return PollingScheduler(aggregator, connectivity or ConnectivityMonitor(), **kwargs)


class TestPollingScheduler:
    """Tests for PollingScheduler lifecycle."""

    def test_start_polls_immediately(self) -> None:
        aggregator = FakeAggregator(("b", "a"))

        async def scenario() -> PollingScheduler:
            scheduler = make_scheduler(aggregator)
            await scheduler.start()
            await scheduler.wait_idle()
            await scheduler.stop()
            return scheduler

        scheduler = asyncio.run(scenario())
        assert aggregator.calls == 1
        assert scheduler.dashboard.cycle == 1
        assert [n.id for n in scheduler.dashboard.news] == ["b", "a"]

    def test_timer_ticks_poll_again(self) -> None:
        aggregator = FakeAggregator(("a",), ("c", "b", "a"))
        timer = ManualTimer()

        async def scenario() -> PollingScheduler:
            scheduler = make_scheduler(aggregator, interval=30.0, sleep=timer)
            await scheduler.start()
            await scheduler.wait_idle()
            await settle()
            timer.fire()
            await settle()
            await scheduler.wait_idle()
            await scheduler.stop()
            return scheduler

        scheduler = asyncio.run(scenario())
        assert aggregator.calls == 2
        assert timer.delays[0] == 30.0
        assert scheduler.dashboard.unread == 2

    def test_tick_skipped_while_in_flight(self) -> None:
        aggregator = FakeAggregator()

        async def scenario() -> list[bool]:
            aggregator.gate = asyncio.Event()
            scheduler = make_scheduler(aggregator)
            await scheduler.start()
            await settle()
            launched = [await scheduler.tick(), await scheduler.tick()]
            aggregator.gate.set()
            await scheduler.wait_idle()
            launched.append(await scheduler.tick())
            await scheduler.wait_idle()
            await scheduler.stop()
            return launched

        assert asyncio.run(scenario()) == [False, False, True]
        assert aggregator.calls == 2

    def test_offline_pauses_and_online_resumes(self) -> None:
        aggregator = FakeAggregator()
        connectivity = ConnectivityMonitor()

        async def scenario() -> list:
            scheduler = make_scheduler(aggregator, connectivity)
            await scheduler.start()
            await scheduler.wait_idle()

            connectivity.set_online(False)
            paused = (scheduler.state, await scheduler.tick(), scheduler.dashboard.online)

            connectivity.set_online(True)
            await scheduler.wait_idle()
            resumed = (scheduler.state, scheduler.dashboard.online)
            await scheduler.stop()
            return [paused, resumed]

        paused, resumed = asyncio.run(scenario())
        assert paused == (SchedulerState.PAUSED, False, False)
        assert resumed == (SchedulerState.POLLING, True)
        assert aggregator.calls == 2

    def test_start_offline_is_paused(self) -> None:
        aggregator = FakeAggregator()

        async def scenario() -> PollingScheduler:
            scheduler = make_scheduler(aggregator, ConnectivityMonitor(online=False))
            await scheduler.start()
            await settle()
            await scheduler.stop()
            return scheduler

        scheduler = asyncio.run(scenario())
        assert aggregator.calls == 0
        assert scheduler.dashboard.online is False

    def test_probe_drives_connectivity(self) -> None:
        aggregator = FakeAggregator()

        async def unreachable() -> bool:
            return False

        async def scenario() -> PollingScheduler:
            scheduler = make_scheduler(aggregator, ConnectivityMonitor(probe=unreachable))
            await scheduler.start()
            await settle()
            await scheduler.stop()
            return scheduler

        scheduler = asyncio.run(scenario())
        assert aggregator.calls == 0
        assert scheduler.dashboard.online is False

    def test_stop_discards_in_flight_result(self) -> None:
        aggregator = FakeAggregator()

        async def scenario() -> PollingScheduler:
            aggregator.gate = asyncio.Event()
            scheduler = make_scheduler(aggregator)
            await scheduler.start()
            await settle()
            await scheduler.stop()
            aggregator.gate.set()
            await scheduler.wait_idle()
            return scheduler

        scheduler = asyncio.run(scenario())
        assert aggregator.calls == 1
        assert scheduler.state is SchedulerState.STOPPED
        assert scheduler.dashboard.cycle == 0

    def test_cannot_restart_after_stop(self) -> None:
        async def scenario() -> None:
            scheduler = make_scheduler(FakeAggregator())
            await scheduler.stop()
            await scheduler.start()

        with pytest.raises(RuntimeError):
            asyncio.run(scenario())

    def test_failed_cycle_keeps_state(self, caplog) -> None:
        class BrokenAggregator:
            async def poll(self) -> PollResult:
                raise RuntimeError("boom")

        async def scenario() -> PollingScheduler:
            scheduler = make_scheduler(BrokenAggregator())
            await scheduler.start()
            await scheduler.wait_idle()
            await scheduler.stop()
            return scheduler

        scheduler = asyncio.run(scenario())
        assert scheduler.dashboard.cycle == 0
        assert "poll cycle failed" in caplog.text

    def test_listeners_and_mark_seen(self) -> None:
        aggregator = FakeAggregator(("a",), ("c", "b", "a"))
        seen: list[int] = []

        async def scenario() -> PollingScheduler:
            scheduler = make_scheduler(aggregator)
            scheduler.add_listener(lambda state: seen.append(state.unread))
            await scheduler.start()
            await scheduler.wait_idle()
            assert await scheduler.tick()
            await scheduler.wait_idle()
            scheduler.mark_news_seen()
            await scheduler.stop()
            return scheduler

        scheduler = asyncio.run(scenario())
        assert seen == [0, 2, 0]
        assert scheduler.dashboard.last_seen_id == "c"

    def test_closed_market_interval(self) -> None:
        scheduler = make_scheduler(
            FakeAggregator(), interval=30.0, closed_interval=300.0, market_open=lambda: False
        )
        assert scheduler.current_interval() == 300.0
        scheduler.closed_interval = None
        assert scheduler.current_interval() == 30.0
