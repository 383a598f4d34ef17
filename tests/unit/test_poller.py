"""Tests for the cancellable poll scheduler."""

from __future__ import annotations

import asyncio

import pytest

from fortilog.poller import PollScheduler


class Counter:
    def __init__(self, delay: float = 0.0) -> None:
        self.calls = 0
        self.finished = 0
        self.delay = delay

    async def __call__(self) -> None:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        self.finished += 1


class TestPollScheduler:
    def test_cancel_before_first_tick_runs_nothing(self) -> None:
        counter = Counter()

        async def scenario() -> None:
            scheduler = PollScheduler(counter, 5)
            scheduler.start()
            scheduler.cancel()
            await asyncio.sleep(0.05)
            assert not scheduler.running

        asyncio.run(scenario())
        assert counter.calls == 0

    def test_immediate_then_periodic(self) -> None:
        counter = Counter()

        async def scenario() -> None:
            scheduler = PollScheduler(counter, 0.05)
            scheduler.start()
            await asyncio.sleep(0.01)
            assert counter.calls == 1
            await asyncio.sleep(0.12)
            await scheduler.stop()

        asyncio.run(scenario())
        assert counter.calls >= 2

    def test_no_cycles_after_stop(self) -> None:
        counter = Counter()

        async def scenario() -> None:
            scheduler = PollScheduler(counter, 0.02)
            scheduler.start()
            await asyncio.sleep(0.05)
            await scheduler.stop()
            seen = counter.calls
            await asyncio.sleep(0.1)
            assert counter.calls == seen

        asyncio.run(scenario())

    def test_stop_cancels_inflight_cycle(self) -> None:
        counter = Counter(delay=1.0)

        async def scenario() -> None:
            scheduler = PollScheduler(counter, 5)
            scheduler.start()
            await asyncio.sleep(0.01)
            assert counter.calls == 1
            await scheduler.stop()

        asyncio.run(scenario())
        assert counter.finished == 0

    def test_cancel_is_idempotent_and_safe_unstarted(self) -> None:
        async def scenario() -> None:
            scheduler = PollScheduler(Counter(), 1)
            scheduler.cancel()
            await scheduler.stop()
            scheduler.start()
            scheduler.cancel()
            scheduler.cancel()
            await scheduler.stop()

        asyncio.run(scenario())

    def test_trigger_runs_independently(self) -> None:
        counter = Counter()

        async def scenario() -> None:
            scheduler = PollScheduler(counter, 60)
            await scheduler.trigger()
            await scheduler.trigger()

        asyncio.run(scenario())
        assert counter.calls == 2

    def test_failing_cycle_keeps_timer_alive(self) -> None:
        calls = []

        async def boom() -> None:
            calls.append(1)
            raise RuntimeError("boom")

        async def scenario() -> None:
            scheduler = PollScheduler(boom, 0.02)
            scheduler.start()
            await asyncio.sleep(0.07)
            assert scheduler.running
            await scheduler.stop()

        asyncio.run(scenario())
        assert len(calls) >= 2

    def test_rejects_non_positive_interval(self) -> None:
        with pytest.raises(ValueError):
            PollScheduler(Counter(), 0)
