"""Tests for the periodic agent scheduler."""
import asyncio

import pytest

from daybook.client.agent import EnsureResult
from daybook.client.scheduler import AgentScheduler


class StubAgent:
    def __init__(self):
        self.calls = 0
        self.gate: asyncio.Event | None = None
        self.errors: list[Exception] = []

    async def ensure_active(self) -> EnsureResult:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        if self.gate is not None:
            await self.gate.wait()
        return EnsureResult(active=True)


async def wait_for_calls(agent: StubAgent, expected: int, timeout: float = 2.0) -> None:
    async def poll():
        while agent.calls < expected:
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout=timeout)


@pytest.mark.asyncio
async def test_overlapping_check_is_skipped():
    agent = StubAgent()
    agent.gate = asyncio.Event()
    scheduler = AgentScheduler(agent)

    first = asyncio.create_task(scheduler.run_once())
    await wait_for_calls(agent, 1)
    assert await scheduler.run_once() is None

    agent.gate.set()
    result = await first
    assert result.active is True
    assert agent.calls == 1


@pytest.mark.asyncio
async def test_crash_does_not_stop_later_checks():
    agent = StubAgent()
    agent.errors.append(RuntimeError("boom"))
    scheduler = AgentScheduler(agent)

    assert await scheduler.run_once() is None
    assert scheduler.last_result is None

    result = await scheduler.run_once()
    assert result.active is True
    assert agent.calls == 2


@pytest.mark.asyncio
async def test_focus_wakes_loop_after_first_check():
    agent = StubAgent()
    scheduler = AgentScheduler(agent, initial_delay=0, interval=3600)

    scheduler.start()
    assert scheduler.running
    await wait_for_calls(agent, 1)
    await asyncio.sleep(0.01)

    scheduler.notify_focus()
    await wait_for_calls(agent, 2)

    scheduler.notify_visibility(False)
    await asyncio.sleep(0.05)
    assert agent.calls == 2

    await scheduler.stop()
    assert not scheduler.running


@pytest.mark.asyncio
async def test_wake_ups_before_first_check_are_ignored():
    agent = StubAgent()
    scheduler = AgentScheduler(agent, initial_delay=3600, interval=3600)

    scheduler.start()
    scheduler.notify_visibility(True)
    scheduler.notify_focus()
    await asyncio.sleep(0.05)

    assert agent.calls == 0
    await scheduler.stop()
