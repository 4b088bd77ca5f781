"""Periodic driver for the push subscription agent."""
from __future__ import annotations

import asyncio
from typing import Optional

from loguru import logger

from daybook.client.agent import EnsureResult, PushSubscriptionAgent

INITIAL_DELAY_SECONDS = 2.0
CHECK_INTERVAL_SECONDS = 5 * 60.0


class AgentScheduler:
    """Runs ``ensure_active`` on a timer and on visibility/focus wake-ups.

    All triggers feed one loop, so checks never overlap. A wake-up that
    arrives during a check queues exactly one follow-up check; further
    wake-ups coalesce into it.
    """

    def __init__(
        self,
        agent: PushSubscriptionAgent,
        initial_delay: float = INITIAL_DELAY_SECONDS,
        interval: float = CHECK_INTERVAL_SECONDS,
    ):
        self.agent = agent
        self.initial_delay = initial_delay
        self.interval = interval
        self._wake = asyncio.Event()
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._first_check_done = False
        self.last_result: Optional[EnsureResult] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="push-agent-scheduler")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def notify_visibility(self, visible: bool) -> None:
        if visible:
            self._wake_up()

    def notify_focus(self) -> None:
        self._wake_up()

    async def run_once(self) -> Optional[EnsureResult]:
        """Run a single check unless one is already in flight."""

        if self._lock.locked():
            return None
        async with self._lock:
            try:
                self.last_result = await self.agent.ensure_active()
            except Exception:  # keep the loop alive; the next tick retries
                logger.exception("Push agent check crashed")
                self.last_result = None
            return self.last_result

    def _wake_up(self) -> None:
        # Ignored until the first timed check has run.
        if self._first_check_done and self.running:
            self._wake.set()

    async def _run(self) -> None:
        await asyncio.sleep(self.initial_delay)
        while True:
            self._wake.clear()
            await self.run_once()
            self._first_check_done = True
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
