"""Periodic trigger for timed analysis cycles.

Sleeps one polling interval, runs a timed cycle, repeats. Handles lifecycle
(start/shutdown) and keeps the loop alive across unexpected cycle errors.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from antitox.util.logger import get_logger

logger = get_logger("analysis_scheduler")


class AnalysisScheduler:
    """
    Runs ``run_cycle`` every ``interval`` seconds on an asyncio task.

    Args:
        run_cycle: Coroutine function executing one timed cycle.
        get_interval: Callable returning the interval in seconds (called at start).
        name: Label used in log lines.
    """

    def __init__(
        self,
        run_cycle: Callable[[], Awaitable[Any]],
        get_interval: Callable[[], float],
        name: str = "ANALYSIS",
    ) -> None:
        self._name = name
        self._run_cycle = run_cycle
        self._get_interval = get_interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()


    async def _run_loop(self, interval: float) -> None:
        """Infinite loop: sleep, run a cycle, repeat."""
        logger.info("[%s] Starting periodic analysis (interval=%.1fs)", self._name, interval)
        try:
            while True:
                await asyncio.sleep(interval)
                try:
                    await self._run_cycle()
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.error("[%s] Unexpected error during analysis cycle: %s", self._name, exc)
        except asyncio.CancelledError:
            logger.info("[%s] Periodic analysis cancelled", self._name)
            raise


    def start(self) -> None:
        """Start the background task if not already running."""
        if self.running:
            logger.warning("[%s] Analysis task already running", self._name)
            return
        interval = self._get_interval()
        logger.info("[%s] Creating analysis task with interval %.1fs", self._name, interval)
        self._task = asyncio.create_task(self._run_loop(interval))


    async def shutdown(self) -> None:
        """Stop the task and clear references."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

        logger.info("[%s] Scheduler shutdown complete", self._name)
