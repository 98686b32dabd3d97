"""
CommandDispatcher: serialized execution of moderation commands.

The analysis worker hands finished commands over with :meth:`submit` and
moves on; a single worker task executes them one at a time, so commands that
mutate the host's moderation state never race each other. A failed command is
logged and dropped; it is never retried and never affects the cycle that
produced it.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Iterable, Union

from antitox.util.logger import get_logger

logger = get_logger("action_dispatcher")

CommandExecutor = Callable[[str], Union[Awaitable[Any], Any]]


class CommandDispatcher:
    """
    Queue-backed, single-worker command executor.

    Args:
        execute: Callable receiving one command string; may be sync or async.
    """

    def __init__(self, execute: CommandExecutor) -> None:
        self._execute = execute
        self._queue: asyncio.Queue[str] | None = None
        self._worker: asyncio.Task[None] | None = None
        self.executed: int = 0
        self.failed: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the worker task if it is not already running."""
        if self._worker and not self._worker.done():
            return
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._run())
        logger.debug("[DISPATCH] Worker started")

    async def join(self) -> None:
        """Wait until every submitted command has been executed."""
        if self._queue is not None:
            await self._queue.join()

    async def shutdown(self) -> None:
        """Drain pending commands, then stop the worker."""
        if self._worker and not self._worker.done():
            await self.join()
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None
        logger.info("[DISPATCH] Dispatcher shutdown complete")

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, commands: Iterable[str]) -> int:
        """Enqueue commands for execution and return how many were queued."""
        self.start()
        assert self._queue is not None
        count = 0
        for command in commands:
            self._queue.put_nowait(command)
            count += 1
        if count:
            logger.debug("[DISPATCH] Queued %d commands", count)
        return count

    async def _run(self) -> None:
        assert self._queue is not None
        while True:
            command = await self._queue.get()
            try:
                logger.info("[DISPATCH] Executing: %s", command)
                result = self._execute(command)
                if inspect.isawaitable(result):
                    await result
                self.executed += 1
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self.failed += 1
                logger.error("[DISPATCH] Command error for '%s': %s", command, exc)
            finally:
                self._queue.task_done()
