"""
Background pruning of expired session rows.

The Pruner runs one asyncio task that loops: run a prune pass, then wait
``interval`` seconds, until it is stopped. The first pass runs as soon as
the task is scheduled. Because the wait only starts after a pass has
finished, two passes are never in flight at once.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Literal, Optional, Union

logger = logging.getLogger(__name__)

PruneFunc = Callable[[], Awaitable[Any]]
SleepFunc = Callable[[float], Awaitable[Any]]


class Pruner:
    """
    Self-rescheduling prune loop.

    A failed pass is logged and handed to ``on_error``; the loop keeps
    going. stop() cancels a pending wait but never an in-flight pass:
    that pass completes and the loop exits without scheduling another.

    Attributes:
        interval: Seconds between passes, or False when pruning is disabled
        passes: Number of passes completed (successful or not)
    """

    def __init__(
        self,
        prune: PruneFunc,
        interval: Union[float, Literal[False]],
        *,
        sleep: SleepFunc = asyncio.sleep,
        on_error: Optional[Callable[[BaseException], Any]] = None,
    ):
        self.interval = interval
        self.passes = 0
        self._prune = prune
        self._sleep = sleep
        self._on_error = on_error
        self._task: Optional[asyncio.Task] = None
        self._stopped = False
        self._waiting = False

    @property
    def enabled(self) -> bool:
        return self.interval is not False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start(self) -> bool:
        """
        Schedule the loop on the running event loop.

        Returns:
            True if a task was started; False if pruning is disabled, the
            pruner was stopped, or the loop is already running.
        """
        if not self.enabled or self._stopped or self.running:
            return False

        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="session-pruner"
        )
        logger.debug(
            "Session pruner started",
            extra={"extra_data": {"interval_seconds": self.interval}}
        )
        return True

    def stop(self) -> None:
        """Stop rescheduling and cancel a pending wait, if any."""
        self._stopped = True
        if self._task is not None and self._waiting:
            self._task.cancel()

    async def wait_stopped(self) -> None:
        """Wait for the background task to finish after stop()."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise

    async def _run(self) -> None:
        while not self._stopped:
            await self._run_pass()

            if self._stopped or not self.enabled:
                return

            self._waiting = True
            try:
                await self._sleep(self.interval)
            finally:
                self._waiting = False

    async def _run_pass(self) -> None:
        try:
            await self._prune()
        except Exception as e:
            logger.error(
                "Session prune pass failed: %s",
                e,
                exc_info=True,
                extra={"extra_data": {"error_type": type(e).__name__}}
            )
            self._report(e)
        finally:
            self.passes += 1

    def _report(self, error: BaseException) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("Prune error listener raised")
