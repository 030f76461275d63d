# ============================================================================
# WORKER LOOP
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Worker - Self-rescheduling cycle driver
# PURPOSE: Run a processor cycle, wait, repeat until stopped
# CREATED: 19 OCT 2026
# ============================================================================
"""
Worker Loop

Drives one coroutine forever:

    cycle() -> wait `delay_seconds` (or until stop) -> cycle() -> ...

The delay is measured from the end of a cycle, so a loop never overlaps
itself. A cycle that raises is logged with its traceback and the loop keeps
going. stop() lets the in-flight cycle finish; jobs are never abandoned
mid-send.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

from core.contracts import utcnow
from core.logging import log_context

logger = logging.getLogger(__name__)


class WorkerLoop:
    """
    Background loop around one async cycle.

    Usage:
        loop = WorkerLoop("email", processor.run_cycle, delay_seconds=10)
        await loop.start()
        ...
        await loop.stop()
    """

    def __init__(
        self,
        name: str,
        cycle: Callable[[], Awaitable[Any]],
        delay_seconds: float,
    ):
        self.name = name
        self._cycle = cycle
        self.delay_seconds = delay_seconds

        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

        # Metrics
        self._started_at: Optional[datetime] = None
        self._cycles = 0
        self._errors = 0
        self._last_cycle_at: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._last_cycle_ok = True
        self._last_result: Any = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        """Start the loop as a background task."""
        if self.is_running:
            logger.warning(f"Loop {self.name} already running")
            return

        self._stop_event.clear()
        self._started_at = utcnow()
        self._task = asyncio.create_task(self.run(), name=f"worker-loop-{self.name}")
        logger.info(f"Loop {self.name} started (delay={self.delay_seconds}s)")

    async def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the loop after the in-flight cycle completes.

        Args:
            timeout: cancel the cycle if it has not finished after this many
                seconds; None waits indefinitely
        """
        self._stop_event.set()
        task, self._task = self._task, None
        if task is None:
            return

        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Loop {self.name} did not drain within {timeout}s, cancelling")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        logger.info(f"Loop {self.name} stopped after {self._cycles} cycles")

    # =========================================================================
    # LOOP
    # =========================================================================

    async def run(self) -> None:
        """Run cycles until stop() is called."""
        while not self._stop_event.is_set():
            await self.run_once()

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.delay_seconds)
                break  # Stop event was set
            except asyncio.TimeoutError:
                pass  # Next cycle

    async def run_once(self) -> Any:
        """One cycle with error capture. Returns the cycle result or None."""
        with log_context(worker=self.name):
            try:
                result = await self._cycle()
            except Exception as e:
                self._errors += 1
                self._last_error = str(e) or type(e).__name__
                self._last_cycle_ok = False
                logger.exception(f"Cycle error in loop {self.name}: {e}")
                result = None
            else:
                self._last_result = result
                self._last_cycle_ok = True
            finally:
                self._cycles += 1
                self._last_cycle_at = utcnow()
        return result

    # =========================================================================
    # STATS
    # =========================================================================

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "running": self.is_running,
            "delay_seconds": self.delay_seconds,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "cycles": self._cycles,
            "errors": self._errors,
            "last_cycle_at": self._last_cycle_at.isoformat() if self._last_cycle_at else None,
            "last_cycle_ok": self._last_cycle_ok,
            "last_error": self._last_error,
        }


__all__ = ["WorkerLoop"]
