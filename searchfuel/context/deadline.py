"""
Deadline and cancellation for pipeline fan-out.

A Deadline is created once per run and handed to every stage that
waits on the network. Fan-out stages gather whatever finished before
the deadline (or a cancel signal) and cancel the rest.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, List, Optional, Sequence

logger = logging.getLogger(__name__)


class Deadline:
    """
    Overall time budget plus an optional external cancel signal.

    Deadline() with no arguments never expires.
    """

    def __init__(
        self,
        seconds: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self.seconds = seconds
        self.cancel_event = cancel_event
        self._expires_at = time.monotonic() + seconds if seconds is not None else None

    def remaining(self) -> Optional[float]:
        """Seconds left, or None when unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    @property
    def expired(self) -> bool:
        if self.cancelled:
            return True
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def clamp(self, timeout: float) -> float:
        """Shrink a per-call timeout to the time left."""
        remaining = self.remaining()
        return timeout if remaining is None else min(timeout, remaining)

    async def run(self, awaitable: Awaitable, default: Any = None) -> Any:
        """Await one call under the deadline, returning default if it does not finish."""
        result = (await self.gather_partial([awaitable]))[0]
        return default if result is None else result

    async def gather_partial(self, awaitables: Sequence[Awaitable]) -> List[Optional[Any]]:
        """
        Run awaitables concurrently until all finish or the deadline hits.

        Results keep input order. Entries are None for tasks that were still
        running at the deadline (they get cancelled) or that raised.
        """
        tasks = [asyncio.ensure_future(a) for a in awaitables]
        if not tasks:
            return []

        pending = set(tasks)
        cancel_waiter = (
            asyncio.ensure_future(self.cancel_event.wait()) if self.cancel_event else None
        )

        try:
            while pending and not self.expired:
                waiting = (pending | {cancel_waiter}) if cancel_waiter else pending
                done, _ = await asyncio.wait(
                    waiting,
                    timeout=self.remaining(),
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if not done:
                    break
                pending -= done
        finally:
            if cancel_waiter:
                cancel_waiter.cancel()
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if pending:
            reason = "cancelled" if self.cancelled else "deadline reached"
            logger.warning(f"{reason}: {len(pending)} of {len(tasks)} tasks did not finish")

        results: List[Optional[Any]] = []
        for task in tasks:
            if task.cancelled():
                results.append(None)
            elif task.exception() is not None:
                logger.warning(f"Task failed: {task.exception()!r}")
                results.append(None)
            else:
                results.append(task.result())
        return results
