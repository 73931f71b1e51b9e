"""
Cancellable delayed-callback schedulers used by the simulation runner
"""

import asyncio
import heapq
import itertools
import logging
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class CancelToken(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Runs ``callback`` once after ``delay_ms`` unless the token is cancelled."""

    def schedule_after(self, delay_ms: float, callback: Callable[[], None]) -> CancelToken:
        ...


class AsyncioCancelToken:
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler:
    """Scheduler backed by the event loop's ``call_later``"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule_after(self, delay_ms: float, callback: Callable[[], None]) -> AsyncioCancelToken:
        handle = self.loop.call_later(max(delay_ms, 0) / 1000.0, callback)
        return AsyncioCancelToken(handle)


class VirtualCancelToken:
    def __init__(self):
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler:
    """
    Deterministic scheduler driven by a virtual millisecond clock.

    Nothing runs until ``advance`` or ``run_until_idle`` is called. Callbacks
    due at the same instant run in scheduling order.
    """

    def __init__(self, start_ms: float = 0.0):
        self.now = start_ms
        self._queue: List[Tuple[float, int, VirtualCancelToken, Callable[[], None]]] = []
        self._counter = itertools.count()

    def schedule_after(self, delay_ms: float, callback: Callable[[], None]) -> VirtualCancelToken:
        token = VirtualCancelToken()
        heapq.heappush(self._queue, (self.now + max(delay_ms, 0), next(self._counter), token, callback))
        return token

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, token, _ in self._queue if not token.cancelled)

    def next_due(self) -> Optional[float]:
        self._drop_cancelled()
        return self._queue[0][0] if self._queue else None

    def advance(self, delay_ms: float) -> int:
        """Move the clock forward, running every callback that falls due. Returns the number run."""
        deadline = self.now + delay_ms
        executed = 0
        while True:
            due = self.next_due()
            if due is None or due > deadline:
                break
            executed += self._run_next()
        self.now = deadline
        return executed

    def run_until_idle(self, max_callbacks: int = 100000) -> int:
        """Run callbacks in due order until none are pending."""
        executed = 0
        while self.next_due() is not None:
            if executed >= max_callbacks:
                raise RuntimeError(f"Scheduler still busy after {max_callbacks} callbacks")
            executed += self._run_next()
        return executed

    def _run_next(self) -> int:
        due, _, token, callback = heapq.heappop(self._queue)
        self.now = max(self.now, due)
        if token.cancelled:
            return 0
        token.fired = True
        callback()
        return 1

    def _drop_cancelled(self):
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)
