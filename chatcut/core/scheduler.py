"""
Headless event loop with the tkinter `after` interface.

Everything that mutates editor state runs on the thread that drives the
loop. Worker threads hand results back with `after(0, callback, ...)`;
that call is safe from any thread.
"""

import heapq
import itertools
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..utils.logging_utils import DualLogger, get_log_helper


class LoopScheduler:
    """Single-threaded timer queue: after(ms, callback, *args) -> token, after_cancel(token)."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[DualLogger] = None,
        verbose: bool = False
    ):
        self.clock = clock
        self.log = get_log_helper(logger, verbose)
        self._queue: List[Tuple[float, int, str]] = []
        self._callbacks: Dict[str, Tuple[Callable, tuple]] = {}
        self._counter = itertools.count(1)
        self._cond = threading.Condition()

    def after(self, ms: float, callback: Callable, *args: Any) -> str:
        """Schedule callback(*args) in ms milliseconds; returns a cancellation token."""
        with self._cond:
            seq = next(self._counter)
            token = f"after#{seq}"
            due = self.clock() + max(ms, 0) / 1000.0
            self._callbacks[token] = (callback, args)
            heapq.heappush(self._queue, (due, seq, token))
            self._cond.notify()
        return token

    def after_cancel(self, token: Optional[str]) -> None:
        """Cancel a pending callback. Unknown or already-fired tokens are ignored."""
        if token is None:
            return
        with self._cond:
            self._callbacks.pop(token, None)

    @property
    def pending(self) -> int:
        with self._cond:
            return len(self._callbacks)

    def _pop_due(self) -> Optional[Tuple[Callable, tuple]]:
        with self._cond:
            now = self.clock()
            while self._queue and self._queue[0][0] <= now:
                _, _, token = heapq.heappop(self._queue)
                entry = self._callbacks.pop(token, None)
                if entry is not None:
                    return entry
            return None

    def _next_due(self) -> Optional[float]:
        with self._cond:
            while self._queue and self._queue[0][2] not in self._callbacks:
                heapq.heappop(self._queue)
            return self._queue[0][0] if self._queue else None

    def run_pending(self) -> int:
        """
        Run every callback that is due now.

        Callbacks scheduled while draining with a zero delay run in the
        same pass. Returns the number of callbacks executed.
        """
        executed = 0
        while True:
            entry = self._pop_due()
            if entry is None:
                return executed
            callback, args = entry
            callback(*args)
            executed += 1

    def run(self, duration: Optional[float] = None, until: Optional[Callable[[], bool]] = None) -> None:
        """
        Drive the loop on the calling thread.

        Args:
            duration: Stop after this many seconds (None = no limit)
            until: Stop once this predicate returns True (checked after each pass)
        """
        deadline = None if duration is None else self.clock() + duration
        while True:
            self.run_pending()
            if until is not None and until():
                return
            now = self.clock()
            if deadline is not None and now >= deadline:
                return
            next_due = self._next_due()
            if next_due is None and deadline is None and until is None:
                return
            wait_until = next_due if next_due is not None else deadline
            if deadline is not None and wait_until is not None:
                wait_until = min(wait_until, deadline)
            timeout = 0.05 if wait_until is None else max(0.0, min(wait_until - now, 0.05))
            with self._cond:
                self._cond.wait(timeout)
