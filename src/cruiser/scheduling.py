"""Scheduling capabilities used by the store.

The store never looks up a "next tick" primitive from its environment.
It is handed a :class:`Scheduler` and only ever asks it to run a callback
after a delay, or to cancel one it asked for earlier.

Two implementations ship with the library:

* :class:`AsyncioScheduler` runs callbacks on an asyncio event loop and
  is what stores use by default.
* :class:`ManualScheduler` keeps a virtual clock that only moves when
  told to, which makes debounce timing fully deterministic in tests and
  usable from plain synchronous code.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from cruiser.exceptions import SchedulerUnavailableError

_logger = logging.getLogger(__name__)

Callback = Callable[[], Any]


@runtime_checkable
class ScheduledHandle(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    """What the store needs from its host environment."""

    def schedule(self, callback: Callback, delay: float = 0.0) -> ScheduledHandle: ...

    def cancel(self, handle: ScheduledHandle) -> None: ...


class AsyncioScheduler:
    """Schedule callbacks on an asyncio event loop.

    Without an explicit *loop* the running loop is looked up each time a
    callback is scheduled, so one scheduler can serve stores created
    before the loop started.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError as exc:
            raise SchedulerUnavailableError(
                "No running event loop; pass a scheduler such as ManualScheduler "
                "when using a store outside asyncio"
            ) from exc

    def schedule(self, callback: Callback, delay: float = 0.0) -> asyncio.Handle:
        loop = self._resolve_loop()
        if delay <= 0:
            return loop.call_soon(callback)
        return loop.call_later(delay, callback)

    def cancel(self, handle: ScheduledHandle) -> None:
        handle.cancel()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(loop={self._loop!r})"


@dataclass(slots=True)
class ManualHandle:
    """A callback queued on a :class:`ManualScheduler`."""

    due: float
    seq: int
    callback: Callback = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by an explicit virtual clock.

    Callbacks never run on their own; :meth:`advance`, :meth:`run_pending`
    and :meth:`run_all` execute whatever has come due, in due-time order
    and FIFO among callbacks due at the same instant.  Callbacks scheduled
    while advancing run in the same call if they fall due before it ends.
    """

    def __init__(self, *, start: float = 0.0) -> None:
        self._now = start
        self._heap: list[tuple[float, int, ManualHandle]] = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that are neither run nor cancelled."""
        return sum(1 for _, _, handle in self._heap if not handle.cancelled)

    def schedule(self, callback: Callback, delay: float = 0.0) -> ManualHandle:
        handle = ManualHandle(due=self._now + max(delay, 0.0), seq=next(self._seq), callback=callback)
        heapq.heappush(self._heap, (handle.due, handle.seq, handle))
        return handle

    def cancel(self, handle: ScheduledHandle) -> None:
        handle.cancel()

    def advance(self, seconds: float = 0.0) -> int:
        """Move the clock forward by *seconds* and run everything now due.

        Returns the number of callbacks executed.  If a callback raises, the
        clock still ends at the target time and callbacks that were due but
        not yet run stay queued for the next call.
        """
        if seconds < 0:
            raise ValueError("ManualScheduler cannot move backwards")
        target = self._now + seconds
        ran = 0
        try:
            while self._heap and self._heap[0][0] <= target:
                due, _, handle = heapq.heappop(self._heap)
                if handle.cancelled:
                    continue
                self._now = max(self._now, due)
                ran += 1
                handle.callback()
        finally:
            self._now = target
        return ran

    def run_pending(self) -> int:
        """Run callbacks due at the current time without moving the clock."""
        return self.advance(0.0)

    def run_all(self, *, limit: int = 10_000) -> int:
        """Run until nothing is scheduled, jumping the clock as needed."""
        ran = 0
        while self._heap:
            due = self._heap[0][0]
            ran += self.advance(max(due - self._now, 0.0))
            if ran > limit:
                raise RuntimeError(f"ManualScheduler.run_all exceeded {limit} callbacks")
        _logger.debug("ManualScheduler drained at t=%.6f (ran=%d)", self._now, ran)
        return ran
