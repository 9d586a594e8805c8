"""Immediate and buffered dispatch strategies.

A dispatcher decides *when* an action is run through the middleware
chain.  The store hands it two callables, one reading the current state
and one committing a new state (which also schedules the notification),
so a dispatcher never holds state of its own beyond its pending buffer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from cruiser.scheduling import ScheduledHandle, Scheduler
from cruiser.state.middleware import MiddlewareChain

_logger = logging.getLogger(__name__)

Model = TypeVar("Model")


@dataclass(frozen=True, slots=True)
class PendingAction(Generic[Model]):
    """An action together with the arguments it was dispatched with."""

    action: Callable[..., Model]
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)

    def apply(self, state: Model) -> Model:
        return self.action(state, *self.args, **self.kwargs)


class ImmediateDispatcher(Generic[Model]):
    """Apply every dispatch synchronously, before ``dispatch`` returns."""

    buffered = False

    def __init__(
        self,
        *,
        chain: MiddlewareChain[Model],
        get_state: Callable[[], Model],
        commit: Callable[[Model], None],
    ) -> None:
        self._chain = chain
        self._get_state = get_state
        self._commit = commit

    @property
    def pending(self) -> int:
        return 0

    def dispatch(self, pending: PendingAction[Model]) -> None:
        self._commit(self._chain.run(self._get_state(), pending.apply))


class BufferedDispatcher(Generic[Model]):
    """Debounce dispatches and apply them as one batch.

    Every dispatch restarts a single timer of ``interval`` seconds.  Once
    the timer fires, queued actions are applied in FIFO order, each seeing
    the result of the previous one, and only the final state is committed.
    A failing action discards the whole batch and leaves the current state
    untouched; the error propagates out of the flush callback.
    """

    buffered = True

    def __init__(
        self,
        *,
        chain: MiddlewareChain[Model],
        get_state: Callable[[], Model],
        commit: Callable[[Model], None],
        scheduler: Scheduler,
        interval: float,
    ) -> None:
        if interval <= 0:
            raise ValueError("BufferedDispatcher requires a positive interval")
        self._chain = chain
        self._get_state = get_state
        self._commit = commit
        self._scheduler = scheduler
        self._interval = interval
        self._pending: list[PendingAction[Model]] = []
        self._timer: ScheduledHandle | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def pending(self) -> int:
        return len(self._pending)

    def dispatch(self, pending: PendingAction[Model]) -> None:
        timer = self._scheduler.schedule(self._flush, self._interval)
        if self._timer is not None:
            self._scheduler.cancel(self._timer)
        self._timer = timer
        self._pending.append(pending)

    def _flush(self) -> None:
        self._timer = None
        batch, self._pending = self._pending, []
        if not batch:
            return

        state = self._get_state()
        try:
            for pending in batch:
                state = self._chain.run(state, pending.apply)
        except Exception:
            _logger.exception("Discarded buffered batch of %d action(s)", len(batch))
            raise

        _logger.debug("Flushed buffered batch of %d action(s)", len(batch))
        self._commit(state)
