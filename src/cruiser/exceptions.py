"""Custom exception hierarchy for cruiser."""

from __future__ import annotations

from typing import Any


class CruiserError(Exception):
    """Base exception for all cruiser errors."""


class InvalidArgumentError(CruiserError, TypeError):
    """A store API was called with an unusable argument.

    Raised for non-callable subscribers and actions, non-object state
    values, and invalid store options.  Always raised before any state
    is touched.
    """


class InvalidMiddlewareError(CruiserError, TypeError):
    """Middleware does not honour the ``(state, next)`` contract.

    Raised by :func:`cruiser.state.middleware.compose` for entries that
    are not callables of exactly two positional parameters, and at run
    time when a middleware calls its ``next`` continuation twice.
    """

    def __init__(
        self,
        message: str,
        *,
        middleware: Any = None,
        index: int | None = None,
    ) -> None:
        self.middleware = middleware
        self.index = index
        super().__init__(message)


class NonObjectResultError(CruiserError, TypeError):
    """A middleware or reducer returned a non-object value.

    The transition that produced it is abandoned and the store keeps
    the state it had before the dispatch.
    """

    def __init__(self, message: str, *, result: Any = None, step: Any = None) -> None:
        self.result = result
        self.step = step
        super().__init__(message)


class SchedulerUnavailableError(CruiserError, RuntimeError):
    """No event loop is available to schedule store callbacks on.

    Pass an explicit scheduler (for example
    :class:`cruiser.scheduling.ManualScheduler`) when using a store
    outside of a running asyncio loop.
    """
