"""Application state store.

The store is the only owner of the current state.  Transitions go through
the middleware chain, are applied immediately or in debounced batches
depending on ``buffer_interval``, and every committed state is delivered
to subscribers on the next scheduler tick.
"""

from __future__ import annotations

import copy
import functools
import logging
from collections.abc import Callable, Mapping
from typing import Any, Concatenate, Generic, ParamSpec, TypeVar

from cruiser._logrepr import summarize_for_log
from cruiser.config import StoreOptions
from cruiser.exceptions import InvalidArgumentError
from cruiser.state.dispatcher import BufferedDispatcher, ImmediateDispatcher, PendingAction
from cruiser.state.middleware import Middleware, Reducer, compose, describe, is_object_shaped
from cruiser.state.subscribers import Subscriber, SubscriberRegistry, Unsubscribe

_logger = logging.getLogger(__name__)

Model = TypeVar("Model")
P = ParamSpec("P")


def _require_object(value: Any, what: str) -> None:
    if not is_object_shaped(value):
        raise InvalidArgumentError(f"{what} must be an object, got {type(value).__name__}")


def _copy_state(state: Model) -> Model:
    # Deep copy when possible; states holding locks or handles fall back to a shallow copy.
    try:
        return copy.deepcopy(state)
    except (TypeError, copy.Error):
        pass
    try:
        return copy.copy(state)
    except (TypeError, copy.Error) as exc:
        raise InvalidArgumentError(f"Store state of type {type(state).__name__} cannot be copied") from exc


def _require_callable(value: Any, what: str) -> None:
    if not callable(value):
        raise InvalidArgumentError(f"{what} must be callable, got {type(value).__name__}")


class Store(Generic[Model]):
    """Holds one state value and publishes every change to subscribers.

    Usage::

        store = Store({"count": 0}, options={"bufferInterval": 0.025})
        store.subscribe(print)
        store.dispatch(increment, 2)

    ``get_state()`` returns the current state by reference.  Callers must
    treat it as read-only; transitions are expected to return new values
    rather than mutate the one they receive.
    """

    def __init__(
        self,
        initial_state: Model,
        *middleware: Middleware[Model],
        options: StoreOptions | Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> None:
        _require_object(initial_state, "Store state")
        self._options = StoreOptions.coerce(options, **overrides)
        self._chain = compose(middleware)
        self._scheduler = self._options.resolved_scheduler()
        self._subscribers: SubscriberRegistry[Model] = SubscriberRegistry()
        self._state: Model = _copy_state(initial_state)

        if self._options.buffered:
            self._dispatcher: ImmediateDispatcher[Model] | BufferedDispatcher[Model] = BufferedDispatcher(
                chain=self._chain,
                get_state=self.get_state,
                commit=self._commit,
                scheduler=self._scheduler,
                interval=self._options.buffer_interval,
            )
        else:
            self._dispatcher = ImmediateDispatcher(
                chain=self._chain,
                get_state=self.get_state,
                commit=self._commit,
            )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def buffered(self) -> bool:
        return self._dispatcher.buffered

    @property
    def options(self) -> StoreOptions:
        return self._options

    @property
    def pending(self) -> int:
        """Number of dispatched actions waiting for the next buffered flush."""
        return self._dispatcher.pending

    def get_state(self) -> Model:
        return self._state

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def set_state(self, state: Model) -> None:
        """Replace the state outright, bypassing middleware and the buffer."""
        _require_object(state, "Store state")
        self._commit(state)

    def dispatch(self, action: Callable[Concatenate[Model, P], Model], /, *args: P.args, **kwargs: P.kwargs) -> None:
        """Run ``action(state, *args, **kwargs)`` through the middleware chain.

        In immediate mode the new state is committed before this returns.
        In buffered mode the action is queued and applied with the next
        flush.  Either way nothing is returned; use :meth:`get_state` or a
        subscriber to observe the outcome.
        """
        _require_callable(action, "Action")
        self._dispatcher.dispatch(PendingAction(action, args, kwargs))

    def reduce(self, reducer: Reducer[Model]) -> None:
        """Dispatch a plain ``state -> state`` reducer."""
        self.dispatch(reducer)

    def bind_action(self, action: Callable[Concatenate[Model, P], Model]) -> Callable[P, None]:
        """Return a function that dispatches *action* with its call arguments."""
        _require_callable(action, "Action")

        @functools.wraps(action)
        def bound(*args: P.args, **kwargs: P.kwargs) -> None:
            self.dispatch(action, *args, **kwargs)

        return bound

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, subscriber: Subscriber[Model]) -> Unsubscribe:
        return self._subscribers.subscribe(subscriber)

    def unsubscribe(self, subscriber: Subscriber[Model]) -> bool:
        return self._subscribers.unsubscribe(subscriber)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _commit(self, state: Model) -> None:
        # Schedule before assigning so a scheduler failure leaves state untouched.
        subscribers = self._subscribers.snapshot()
        if subscribers:
            self._scheduler.schedule(functools.partial(self._deliver, state, subscribers))
        self._state = state

        if self._options.debug and _logger.isEnabledFor(logging.DEBUG):
            _logger.debug(
                "State committed (subscribers=%d): %s",
                len(subscribers),
                summarize_for_log(state),
            )

    def _deliver(self, state: Model, subscribers: tuple[Subscriber[Model], ...]) -> None:
        self._subscribers.notify_all(state, subscribers=subscribers, on_error=self._on_subscriber_error)

    def _on_subscriber_error(self, subscriber: Callable[[Any], Any], exc: Exception) -> None:
        _logger.error("Subscriber %s failed", describe(subscriber), exc_info=exc)

    def __repr__(self) -> str:
        mode = f"buffered={self._options.buffer_interval}s" if self.buffered else "immediate"
        return f"<{type(self).__name__} {mode} middleware={len(self._chain)} subscribers={len(self._subscribers)}>"


def create_store(
    initial_state: Model,
    *middleware: Middleware[Model],
    options: StoreOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> Store[Model]:
    """Create a :class:`Store`.

    *options* may be a :class:`~cruiser.config.StoreOptions` or a mapping
    with snake_case or camelCase keys; keyword *overrides* win over both.
    """
    return Store(initial_state, *middleware, options=options, **overrides)
