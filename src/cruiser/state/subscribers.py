"""Ordered registry of state-change listeners."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

from cruiser.exceptions import InvalidArgumentError

Model = TypeVar("Model")

Subscriber = Callable[[Model], Any]
Unsubscribe = Callable[[], bool]
SubscriberErrorHook = Callable[[Callable[[Any], Any], Exception], None]


class SubscriberRegistry(Generic[Model]):
    """Registration-ordered set of subscribers.

    A subscriber is registered at most once.  Two callables count as the
    same subscriber when they compare equal, which for plain functions is
    identity and for bound methods means the same instance and function.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber[Model]] = []

    def subscribe(self, subscriber: Subscriber[Model]) -> Unsubscribe:
        """Register *subscriber* and return a handle that removes it again.

        The handle removes exactly this subscriber and may be called any
        number of times; it returns ``True`` only for the call that
        actually removed it.
        """
        if not callable(subscriber):
            raise InvalidArgumentError(f"Subscriber must be callable, got {type(subscriber).__name__}")

        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)

        def unsubscribe() -> bool:
            return self.unsubscribe(subscriber)

        return unsubscribe

    def unsubscribe(self, subscriber: Subscriber[Model]) -> bool:
        """Remove *subscriber* if registered; missing subscribers are ignored."""
        try:
            self._subscribers.remove(subscriber)
        except ValueError:
            return False
        return True

    def snapshot(self) -> tuple[Subscriber[Model], ...]:
        return tuple(self._subscribers)

    def notify_all(
        self,
        state: Model,
        *,
        subscribers: tuple[Subscriber[Model], ...] | None = None,
        on_error: SubscriberErrorHook | None = None,
    ) -> None:
        """Call each subscriber with *state* in registration order.

        *subscribers* is a snapshot taken earlier with :meth:`snapshot`;
        when omitted the current registrations are snapshotted first, so
        subscribers added during delivery wait for the next notification.

        Exceptions raised by a subscriber propagate unless *on_error* is
        given, in which case every call is isolated and failures are
        handed to *on_error* instead.
        """
        targets = self.snapshot() if subscribers is None else subscribers
        for subscriber in targets:
            if on_error is None:
                subscriber(state)
                continue
            try:
                subscriber(state)
            except Exception as exc:
                on_error(subscriber, exc)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, subscriber: object) -> bool:
        return subscriber in self._subscribers

    def __iter__(self) -> Iterator[Subscriber[Model]]:
        return iter(self.snapshot())
