"""Middleware chain composition.

A chain wraps every state transition in an "onion" of middleware:

    outer(state, next) -> inner(state, next) -> reducer(state)

Each middleware decides whether to forward to the rest of the chain by
calling ``next`` (at most once), or to short-circuit by returning a state
itself.  Every value a step returns must be object-shaped.
"""

from __future__ import annotations

import inspect
import numbers
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar

from cruiser.exceptions import InvalidMiddlewareError, NonObjectResultError

Model = TypeVar("Model")

NextFn = Callable[[Model], Model]
Middleware = Callable[[Model, NextFn[Model]], Model]
Reducer = Callable[[Model], Model]

_SCALAR_TYPES: tuple[type, ...] = (bool, numbers.Number, str, bytes, bytearray)

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def is_object_shaped(value: Any) -> bool:
    """Return ``True`` unless *value* is ``None`` or a scalar.

    Scalars are booleans, numbers, strings and byte strings.  Containers,
    dataclasses, pydantic models and arbitrary instances all qualify as
    state.
    """
    return value is not None and not isinstance(value, _SCALAR_TYPES)


def describe(fn: Any) -> str:
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)


def _accepts_state_and_next(fn: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return False

    # Callable as fn(state, next): at most two required, at least two accepted.
    required = accepted = 0
    var_positional = False
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            var_positional = True
        elif param.kind in _POSITIONAL_KINDS:
            accepted += 1
            if param.default is inspect.Parameter.empty:
                required += 1
        elif param.kind is inspect.Parameter.KEYWORD_ONLY and param.default is inspect.Parameter.empty:
            return False
    return required <= 2 and (var_positional or accepted >= 2)


def _check_result(result: Any, step: Any) -> Any:
    if not is_object_shaped(result):
        raise NonObjectResultError(
            f"{describe(step)} returned {type(result).__name__!r}; an object-shaped state was expected",
            result=result,
            step=step,
        )
    return result


class _ChainRun(Generic[Model]):
    """State of a single traversal of a :class:`MiddlewareChain`."""

    __slots__ = ("_middleware", "_terminal", "_consumed")

    def __init__(self, middleware: tuple[Middleware[Model], ...], terminal: Reducer[Model]) -> None:
        self._middleware = middleware
        self._terminal = terminal
        self._consumed: set[int] = set()

    def step(self, index: int, state: Model) -> Model:
        if index == len(self._middleware):
            return _check_result(self._terminal(state), self._terminal)

        middleware = self._middleware[index]

        def next_fn(value: Model) -> Model:
            if index in self._consumed:
                raise InvalidMiddlewareError(
                    f"Middleware {describe(middleware)} (index {index}) called next() more than once",
                    middleware=middleware,
                    index=index,
                )
            self._consumed.add(index)
            return self.step(index + 1, value)

        return _check_result(middleware(state, next_fn), middleware)


class MiddlewareChain(Generic[Model]):
    """An immutable, reusable sequence of validated middleware."""

    __slots__ = ("_middleware",)

    def __init__(self, middleware: tuple[Middleware[Model], ...]) -> None:
        self._middleware = middleware

    @property
    def middleware(self) -> tuple[Middleware[Model], ...]:
        return self._middleware

    def run(self, state: Model, terminal: Reducer[Model]) -> Model:
        """Push *state* through every middleware and finally *terminal*.

        Raises :class:`~cruiser.exceptions.NonObjectResultError` if any
        step returns a non-object, and
        :class:`~cruiser.exceptions.InvalidMiddlewareError` if a middleware
        calls its continuation twice.
        """
        return _ChainRun(self._middleware, terminal).step(0, state)

    def __len__(self) -> int:
        return len(self._middleware)

    def __repr__(self) -> str:
        names = ", ".join(describe(fn) for fn in self._middleware)
        return f"MiddlewareChain([{names}])"


def compose(middleware: Iterable[Middleware[Model]] = ()) -> MiddlewareChain[Model]:
    """Validate *middleware* and build a :class:`MiddlewareChain`.

    Every entry must be callable with exactly two positional arguments,
    ``(state, next)``.
    """
    chain = tuple(middleware)
    for index, fn in enumerate(chain):
        if not callable(fn):
            raise InvalidMiddlewareError(
                f"Middleware at index {index} is not callable: {fn!r}",
                middleware=fn,
                index=index,
            )
        if not _accepts_state_and_next(fn):
            raise InvalidMiddlewareError(
                f"Middleware {describe(fn)} (index {index}) must take exactly two parameters (state, next)",
                middleware=fn,
                index=index,
            )
    return MiddlewareChain(chain)
