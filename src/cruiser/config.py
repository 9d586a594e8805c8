"""Store configuration for cruiser."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from cruiser.exceptions import InvalidArgumentError
from cruiser.scheduling import AsyncioScheduler, Scheduler


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


class StoreOptions(BaseModel):
    """Options recognised at store construction.

    Keys may be given in snake_case or camelCase, so
    ``{"bufferInterval": 0.025}`` and ``{"buffer_interval": 0.025}`` are
    equivalent.

    Parameters
    ----------
    buffer_interval : float
        Coalescing window in seconds.  ``0`` applies every dispatch
        immediately; any positive value debounces dispatches and flushes
        them as one batch once no new dispatch arrived for a full window.
    debug : bool
        Log every committed transition at DEBUG level.
    scheduler : Scheduler or None
        Host scheduling capability.  ``None`` uses an
        :class:`~cruiser.scheduling.AsyncioScheduler` bound to the running
        loop.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
        arbitrary_types_allowed=True,
    )

    buffer_interval: float = Field(default=0.0, ge=0.0, allow_inf_nan=False)
    debug: bool = False
    # Any host object with schedule/cancel; checked in _check_scheduler.
    scheduler: Any = None

    @field_validator("scheduler")
    @classmethod
    def _check_scheduler(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, Scheduler):
            raise ValueError("scheduler must provide schedule(callback, delay) and cancel(handle)")
        return value

    @property
    def buffered(self) -> bool:
        return self.buffer_interval > 0

    def resolved_scheduler(self) -> Scheduler:
        if self.scheduler is not None:
            return self.scheduler
        return AsyncioScheduler()

    @classmethod
    def coerce(cls, options: StoreOptions | Mapping[str, Any] | None = None, **overrides: Any) -> StoreOptions:
        """Normalise *options* into a :class:`StoreOptions`.

        Explicit keyword overrides take precedence over values in
        *options*.  Invalid input raises
        :class:`~cruiser.exceptions.InvalidArgumentError`.
        """
        if options is None:
            values: dict[str, Any] = {}
        elif isinstance(options, StoreOptions):
            values = {name: getattr(options, name) for name in type(options).model_fields}
        elif isinstance(options, Mapping):
            values = dict(options)
        else:
            raise InvalidArgumentError(f"Store options must be a mapping or StoreOptions, got {type(options).__name__}")

        for key, value in overrides.items():
            values.pop(to_camel(key), None)
            values[key] = value

        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise InvalidArgumentError(f"Invalid store options: {exc}") from exc

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreOptions:
        """Create options from environment variables.

        Reads ``CRUISER_BUFFER_INTERVAL`` (seconds) and ``CRUISER_DEBUG``.
        Explicit keyword arguments override environment values.
        """
        env = os.environ
        values: dict[str, Any] = {}

        interval_env = env.get("CRUISER_BUFFER_INTERVAL")
        if interval_env is not None and "buffer_interval" not in overrides:
            try:
                values["buffer_interval"] = float(interval_env)
            except ValueError as exc:
                raise InvalidArgumentError(f"CRUISER_BUFFER_INTERVAL is not a number: {interval_env!r}") from exc

        if "debug" not in overrides:
            values["debug"] = _env_bool(env.get("CRUISER_DEBUG"), False)

        return cls.coerce(values, **overrides)
