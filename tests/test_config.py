from __future__ import annotations

import pytest
from pydantic import ValidationError

from cruiser.config import StoreOptions
from cruiser.exceptions import InvalidArgumentError
from cruiser.scheduling import AsyncioScheduler, ManualScheduler


def test_defaults_select_immediate_mode() -> None:
    options = StoreOptions()
    assert options.buffer_interval == 0.0
    assert options.buffered is False
    assert options.debug is False
    assert isinstance(options.resolved_scheduler(), AsyncioScheduler)


def test_camel_case_and_snake_case_keys_are_equivalent() -> None:
    camel = StoreOptions.coerce({"bufferInterval": 0.025, "debug": True})
    snake = StoreOptions.coerce({"buffer_interval": 0.025, "debug": True})
    assert camel == snake
    assert camel.buffered is True


def test_overrides_win_over_options() -> None:
    scheduler = ManualScheduler()
    base = StoreOptions(buffer_interval=1.0, scheduler=scheduler)

    options = StoreOptions.coerce(base, buffer_interval=0)
    assert options.buffer_interval == 0.0
    assert options.scheduler is scheduler
    assert options.resolved_scheduler() is scheduler

    options = StoreOptions.coerce({"bufferInterval": 2.0}, buffer_interval=0.5)
    assert options.buffer_interval == 0.5


@pytest.mark.parametrize(
    "options",
    [
        {"buffer_interval": -1},
        {"buffer_interval": float("inf")},
        {"bufferInterval": "soon"},
        {"unknown": True},
        {"scheduler": object()},
    ],
)
def test_invalid_options_raise_invalid_argument(options: dict[str, object]) -> None:
    with pytest.raises(InvalidArgumentError):
        StoreOptions.coerce(options)


def test_non_mapping_options_are_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        StoreOptions.coerce(25)  # type: ignore[arg-type]


def test_options_are_frozen() -> None:
    options = StoreOptions()
    with pytest.raises(ValidationError):
        options.debug = True  # type: ignore[misc]


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CRUISER_BUFFER_INTERVAL", "0.25")
    monkeypatch.setenv("CRUISER_DEBUG", "yes")

    options = StoreOptions.from_env()
    assert options.buffer_interval == 0.25
    assert options.debug is True


def test_from_env_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CRUISER_BUFFER_INTERVAL", "0.25")
    monkeypatch.setenv("CRUISER_DEBUG", "on")

    options = StoreOptions.from_env(buffer_interval=0, debug=False)
    assert options.buffer_interval == 0.0
    assert options.debug is False


def test_from_env_defaults_and_bad_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CRUISER_BUFFER_INTERVAL", raising=False)
    monkeypatch.setenv("CRUISER_DEBUG", "maybe")
    assert StoreOptions.from_env() == StoreOptions()

    monkeypatch.setenv("CRUISER_BUFFER_INTERVAL", "fast")
    with pytest.raises(InvalidArgumentError):
        StoreOptions.from_env()
