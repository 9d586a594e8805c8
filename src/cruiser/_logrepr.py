"""Helpers for bounded debug logging of state values.

State trees can be arbitrarily large and deep.  This module renders a
size-limited copy of a value before it is handed to a DEBUG log call so
that a single transition never floods the log.
"""

from __future__ import annotations

import dataclasses
import itertools
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel


def summarize_for_log(
    value: Any,
    *,
    max_string: int = 256,
    max_items: int = 32,
    max_depth: int = 6,
    _depth: int = 0,
) -> Any:
    """Return a bounded copy of *value* suitable for debug logs."""
    if _depth > max_depth:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    kwargs = {"max_string": max_string, "max_items": max_items, "max_depth": max_depth, "_depth": _depth + 1}

    if isinstance(value, BaseModel):
        value = dict(value)
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}

    if isinstance(value, Mapping):
        summary: dict[str, Any] = {}
        for index, (k, v) in enumerate(value.items()):
            if index >= max_items:
                summary["…"] = f"<{len(value) - max_items} more>"
                break
            summary[str(k)] = summarize_for_log(v, **kwargs)
        return summary

    if isinstance(value, Sequence):
        items = [summarize_for_log(v, **kwargs) for v in itertools.islice(value, max_items)]
        if len(value) > max_items:
            items.append(f"<{len(value) - max_items} more>")
        return items

    # Fallback: represent unknown objects without dumping internals.
    text = repr(value)
    if len(text) > max_string:
        return f"{text[:max_string]}…<truncated>"
    return text
