
"""Minimal JSON utilities backed by orjson."""

from __future__ import annotations

from typing import Any, Callable

import orjson

__all__ = ["dumps", "dumps_bytes"]


def dumps_bytes(
    obj: Any,
    *,
    sort_keys: bool = False,
    indent: int | None = None,
    default: Callable[[Any], Any] | None = None,
) -> bytes:
    """Serialize ``obj`` to a JSON byte string."""
    opts = 0
    if indent:
        opts |= orjson.OPT_INDENT_2
    if sort_keys:
        opts |= orjson.OPT_SORT_KEYS
    return orjson.dumps(obj, option=opts, default=default)


def dumps(
    obj: Any,
    *,
    sort_keys: bool = False,
    indent: int | None = None,
    default: Callable[[Any], Any] | None = None,
) -> str:
    """Serialize ``obj`` to a JSON formatted ``str``."""
    return dumps_bytes(obj, sort_keys=sort_keys, indent=indent, default=default).decode("utf-8")
