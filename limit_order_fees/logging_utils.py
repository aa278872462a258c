from __future__ import annotations

import contextlib
import logging
import sys
import threading
import time
from datetime import datetime, timezone
from typing import Any, Iterable

import orjson

DEFAULT_FORMAT = "%(asctime)sZ [%(levelname)s] %(name)s:%(lineno)d | %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

_NOISY_LOGGERS: tuple[str, ...] = (
    "asyncio",
    "httpx",
    "httpcore",
    "solana",
)

_warn_once_lock = threading.Lock()
_warn_once_last_emit: dict[str, float] = {}


class _UTCFormatter(logging.Formatter):
    """Formatter that renders timestamps in UTC."""

    converter = time.gmtime


_LOG_RECORD_RESERVED = set(logging.LogRecord(None, 0, "", 0, "", (), None).__dict__.keys())


class JsonFormatter(logging.Formatter):
    """Structured logging formatter producing JSON payloads."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - short summary sufficient
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "line": record.lineno,
            "msg": record.getMessage(),
        }

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = record.stack_info

        for key, value in record.__dict__.items():
            if key in payload or key.startswith("_") or key in _LOG_RECORD_RESERVED:
                continue
            payload[key] = value

        return orjson.dumps(payload, default=str).decode()


def parse_log_level(value: str | int | None) -> int:
    if value is None or value == "":
        return logging.INFO
    if isinstance(value, int):
        return value
    level = str(value).strip().upper()
    if level.isdigit():
        return int(level)
    resolved = logging.getLevelName(level)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    *,
    level: str | int | None = logging.INFO,
    json: bool = False,
    stream: Any = None,
    propagate_off: Iterable[str] = _NOISY_LOGGERS,
) -> logging.StreamHandler:
    """Install a single stream handler on the root logger.

    Repeated calls reuse the handler installed by the first call and only
    update its level, stream and formatter.
    """

    root = logging.getLogger()
    resolved = parse_log_level(level)
    root.setLevel(resolved)

    sentinel_key = "_limit_order_fees_handler"
    handler = getattr(root, sentinel_key, None)
    target = stream if stream is not None else sys.stderr
    if not isinstance(handler, logging.StreamHandler) or handler not in root.handlers:
        handler = logging.StreamHandler(target)
        root.addHandler(handler)
    else:
        with contextlib.suppress(ValueError):
            handler.setStream(target)

    handler.setLevel(resolved)
    if json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(_UTCFormatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT))

    for name in propagate_off:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))

    setattr(root, sentinel_key, handler)
    return handler


def warn_once_per(
    minutes: float,
    key: str,
    message: str,
    *args: Any,
    logger: logging.Logger | None = None,
    **kwargs: Any,
) -> bool:
    """Emit ``logger.warning`` for *message* at most once per *minutes* interval."""

    interval = max(0.0, minutes) * 60.0
    now = time.monotonic()

    with _warn_once_lock:
        last = _warn_once_last_emit.get(key)
        if last is not None and interval > 0 and now - last < interval:
            return False
        _warn_once_last_emit[key] = now

    target = logger or logging.getLogger()
    target.warning(message, *args, **kwargs)
    return True


def reset_warn_once_cache() -> None:
    """Clear cached emission timestamps for :func:`warn_once_per`."""

    with _warn_once_lock:
        _warn_once_last_emit.clear()


__all__ = [
    "JsonFormatter",
    "parse_log_level",
    "setup_logging",
    "warn_once_per",
    "reset_warn_once_cache",
]
