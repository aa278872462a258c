# Utility functions for runtime helpers.

from __future__ import annotations

from typing import Mapping

import logging
import os
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

logger = logging.getLogger(__name__)


_TRUE_VALUES = {"1", "true", "yes", "y", "on", "enable", "enabled", "t"}
_FALSE_VALUES = {"0", "false", "no", "n", "off", "disable", "disabled", "f"}
_SECRET_QUERY_KEYS = {"api_key", "api-key", "apikey", "token", "auth", "secret", "password"}


def parse_bool_env(
    name: str,
    default: bool = False,
    *,
    env: Mapping[str, str] | None = None,
) -> bool:
    """Return the boolean value for environment variable ``name``.

    Unknown spellings fall back to ``default`` and are logged at debug level.
    """

    source = os.environ if env is None else env
    val = source.get(name)
    if val is None:
        return default
    norm = val.strip().lower()
    if norm in _TRUE_VALUES:
        return True
    if norm in _FALSE_VALUES:
        return False
    logger.debug("Ignoring unknown boolean env %s=%r; using default=%s", name, val, default)
    return default


def redact_url(url: str) -> str:
    """Return ``url`` with credentials and secret query parameters masked.

    RPC endpoints commonly embed an API key in the query string; this is the
    form used whenever an endpoint is written to the logs.
    """

    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return "<invalid url>"
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    if parts.username:
        netloc = f"***@{netloc}"
    query_pairs = []
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key.lower() in _SECRET_QUERY_KEYS:
            query_pairs.append((key, "REDACTED"))
        else:
            query_pairs.append((key, value))
    query = urlencode(query_pairs, doseq=True)
    return urlunsplit((parts.scheme, netloc, parts.path, query, ""))


__all__ = ["parse_bool_env", "redact_url"]
