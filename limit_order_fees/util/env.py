"""Helpers for resolving environment-provided Solana RPC endpoints."""

from __future__ import annotations

import os
from typing import Iterable, List, Mapping
from urllib.parse import parse_qsl, urlsplit

_PLACEHOLDER_MARKERS = {"your_key", "your-api-key", "demo-helius-key", "change_me"}

RPC_URL_VARS = ("SOLANA_RPC_URL", "HELIUS_RPC_URL")


def _credential_parts(value: str) -> List[str]:
    parts = urlsplit(value)
    tokens = [v for _k, v in parse_qsl(parts.query, keep_blank_values=True)]
    tokens.extend(seg for seg in parts.path.split("/") if seg)
    return tokens or [value]


def _is_placeholder(value: str) -> bool:
    """Return ``True`` when an API key or path token of ``value`` is a stock placeholder."""

    return any(token.strip().lower() in _PLACEHOLDER_MARKERS for token in _credential_parts(value))


def _resolve_env(names: Iterable[str], env: Mapping[str, str] | None = None) -> str:
    source = os.environ if env is None else env
    for name in names:
        candidate = (source.get(name) or "").strip()
        if not candidate or _is_placeholder(candidate):
            continue
        return candidate
    return ""


def optional_rpc_url(default: str | None = None, env: Mapping[str, str] | None = None) -> str:
    url = _resolve_env(RPC_URL_VARS, env)
    if url:
        return url
    return default or ""


__all__ = ["RPC_URL_VARS", "optional_rpc_url"]
