"""Utilities for dealing with solana-py RPC response objects.

``solana-py`` surfaces ``solders`` response classes, while tests and some
proxies hand back plain JSON-RPC dictionaries.  The helpers below accept both
forms and return the small typed records used by the rest of the package, so
no untyped RPC payload travels past the fetch boundary.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any, Iterable, List, Optional

from .models import RawAccount


class MalformedResponseError(ValueError):
    """Raised when an RPC payload does not have the expected shape."""


def _extract_path(obj: Any, path: Iterable[str]) -> Any:
    cur = obj
    for key in path:
        if isinstance(cur, dict):
            cur = cur.get(key)
        else:
            return None
    return cur


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return int(text)
    return None


def _decode_data(data: Any) -> bytes:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    encoded: Any = None
    encoding = "base64"
    if isinstance(data, (list, tuple)) and data:
        encoded = data[0]
        if len(data) > 1 and isinstance(data[1], str):
            encoding = data[1]
    elif isinstance(data, str):
        encoded = data
    if not isinstance(encoded, str):
        raise MalformedResponseError(f"unsupported account data payload: {type(data).__name__}")
    if encoding != "base64":
        raise MalformedResponseError(f"unsupported account data encoding: {encoding}")
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedResponseError(f"invalid base64 account data: {exc}") from exc


def _value_list(resp: Any) -> List[Any]:
    value = getattr(resp, "value", None)
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(resp, list):
        return resp
    if isinstance(resp, dict):
        if "error" in resp and resp["error"]:
            raise MalformedResponseError(f"RPC error: {resp['error']}")
        for path in (("result", "value"), ("result",), ("value",)):
            extracted = _extract_path(resp, path)
            if isinstance(extracted, list):
                return extracted
    raise MalformedResponseError(f"unexpected getProgramAccounts response: {type(resp).__name__}")


def _keyed_account(item: Any) -> RawAccount:
    if isinstance(item, dict):
        pubkey = item.get("pubkey")
        account = item.get("account") or {}
        data = account.get("data") if isinstance(account, dict) else None
    else:
        pubkey = getattr(item, "pubkey", None)
        account = getattr(item, "account", None)
        data = getattr(account, "data", None)
    if pubkey is None:
        raise MalformedResponseError("program account entry without pubkey")
    return RawAccount(pubkey=str(pubkey), data=_decode_data(data))


def extract_keyed_accounts(resp: Any) -> List[RawAccount]:
    """Return :class:`RawAccount` records for a ``getProgramAccounts`` response."""

    return [_keyed_account(item) for item in _value_list(resp)]


def extract_token_decimals(resp: Any) -> int:
    """Return the ``decimals`` field of a ``getTokenSupply`` response."""

    value = getattr(resp, "value", None)
    decimals: Optional[int] = None
    if value is not None:
        decimals = _as_int(getattr(value, "decimals", None))
    if decimals is None and isinstance(resp, dict):
        decimals = _as_int(_extract_path(resp, ("result", "value", "decimals")))
    if decimals is None:
        raise MalformedResponseError("getTokenSupply response without decimals")
    return decimals


__all__ = ["MalformedResponseError", "extract_keyed_accounts", "extract_token_decimals"]
