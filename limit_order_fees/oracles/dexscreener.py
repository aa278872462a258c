"""Dexscreener price lookup used when a caller does not supply a price."""

from __future__ import annotations

import asyncio
import logging
import math
import os
from typing import Any, Iterable, Mapping

import aiohttp

from ..errors import PriceUnavailableError

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.dexscreener.com"
_BASE_URL = (os.getenv("DEXSCREENER_BASE_URL") or _DEFAULT_BASE_URL).rstrip("/")
_DEFAULT_TIMEOUT = 10.0


def _coerce_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(numeric):
        return None
    return numeric


def _liquidity_usd(pair: Mapping[str, Any]) -> float:
    liquidity = pair.get("liquidity")
    if isinstance(liquidity, Mapping):
        return _coerce_float(liquidity.get("usd")) or 0.0
    return 0.0


def best_pair_price(pairs: Iterable[Any], mint: str) -> float | None:
    """Return ``priceUsd`` of the most liquid pair quoting ``mint`` as base token."""

    best: tuple[float, float] | None = None
    for pair in pairs or []:
        if not isinstance(pair, Mapping):
            continue
        base = pair.get("baseToken")
        if not isinstance(base, Mapping) or base.get("address") != mint:
            continue
        price = _coerce_float(pair.get("priceUsd"))
        if price is None or price <= 0:
            continue
        liquidity = _liquidity_usd(pair)
        if best is None or liquidity > best[0]:
            best = (liquidity, price)
    return best[1] if best else None


async def fetch_price_usd(
    mint: str,
    session: aiohttp.ClientSession | None = None,
    *,
    base_url: str = _BASE_URL,
    timeout: float = _DEFAULT_TIMEOUT,
) -> float | None:
    """Return the current USD price for ``mint`` or ``None`` if unlisted.

    Transport and HTTP status failures raise :class:`PriceUnavailableError`.
    """

    url = f"{base_url}/latest/dex/tokens/{mint}"
    owns_session = session is None
    if session is None:
        session = aiohttp.ClientSession()
    try:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
            resp.raise_for_status()
            payload = await resp.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise PriceUnavailableError(f"Dexscreener request failed for {mint}: {exc}") from exc
    finally:
        if owns_session:
            await session.close()

    pairs = payload.get("pairs") if isinstance(payload, Mapping) else None
    price = best_pair_price(pairs or [], mint)
    if price is None:
        logger.info("Dexscreener has no priced pair for %s", mint)
    return price


__all__ = ["best_pair_price", "fetch_price_usd"]
