"""Per-request resolution of SPL mint decimals."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable

from solders.pubkey import Pubkey

from .config import DEFAULT_MINT_DECIMALS
from .logging_utils import warn_once_per
from .rpc_helpers import extract_token_decimals

logger = logging.getLogger(__name__)

DecimalsLookup = Callable[[str], Awaitable[int]]


def rpc_decimals_lookup(client: Any) -> DecimalsLookup:
    """Return a lookup that reads ``decimals`` via ``getTokenSupply``."""

    async def _lookup(mint: str) -> int:
        resp = await client.get_token_supply(Pubkey.from_string(mint))
        return extract_token_decimals(resp)

    return _lookup


class MintDecimalResolver:
    """Memoizing decimals resolver scoped to a single request.

    A failed lookup never propagates: the mint is recorded with
    ``default_decimals`` so the order referencing it is still priced.
    """

    def __init__(self, lookup: DecimalsLookup, default_decimals: int = DEFAULT_MINT_DECIMALS) -> None:
        self._lookup = lookup
        self.default_decimals = default_decimals
        self._decimals: Dict[str, int] = {}
        self.fallbacks: set[str] = set()

    async def _fetch(self, mint: str) -> int:
        try:
            value = int(await self._lookup(mint))
            if value < 0:
                raise ValueError(f"negative decimals {value}")
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.fallbacks.add(mint)
            warn_once_per(
                1,
                f"decimals:{mint}",
                "Decimals lookup failed for %s (%s); using default %d",
                mint,
                exc,
                self.default_decimals,
                logger=logger,
            )
            return self.default_decimals
        return value

    async def resolve(self, mint: str) -> int:
        if mint not in self._decimals:
            self._decimals[mint] = await self._fetch(mint)
        return self._decimals[mint]

    async def resolve_many(self, mints: Iterable[str]) -> Dict[str, int]:
        """Resolve every distinct mint in ``mints`` concurrently."""

        pending = list(dict.fromkeys(m for m in mints if m not in self._decimals))
        if pending:
            results = await asyncio.gather(*(self._fetch(m) for m in pending))
            self._decimals.update(zip(pending, results))
            logger.debug("Resolved decimals for %d mints", len(pending))
        return dict(self._decimals)


__all__ = ["DecimalsLookup", "MintDecimalResolver", "rpc_decimals_lookup"]
