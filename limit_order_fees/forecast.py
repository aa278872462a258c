"""Request orchestration: validate, snapshot, resolve decimals, bucket."""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Optional, Tuple

from solana.rpc.async_api import AsyncClient

from .bucketing import bucket_orders
from .config import Settings, load_settings
from .decimals import DecimalsLookup, MintDecimalResolver, rpc_decimals_lookup
from .decoder import decode_accounts
from .errors import InvalidRequestError
from .fetcher import OrderAccountFetcher
from .models import FeeForecast, Side, Snapshot
from .normalizer import split_by_side
from .snapshot import SnapshotCache, merge_order_sets
from .util import redact_url
from .util.mints import is_valid_solana_mint

logger = logging.getLogger(__name__)


def validate_request(token_mint: Any, current_price_usd: Any) -> Tuple[str, float]:
    """Return the normalised ``(mint, price)`` or raise :class:`InvalidRequestError`."""

    if not isinstance(token_mint, str) or not is_valid_solana_mint(token_mint):
        raise InvalidRequestError(f"invalid token mint: {token_mint!r}")
    if isinstance(current_price_usd, bool) or current_price_usd is None:
        raise InvalidRequestError("price parameter required")
    try:
        price = float(current_price_usd)
    except (TypeError, ValueError) as exc:
        raise InvalidRequestError(f"invalid price: {current_price_usd!r}") from exc
    if not math.isfinite(price) or price <= 0:
        raise InvalidRequestError(f"price must be a positive number, got {current_price_usd!r}")
    return token_mint, price


class FeeForecastService:
    """Build fee forecasts for a token from its open limit orders.

    ``decimals_lookup`` is the mint metadata collaborator; a new
    :class:`MintDecimalResolver` wraps it for every request so memoized
    decimals are never shared between concurrent requests.
    """

    def __init__(
        self,
        fetcher: OrderAccountFetcher,
        decimals_lookup: DecimalsLookup,
        snapshot_cache: Optional[SnapshotCache] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.fetcher = fetcher
        self.decimals_lookup = decimals_lookup
        self.snapshot_cache = snapshot_cache
        self.settings = settings or Settings()

    def _now(self) -> float:
        if self.snapshot_cache is not None:
            return self.snapshot_cache.clock()
        return time.monotonic()

    async def load_snapshot(self, token_mint: str) -> Snapshot:
        """Fetch, merge and decode the orders for ``token_mint``."""

        input_matches, output_matches = await self.fetcher.fetch(token_mint)
        accounts = merge_order_sets(input_matches, output_matches)
        orders, skipped = decode_accounts(accounts)
        logger.info(
            "Fetched %d order accounts for %s (input=%d output=%d undecodable=%d)",
            len(accounts),
            token_mint,
            len(input_matches),
            len(output_matches),
            skipped,
        )
        return Snapshot(token_mint=token_mint, orders=tuple(orders), captured_at=self._now())

    async def forecast(self, token_mint: Any, current_price_usd: Any) -> FeeForecast:
        mint, price = validate_request(token_mint, current_price_usd)

        if self.snapshot_cache is not None:
            snapshot, from_cache = await self.snapshot_cache.get_or_refresh(
                mint, lambda: self.load_snapshot(mint)
            )
        else:
            snapshot, from_cache = await self.load_snapshot(mint), False

        resolver = MintDecimalResolver(
            self.decimals_lookup, default_decimals=self.settings.default_decimals
        )
        mints = [m for order in snapshot.orders for m in (order.input_mint, order.output_mint)]
        decimals = await resolver.resolve_many(mints)

        sells, buys, skipped = split_by_side(snapshot.orders, mint, price, decimals)
        sell_buckets = bucket_orders(
            sells,
            price,
            Side.SELL,
            bucket_size=self.settings.bucket_size,
            fee_rate=self.settings.fee_rate,
        )
        buy_buckets = bucket_orders(
            buys,
            price,
            Side.BUY,
            bucket_size=self.settings.bucket_size,
            fee_rate=self.settings.fee_rate,
        )
        bucketed = sum(b.order_count for b in sell_buckets) + sum(b.order_count for b in buy_buckets)
        skipped += len(sells) + len(buys) - bucketed
        result = FeeForecast(
            token_mint=mint,
            current_price_usd=price,
            sell_buckets=sell_buckets,
            buy_buckets=buy_buckets,
            order_count=bucketed,
            skipped_orders=skipped,
            from_cache=from_cache,
        )
        logger.debug(
            "Forecast for %s: %d sell buckets, %d buy buckets, %d orders, %d skipped, "
            "%d decimal fallbacks",
            mint,
            len(result.sell_buckets),
            len(result.buy_buckets),
            result.order_count,
            skipped,
            len(resolver.fallbacks),
        )
        return result


def build_default_service(
    settings: Optional[Settings] = None,
    *,
    client: Optional[AsyncClient] = None,
    snapshot_cache: Optional[SnapshotCache] = None,
) -> FeeForecastService:
    """Wire a :class:`FeeForecastService` against a solana-py ``AsyncClient``.

    The caller owns the returned client (``service.fetcher.client``) and
    should close it when done.
    """

    settings = settings or load_settings()
    if client is None:
        if not settings.rpc_url:
            raise RuntimeError("SOLANA_RPC_URL environment variable required")
        logger.info("Using Solana RPC endpoint %s", redact_url(settings.rpc_url))
        client = AsyncClient(settings.rpc_url, timeout=settings.rpc_timeout)
    if snapshot_cache is None:
        snapshot_cache = SnapshotCache(ttl=settings.cache_ttl)
    return FeeForecastService(
        OrderAccountFetcher(client, settings.program_id),
        rpc_decimals_lookup(client),
        snapshot_cache=snapshot_cache,
        settings=settings,
    )


__all__ = ["validate_request", "FeeForecastService", "build_default_service"]
