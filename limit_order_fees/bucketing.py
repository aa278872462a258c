"""Aggregate priced orders into geometric price buckets around the current price.

Buckets are half-open intervals of the price ratio ``[k*b, (k+1)*b)`` where
``b`` is the bucket size.  The ratio quotient is rounded to
``_QUOTIENT_PRECISION`` decimal places before flooring, so a ratio that sits
exactly on a boundary (1.00, 1.05, ...) always opens the bucket it starts
instead of falling into the one below through binary rounding.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List

from .config import DEFAULT_BUCKET_SIZE, DEFAULT_FEE_RATE
from .models import NormalizedOrder, OrderBucket, Side

logger = logging.getLogger(__name__)

_QUOTIENT_PRECISION = 9


def bucket_key(price_ratio: float, bucket_size: float = DEFAULT_BUCKET_SIZE) -> int:
    """Return the integer bucket ``k`` holding ``price_ratio``."""

    return math.floor(round(price_ratio / bucket_size, _QUOTIENT_PRECISION))


def bucket_index(key: int, bucket_size: float = DEFAULT_BUCKET_SIZE) -> float:
    """Return the ratio at which bucket ``key`` starts (0.95, 1.00, 1.05, ...)."""

    return round(key * bucket_size, 12)


def apply_cumulative(buckets: List[OrderBucket]) -> List[OrderBucket]:
    """Fill ``cumulative_fees_if_sweep`` walking outward from the current price."""

    running = 0.0
    for bucket in buckets:
        running += bucket.fee_potential_usd
        bucket.cumulative_fees_if_sweep = running
    return buckets


def bucket_orders(
    orders: Iterable[NormalizedOrder],
    current_price: float,
    side: Side,
    *,
    bucket_size: float = DEFAULT_BUCKET_SIZE,
    fee_rate: float = DEFAULT_FEE_RATE,
) -> List[OrderBucket]:
    """Group ``orders`` of one ``side`` into buckets ordered nearest-first.

    Sell buckets ascend by price level and buy buckets descend, so the list
    reads as the sequence of levels a price move would sweep through.  Orders
    whose price ratio overflows the bucket grid are left out.
    """

    if current_price <= 0:
        raise ValueError("current_price must be positive")
    side = Side(side)

    buckets: Dict[int, OrderBucket] = {}
    for order in orders:
        ratio = order.price / current_price
        if not math.isfinite(ratio / bucket_size):
            logger.debug("Order price %r is out of range at current price %r; skipped",
                         order.price, current_price)
            continue
        key = bucket_key(ratio, bucket_size)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = OrderBucket(
                price_level=current_price * bucket_index(key, bucket_size),
                side=side,
            )
            buckets[key] = bucket
        bucket.order_count += 1
        bucket.total_volume_usd += order.volume_usd
        bucket.fee_potential_usd = bucket.total_volume_usd * fee_rate

    ordered = [buckets[k] for k in sorted(buckets, reverse=side is Side.BUY)]
    return apply_cumulative(ordered)


__all__ = ["bucket_key", "bucket_index", "apply_cumulative", "bucket_orders"]
