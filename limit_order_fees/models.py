"""Typed records passed between the fetch, decode, normalise and bucket stages."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


# ─────────────────────────────
# Ingestion
# ─────────────────────────────

@dataclass(frozen=True)
class RawAccount:
    """Program-owned account as returned by ``getProgramAccounts``."""
    pubkey: str
    data: bytes


@dataclass(frozen=True)
class ParsedOrder:
    """Decoded limit order.

    ``making_amount`` and ``taking_amount`` are raw integers in the smallest
    unit of ``input_mint`` and ``output_mint`` respectively.
    """
    account_key: str
    input_mint: str
    output_mint: str
    making_amount: int
    taking_amount: int
    maker: str = ""


@dataclass(frozen=True)
class Snapshot:
    """Orders captured for one mint at ``captured_at`` (monotonic seconds)."""
    token_mint: str
    orders: Tuple[ParsedOrder, ...]
    captured_at: float

    def age(self, now: float) -> float:
        return now - self.captured_at


# ─────────────────────────────
# Aggregation
# ─────────────────────────────

@dataclass(frozen=True)
class NormalizedOrder:
    price: float
    volume_usd: float
    side: Side


@dataclass
class OrderBucket:
    """Orders of one side aggregated into a single price bin."""
    price_level: float
    side: Side
    order_count: int = 0
    total_volume_usd: float = 0.0
    fee_potential_usd: float = 0.0
    cumulative_fees_if_sweep: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "priceLevel": self.price_level,
            "side": self.side.value,
            "orderCount": self.order_count,
            "totalVolumeUsd": self.total_volume_usd,
            "feePotentialUsd": self.fee_potential_usd,
            "cumulativeFeesIfSweep": self.cumulative_fees_if_sweep,
        }


@dataclass
class FeeForecast:
    """Result of one forecast request."""
    token_mint: str
    current_price_usd: float
    sell_buckets: List[OrderBucket] = field(default_factory=list)
    buy_buckets: List[OrderBucket] = field(default_factory=list)
    order_count: int = 0
    skipped_orders: int = 0
    from_cache: bool = False

    @property
    def total_fee_potential_usd(self) -> float:
        sell = self.sell_buckets[-1].cumulative_fees_if_sweep if self.sell_buckets else 0.0
        buy = self.buy_buckets[-1].cumulative_fees_if_sweep if self.buy_buckets else 0.0
        return sell + buy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sellBuckets": [b.to_dict() for b in self.sell_buckets],
            "buyBuckets": [b.to_dict() for b in self.buy_buckets],
        }


__all__ = [
    "Side",
    "RawAccount",
    "ParsedOrder",
    "Snapshot",
    "NormalizedOrder",
    "OrderBucket",
    "FeeForecast",
]
