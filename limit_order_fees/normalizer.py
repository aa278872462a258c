"""Convert decoded orders into priced, side-classified orders.

Raw amounts stay exact integers until this point.  Dividing by the mint scale
moves them into floating point, which is acceptable because the output is a
display estimate of fee potential and never a settlement amount.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Mapping, Optional, Tuple

from .models import NormalizedOrder, ParsedOrder, Side

logger = logging.getLogger(__name__)


def to_real_amount(raw: int, decimals: int) -> float:
    return raw / (10 ** decimals)


def normalize_order(
    order: ParsedOrder,
    target_mint: str,
    current_price_usd: float,
    decimals: Mapping[str, int],
) -> Optional[NormalizedOrder]:
    """Price and classify ``order`` relative to ``target_mint``.

    An order selling the target token (``input_mint == target_mint``) is a
    sell; one acquiring it is a buy.  Returns ``None`` when the order touches
    neither side or when either amount is zero.
    """

    if order.input_mint == target_mint:
        side = Side.SELL
    elif order.output_mint == target_mint:
        side = Side.BUY
    else:
        return None

    making_real = to_real_amount(order.making_amount, decimals[order.input_mint])
    taking_real = to_real_amount(order.taking_amount, decimals[order.output_mint])
    if making_real == 0 or taking_real == 0:
        return None

    if side is Side.SELL:
        price = taking_real / making_real
        volume_usd = making_real * current_price_usd
    else:
        price = making_real / taking_real
        volume_usd = taking_real * current_price_usd

    if not (math.isfinite(price) and math.isfinite(volume_usd)):
        return None
    return NormalizedOrder(price=price, volume_usd=volume_usd, side=side)


def split_by_side(
    orders: Iterable[ParsedOrder],
    target_mint: str,
    current_price_usd: float,
    decimals: Mapping[str, int],
) -> Tuple[List[NormalizedOrder], List[NormalizedOrder], int]:
    """Normalise ``orders`` and return ``(sells, buys, skipped)``."""

    sells: List[NormalizedOrder] = []
    buys: List[NormalizedOrder] = []
    skipped = 0
    for order in orders:
        normalized = normalize_order(order, target_mint, current_price_usd, decimals)
        if normalized is None:
            skipped += 1
            logger.debug("Order %s has no usable price; skipped", order.account_key)
            continue
        if normalized.side is Side.SELL:
            sells.append(normalized)
        else:
            buys.append(normalized)
    return sells, buys, skipped


__all__ = ["to_real_amount", "normalize_order", "split_by_side"]
