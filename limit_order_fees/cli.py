"""Command line entry point printing the fee forecast for a token."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Sequence, TextIO

from .config import load_settings
from .errors import InvalidRequestError, LimitOrderFeesError
from .forecast import build_default_service, validate_request
from .jsonutil import dumps
from .logging_utils import setup_logging
from .models import FeeForecast, OrderBucket
from .oracles.dexscreener import fetch_price_usd
from .util import parse_bool_env
from .util.mints import is_valid_solana_mint

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UPSTREAM = 1
EXIT_INVALID = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="limit-order-fees",
        description="Forecast creator fees locked in by open limit orders for a token.",
    )
    parser.add_argument("mint", help="target token mint address")
    parser.add_argument(
        "--price",
        type=float,
        default=None,
        help="current USD price of the token (looked up on Dexscreener when omitted)",
    )
    parser.add_argument("--rpc-url", default=None, help="Solana RPC endpoint (default: $SOLANA_RPC_URL)")
    parser.add_argument("--bucket-size", type=float, default=None)
    parser.add_argument("--fee-rate", type=float, default=None)
    parser.add_argument("--json", action="store_true", help="print the forecast as JSON")
    parser.add_argument("--log-level", default="WARNING")
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=parse_bool_env("LOG_JSON", False),
        help="emit structured JSON log lines",
    )
    return parser


def _bucket_rows(title: str, buckets: List[OrderBucket]) -> List[str]:
    rows = [title]
    if not buckets:
        rows.append("  (no orders)")
        return rows
    rows.append(f"  {'price':>14}  {'orders':>6}  {'volume $':>14}  {'fees $':>12}  {'cum fees $':>12}")
    for b in buckets:
        rows.append(
            f"  {b.price_level:>14.8g}  {b.order_count:>6d}  {b.total_volume_usd:>14,.2f}"
            f"  {b.fee_potential_usd:>12,.2f}  {b.cumulative_fees_if_sweep:>12,.2f}"
        )
    return rows


def render_table(result: FeeForecast) -> str:
    lines = [
        f"{result.token_mint} @ ${result.current_price_usd:.8g}"
        f" ({result.order_count} orders{', cached' if result.from_cache else ''})",
    ]
    lines += _bucket_rows("Sell side (price rising):", result.sell_buckets)
    lines += _bucket_rows("Buy side (price falling):", result.buy_buckets)
    lines.append(f"Total fee potential: ${result.total_fee_potential_usd:,.2f}")
    return "\n".join(lines)


async def _run(args: argparse.Namespace) -> FeeForecast:
    settings = load_settings(
        rpc_url=args.rpc_url, bucket_size=args.bucket_size, fee_rate=args.fee_rate
    )
    price = args.price
    if price is None:
        if not is_valid_solana_mint(args.mint):
            raise InvalidRequestError(f"invalid token mint: {args.mint!r}")
        price = await fetch_price_usd(args.mint)
        if price is None:
            raise InvalidRequestError(f"no USD price available for {args.mint}; pass --price")
    validate_request(args.mint, price)
    service = build_default_service(settings)
    try:
        return await service.forecast(args.mint, price)
    finally:
        await service.fetcher.client.close()


def main(argv: Sequence[str] | None = None, *, out: TextIO | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    setup_logging(level=args.log_level, json=args.json_logs)
    out = out or sys.stdout

    try:
        result = asyncio.run(_run(args))
    except (InvalidRequestError, ValueError) as exc:
        logger.error("Invalid request: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INVALID
    except (LimitOrderFeesError, RuntimeError) as exc:
        logger.error("Failed to fetch limit orders: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_UPSTREAM

    if args.json:
        print(dumps(result.to_dict(), indent=2), file=out)
    else:
        print(render_table(result), file=out)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
