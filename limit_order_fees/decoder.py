"""Decode Jupiter limit order accounts.

Layout of the ``Order`` account (little endian)::

    0    discriminator          8
    8    maker                  32
    40   input_mint             32
    72   output_mint            32
    104  waiting                1
    105  ori_making_amount      8
    113  ori_taking_amount      8
    121  making_amount          8
    129  taking_amount          8

Only the mints and the remaining making/taking amounts are used.  Anything
after ``taking_amount`` (token accounts, bumps, padding) is ignored.
"""

from __future__ import annotations

import logging
import struct
from typing import Iterable, List, Tuple

from solders.pubkey import Pubkey

from .errors import OrderDecodeError
from .models import ParsedOrder, RawAccount

logger = logging.getLogger(__name__)

DISCRIMINATOR_SIZE = 8
PUBKEY_SIZE = 32

MAKER_OFFSET = DISCRIMINATOR_SIZE
INPUT_MINT_OFFSET = MAKER_OFFSET + PUBKEY_SIZE
OUTPUT_MINT_OFFSET = INPUT_MINT_OFFSET + PUBKEY_SIZE
WAITING_OFFSET = OUTPUT_MINT_OFFSET + PUBKEY_SIZE
ORI_MAKING_AMOUNT_OFFSET = WAITING_OFFSET + 1
ORI_TAKING_AMOUNT_OFFSET = ORI_MAKING_AMOUNT_OFFSET + 8
MAKING_AMOUNT_OFFSET = ORI_TAKING_AMOUNT_OFFSET + 8
TAKING_AMOUNT_OFFSET = MAKING_AMOUNT_OFFSET + 8

MIN_ORDER_SIZE = TAKING_AMOUNT_OFFSET + 8

_U64 = struct.Struct("<Q")


def _pubkey_at(data: bytes, offset: int) -> str:
    return str(Pubkey.from_bytes(data[offset : offset + PUBKEY_SIZE]))


def decode_order(account_key: str, data: bytes) -> ParsedOrder:
    """Decode ``data`` into a :class:`ParsedOrder`.

    Raises :class:`OrderDecodeError` for buffers shorter than the layout.
    """

    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise OrderDecodeError(account_key, f"expected bytes, got {type(data).__name__}")
    buf = bytes(data)
    if len(buf) < MIN_ORDER_SIZE:
        raise OrderDecodeError(
            account_key,
            f"account data is {len(buf)} bytes, need at least {MIN_ORDER_SIZE}",
        )
    (making_amount,) = _U64.unpack_from(buf, MAKING_AMOUNT_OFFSET)
    (taking_amount,) = _U64.unpack_from(buf, TAKING_AMOUNT_OFFSET)
    return ParsedOrder(
        account_key=account_key,
        input_mint=_pubkey_at(buf, INPUT_MINT_OFFSET),
        output_mint=_pubkey_at(buf, OUTPUT_MINT_OFFSET),
        making_amount=making_amount,
        taking_amount=taking_amount,
        maker=_pubkey_at(buf, MAKER_OFFSET),
    )


def decode_accounts(accounts: Iterable[RawAccount]) -> Tuple[List[ParsedOrder], int]:
    """Decode every account, skipping the ones that fail.

    Returns the decoded orders and the number of skipped accounts.
    """

    orders: List[ParsedOrder] = []
    skipped = 0
    for account in accounts:
        try:
            orders.append(decode_order(account.pubkey, account.data))
        except OrderDecodeError as exc:
            skipped += 1
            logger.warning("Skipping undecodable order account %s", exc)
    return orders, skipped


__all__ = [
    "INPUT_MINT_OFFSET",
    "OUTPUT_MINT_OFFSET",
    "MAKING_AMOUNT_OFFSET",
    "TAKING_AMOUNT_OFFSET",
    "MIN_ORDER_SIZE",
    "decode_order",
    "decode_accounts",
]
