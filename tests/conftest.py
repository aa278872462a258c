import base64
import struct
from typing import Any, Dict, List

import base58
import pytest

from limit_order_fees.logging_utils import reset_warn_once_cache

TARGET_MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
SOL_MINT = "So11111111111111111111111111111111111111112"
MAKER = "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN"
PROGRAM_ID = "jupoNjAxXgZ4rjzxzPMP4oxduvQsQtZzyknqvzYNrNu"


def order_data(
    input_mint: str,
    output_mint: str,
    making: int,
    taking: int,
    *,
    maker: str = MAKER,
    tail: int = 64,
) -> bytes:
    """Build a limit order account buffer in the on-chain layout."""

    return (
        b"\x86\xad\xdf\xb9\x4d\x56\x1c\x1b"
        + base58.b58decode(maker)
        + base58.b58decode(input_mint)
        + base58.b58decode(output_mint)
        + b"\x00"
        + struct.pack("<QQQQ", making, taking, making, taking)
        + bytes(tail)
    )


def keyed(pubkey: str, data: bytes) -> Dict[str, Any]:
    return {
        "pubkey": pubkey,
        "account": {
            "data": [base64.b64encode(data).decode(), "base64"],
            "executable": False,
            "lamports": 2039280,
            "owner": PROGRAM_ID,
        },
    }


class FakeRpcClient:
    """In-memory stand-in for ``solana.rpc.async_api.AsyncClient``."""

    def __init__(self, accounts=None, decimals=None, *, fail_scan=False):
        self.accounts: List[tuple] = list(accounts or [])
        self.decimals: Dict[str, int] = dict(decimals or {})
        self.fail_scan = fail_scan
        self.scans: List[int] = []
        self.supply_calls: List[str] = []
        self.closed = False

    async def get_program_accounts(self, program, encoding="base64", filters=None, **_):
        assert encoding == "base64"
        assert str(program) == PROGRAM_ID
        (memcmp,) = filters
        self.scans.append(memcmp.offset)
        if self.fail_scan:
            raise ConnectionError("rpc unreachable")
        wanted = base58.b58decode(memcmp.bytes)
        result = [
            keyed(pubkey, data)
            for pubkey, data in self.accounts
            if data[memcmp.offset : memcmp.offset + 32] == wanted
        ]
        return {"jsonrpc": "2.0", "id": 1, "result": result}

    async def get_token_supply(self, pubkey):
        mint = str(pubkey)
        self.supply_calls.append(mint)
        if mint not in self.decimals:
            raise RuntimeError(f"Invalid param: not a Token mint {mint}")
        return {
            "jsonrpc": "2.0",
            "result": {
                "context": {"slot": 1},
                "value": {"amount": "1", "decimals": self.decimals[mint], "uiAmountString": "1"},
            },
        }

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_client():
    return FakeRpcClient


@pytest.fixture(autouse=True)
def _reset_warn_once():
    reset_warn_once_cache()
    yield
    reset_warn_once_cache()
