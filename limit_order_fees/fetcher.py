"""Scan the limit order program for orders touching a mint."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, List, Tuple

from solana.rpc.models import MemcmpOpts
from solders.pubkey import Pubkey

from .decoder import INPUT_MINT_OFFSET, OUTPUT_MINT_OFFSET
from .errors import UpstreamFetchError
from .models import RawAccount
from .rpc_helpers import extract_keyed_accounts

logger = logging.getLogger(__name__)


class OrderAccountFetcher:
    """Fetch order accounts whose input or output mint equals a target mint.

    ``client`` is a :class:`solana.rpc.async_api.AsyncClient` (or anything with
    a compatible ``get_program_accounts`` coroutine).  Retries are left to the
    client; every failure surfaces as :class:`UpstreamFetchError`.
    """

    def __init__(self, client: Any, program_id: str) -> None:
        self.client = client
        self.program_id = program_id
        self._program = Pubkey.from_string(program_id)

    async def _scan(self, offset: int, mint: str) -> List[RawAccount]:
        start = time.perf_counter()
        try:
            resp = await self.client.get_program_accounts(
                self._program,
                encoding="base64",
                filters=[MemcmpOpts(offset=offset, bytes=mint)],
            )
            accounts = extract_keyed_accounts(resp)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise UpstreamFetchError(
                f"getProgramAccounts failed for {mint} at offset {offset}: {exc}"
            ) from exc
        logger.debug(
            "Program scan offset=%d mint=%s returned %d accounts in %.3fs",
            offset,
            mint,
            len(accounts),
            time.perf_counter() - start,
        )
        return accounts

    async def fetch(self, target_mint: str) -> Tuple[List[RawAccount], List[RawAccount]]:
        """Return ``(input_matches, output_matches)`` for ``target_mint``.

        Both scans run concurrently; if either fails the whole fetch fails.
        """

        input_task = asyncio.ensure_future(self._scan(INPUT_MINT_OFFSET, target_mint))
        output_task = asyncio.ensure_future(self._scan(OUTPUT_MINT_OFFSET, target_mint))
        try:
            input_matches, output_matches = await asyncio.gather(input_task, output_task)
        except BaseException:
            for task in (input_task, output_task):
                task.cancel()
            raise
        return input_matches, output_matches


__all__ = ["OrderAccountFetcher"]
