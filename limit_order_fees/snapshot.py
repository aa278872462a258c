"""Order-set merging and the short-lived snapshot cache."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from .config import DEFAULT_CACHE_TTL
from .models import RawAccount, Snapshot

logger = logging.getLogger(__name__)


def merge_order_sets(*account_sets: Iterable[RawAccount]) -> List[RawAccount]:
    """Merge scan results keyed by account pubkey.

    An account returned by more than one scan (input and output mint both
    equal to the target) is kept once; the first occurrence wins and the
    order of first appearance is preserved.
    """

    merged: Dict[str, RawAccount] = {}
    for accounts in account_sets:
        for account in accounts:
            merged.setdefault(account.pubkey, account)
    return list(merged.values())


class SnapshotStore(Protocol):
    def get(self, key: str) -> Optional[Snapshot]: ...

    def set(self, key: str, snapshot: Snapshot) -> None: ...


class MemorySnapshotStore:
    """Process-local store holding the snapshot of the last queried mint.

    There is a single slot: storing a snapshot under another key evicts the
    previous one.  The slot is replaced by one reference assignment, so readers
    see either the old or the new snapshot, never a mix.
    """

    def __init__(self) -> None:
        self._slot: Optional[Tuple[str, Snapshot]] = None

    def get(self, key: str) -> Optional[Snapshot]:
        slot = self._slot
        if slot is None or slot[0] != key:
            return None
        return slot[1]

    def set(self, key: str, snapshot: Snapshot) -> None:
        self._slot = (key, snapshot)


SnapshotLoader = Callable[[], Awaitable[Snapshot]]


class SnapshotCache:
    """TTL gate in front of a :class:`SnapshotStore`.

    Reads never block.  When the snapshot for a mint is missing or stale,
    concurrent callers share one in-flight loader task.  The pending-task map
    is checked and filled without yielding to the event loop, so no lock is
    held while the loader awaits the network.

    The store keeps whichever refresh finished last: a slow refresh for one
    mint that completes after another mint was stored replaces it.
    """

    def __init__(
        self,
        store: Optional[SnapshotStore] = None,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store: SnapshotStore = store if store is not None else MemorySnapshotStore()
        self.ttl = float(ttl)
        self.clock = clock
        self._pending: dict[tuple[str, asyncio.AbstractEventLoop], asyncio.Task] = {}

    def fresh(self, mint: str) -> Optional[Snapshot]:
        snapshot = self.store.get(mint)
        if snapshot is None or snapshot.token_mint != mint:
            return None
        if snapshot.age(self.clock()) >= self.ttl:
            return None
        return snapshot

    async def get_or_refresh(self, mint: str, loader: SnapshotLoader) -> Tuple[Snapshot, bool]:
        """Return ``(snapshot, cache_hit)`` for ``mint``.

        A failed load leaves the stored snapshot untouched and propagates.
        """

        snapshot = self.fresh(mint)
        if snapshot is not None:
            logger.debug("Snapshot cache hit for %s", mint)
            return snapshot, True

        pend_key = (mint, asyncio.get_running_loop())
        task = self._pending.get(pend_key)
        if task is None:
            logger.debug("Snapshot cache miss for %s; refreshing", mint)
            task = asyncio.create_task(self._refresh(mint, loader))
            self._pending[pend_key] = task
            task.add_done_callback(lambda _t: self._pending.pop(pend_key, None))

        return await asyncio.shield(task), False

    async def _refresh(self, mint: str, loader: SnapshotLoader) -> Snapshot:
        snapshot = await loader()
        self.store.set(mint, snapshot)
        return snapshot


__all__ = [
    "merge_order_sets",
    "SnapshotStore",
    "MemorySnapshotStore",
    "SnapshotCache",
]
