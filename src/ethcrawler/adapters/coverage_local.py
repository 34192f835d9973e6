# ethcrawler/adapters/coverage_local.py
from __future__ import annotations

import logging
from typing import Iterable

from ..application.planning import next_coverage
from ..domain.keys import decode_key_prefix
from ..domain.models import BlockRange
from ..domain.value_types import Address, CoveragePolicy
from ..ports.coverage import CoverageIndex
from ..ports.storage import TransactionStore

log = logging.getLogger(__name__)


def borders_from_keys(keys: Iterable[bytes]) -> dict[Address, BlockRange]:
    """
    Per-account (min, max) block number observed among persisted keys.
    Stops at the first malformed key (ParseError propagates).
    """
    borders: dict[Address, tuple[int, int]] = {}
    for key in keys:
        account, block_number = decode_key_prefix(key)
        lo, hi = borders.get(account, (block_number, block_number))
        borders[account] = (min(lo, block_number), max(hi, block_number))
    return {acc: BlockRange(lo, hi) for acc, (lo, hi) in borders.items()}


class LocalCoverageIndex(CoverageIndex):
    """
    In-memory coverage windows, mirrored to the store's coverage metadata.
    On startup, metadata is loaded if present; otherwise coverage is rebuilt once
    from the extent of the persisted keys and written back as metadata.
    Not safe for concurrent callers.
    """
    def __init__(self, store: TransactionStore, policy: CoveragePolicy = "merge") -> None:
        self.store = store
        self.policy = policy
        self._windows: dict[Address, BlockRange] = {}
        self._load()

    def _load(self) -> None:
        self._windows = self.store.load_coverage()
        if self._windows:
            log.debug("Loaded coverage metadata for %d account(s)", len(self._windows))
            return
        self._windows = borders_from_keys(self.store.keys())
        for account, window in self._windows.items():
            self.store.save_coverage(account, window)
        if self._windows:
            log.info("Rebuilt coverage from stored keys for %d account(s)", len(self._windows))

    async def get(self, account: Address) -> BlockRange | None:
        return self._windows.get(account)

    async def set(self, account: Address, block_start: int, block_end: int) -> BlockRange:
        window = next_coverage(self._windows.get(account), BlockRange(block_start, block_end), self.policy)
        self._windows[account] = window
        self.store.save_coverage(account, window)
        return window

    def snapshot(self) -> dict[Address, BlockRange]:
        return dict(self._windows)
