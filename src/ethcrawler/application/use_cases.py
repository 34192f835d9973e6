from __future__ import annotations

import logging
from typing import Callable

from ..domain.keys import encode_key, key_range
from ..domain.models import BlockRange, TransactionRecord
from ..domain.value_types import Address, check_block_number
from ..ports.coverage import CoverageIndex
from ..ports.rpc import LedgerClient
from ..ports.storage import TransactionStore
from .planning import resolve_bounds

log = logging.getLogger(__name__)

OnBlock = Callable[[int], None]


class RangeCacheCoordinator:
    """
    Answers "which transactions touched `account` in blocks [start, end]?".

    Served from the store only when the whole request lies inside the account's
    coverage window; otherwise the entire range is scanned from the ledger node,
    every match is persisted, and coverage is updated once the scan succeeds.
    Single caller only: wrap `query` in an asyncio.Lock if callers run concurrently.
    """

    def __init__(self, rpc: LedgerClient, store: TransactionStore, coverage: CoverageIndex) -> None:
        self.rpc = rpc
        self.store = store
        self.coverage = coverage

    async def query(
        self,
        account: Address,
        block_start: int,
        block_end: int | None = None,
        *,
        on_block: OnBlock | None = None,
    ) -> list[TransactionRecord]:
        """`block_end=None` means the latest block, resolved once at call time."""
        if block_end is None:
            block_end = await self.rpc.latest_block()
        window = resolve_bounds(check_block_number(block_start), check_block_number(block_end))

        cached = await self.coverage.get(account)
        if cached is not None and cached.contains(window):
            return self._from_cache(account, window)
        return await self._from_server(account, window, on_block)

    async def needs_fetch(self, account: Address, block_start: int, block_end: int) -> bool:
        cached = await self.coverage.get(account)
        return cached is None or not cached.contains(BlockRange(block_start, block_end))

    def _from_cache(self, account: Address, window: BlockRange) -> list[TransactionRecord]:
        log.info("From cache. Block start: %d. Block end: %d", window.start, window.end)
        lower, upper = key_range(account, window.start, window.end)
        log.debug("key range: %r .. %r", lower, upper)
        records = self.store.scan(lower, upper)
        log.info("Got transactions len: %d", len(records))
        return records

    async def _from_server(self, account: Address, window: BlockRange, on_block: OnBlock | None) -> list[TransactionRecord]:
        log.info("From server. Block start: %d. Block end: %d", window.start, window.end)
        records: list[TransactionRecord] = []

        for block_number in range(window.start, window.end + 1):
            block = await self.rpc.get_block(block_number)
            if block is not None:
                for tx_hash in block.transactions:
                    tx = await self.rpc.get_transaction(tx_hash)
                    if tx is None or account not in (tx.from_address, tx.to_address):
                        continue
                    receipt = await self.rpc.get_receipt(tx_hash)
                    record = TransactionRecord.build(block, tx, receipt)
                    key = encode_key(account, block_number, tx_hash)
                    log.debug("key: %s", key.decode())
                    self.store.put(key, record)
                    records.append(record)
            if on_block is not None:
                on_block(block_number)

        # same order as a cache scan: block, then hash
        records.sort(key=lambda r: (r.block_number, r.transaction_hash))
        covered = await self.coverage.set(account, window.start, window.end)
        log.debug("Coverage for %s is now [%d, %d]", account, covered.start, covered.end)
        log.info("Got transactions len: %d", len(records))
        return records
