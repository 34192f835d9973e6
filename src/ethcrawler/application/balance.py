from __future__ import annotations

import logging, math
from dataclasses import dataclass
from datetime import datetime, timezone

from ..domain.value_types import Address
from ..ports.rpc import LedgerClient

log = logging.getLogger(__name__)


def to_unix_seconds(ts: int | datetime) -> int:
    """Aware datetimes are converted as-is; naive ones are taken as UTC."""
    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return int(ts.timestamp())
    return int(ts)


@dataclass(slots=True)
class _Search:
    low: int
    high: int
    mid: int
    best_diff: float = math.inf
    best_block: int | None = None
    best_before: int | None = None   # highest visited block earlier than the target

    def move_right(self) -> None:
        """Towards later blocks."""
        self.low = self.mid
        self.mid = (self.high + self.mid) // 2

    def move_left(self) -> None:
        """Towards earlier blocks."""
        self.high = self.mid
        self.mid = (self.mid + self.low) // 2


class BalanceResolver:
    """
    Balance of an account at a calendar time.

    Bisects [0, latest] for the block whose timestamp is at or after the target
    with the smallest difference. Blocks the node cannot return are treated as
    inconclusive and the search moves towards later blocks. If no visited block
    is at or after the target (target past the chain head), or none was returned
    before it (target before genesis), there is no answer. Only blocks the node
    actually returned are ever resolved to.
    """

    def __init__(self, rpc: LedgerClient) -> None:
        self.rpc = rpc

    async def resolve_block(self, target: int | datetime) -> int | None:
        timestamp = to_unix_seconds(target)
        latest = await self.rpc.latest_block()
        s = _Search(low=0, high=latest, mid=latest // 2)

        while True:
            previous_mid = s.mid
            block = await self.rpc.get_block(s.mid)
            if block is None:
                log.debug("Block %d not found; moving right", s.mid)
                s.move_right()
            else:
                diff = block.timestamp - timestamp
                if diff < 0:
                    if s.best_before is None or s.mid > s.best_before:
                        s.best_before = s.mid
                    s.move_right()
                else:
                    if abs(diff) < s.best_diff:
                        s.best_diff = abs(diff)
                        s.best_block = s.mid
                    s.move_left()

            if s.mid == previous_mid or s.best_diff == 0:
                break

        if s.best_block is None:
            return None
        # state at the target time: an exact match, else the last block the node returned before it
        resolved = s.best_block if s.best_diff == 0 else s.best_before
        log.debug("Timestamp %d: first block at or after is %d (diff=%s), resolved to %s",
                  timestamp, s.best_block, s.best_diff, resolved)
        return resolved

    async def resolve_balance(self, account: Address, target: int | datetime) -> int | None:
        block_number = await self.resolve_block(target)
        if block_number is None:
            log.info("No block resolved for timestamp %d (before the first block or past the chain head)", to_unix_seconds(target))
            return None
        return await self.rpc.get_balance(account, block_number)
