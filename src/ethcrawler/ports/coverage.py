# ethcrawler/ports/coverage.py
from __future__ import annotations
from typing import Protocol
from ..domain.models import BlockRange
from ..domain.value_types import Address

class CoverageIndex(Protocol):
    async def get(self, account: Address) -> BlockRange | None:
        """Return the inclusive block window already fully scanned for `account`, if any."""

    async def set(self, account: Address, block_start: int, block_end: int) -> BlockRange:
        """Record that [block_start, block_end] was fully scanned; return the resulting window."""
