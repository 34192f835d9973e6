# ethcrawler/ports/rpc.py
from __future__ import annotations

from typing import Protocol
from ..domain.models import Block, Receipt, Transaction
from ..domain.value_types import Address, TxHash


class LedgerClient(Protocol):
    """Port defining the read-only Ethereum JSON-RPC calls the crawler needs.

    Absence (unknown block/tx/receipt) is returned as None; transport failures raise TransportError.
    """

    async def latest_block(self) -> int:
        """Return the latest block number as an integer."""

    async def get_block(self, block_number: int) -> Block | None:
        """Return the block header with its transaction hashes, or None if unknown."""

    async def get_transaction(self, tx_hash: TxHash) -> Transaction | None:
        """Return the full transaction, or None if unknown."""

    async def get_receipt(self, tx_hash: TxHash) -> Receipt | None:
        """Return the receipt, or None if not (yet) available."""

    async def get_balance(self, account: Address, block_number: int) -> int:
        """Return the wei balance of `account` at `block_number`."""
