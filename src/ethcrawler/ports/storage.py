# ethcrawler/ports/storage.py
from __future__ import annotations

from typing import Iterable, Iterator, Protocol
from ..domain.models import BlockRange, TransactionRecord
from ..domain.value_types import Address


class TransactionStore(Protocol):
    """Port for the ordered, persistent key-value store of cached transaction records."""

    def put(self, key: bytes, record: TransactionRecord) -> None:
        """Upsert one record; writing the same key twice is harmless."""

    def scan(self, lower: bytes, upper: bytes) -> list[TransactionRecord]:
        """Return records with lower <= key < upper, in ascending key order."""

    def keys(self) -> Iterator[bytes]:
        """Yield every record key in ascending order."""

    def load_coverage(self) -> dict[Address, BlockRange]:
        """Return persisted coverage metadata (empty if none was ever written)."""

    def save_coverage(self, account: Address, window: BlockRange) -> None:
        """Persist the coverage window of one account."""


class RecordSink(Protocol):
    """Port for exporting a query result (e.g., to a Parquet file)."""

    def write(self, account: Address, records: Iterable[TransactionRecord]) -> str:
        """Persist the records and return the written path."""
