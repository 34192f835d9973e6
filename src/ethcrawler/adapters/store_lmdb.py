"""
LMDB-backed TransactionStore.

Two named databases live in one environment:

    transactions : cache key (see domain.keys) -> JSON TransactionRecord
    coverage     : account hex                 -> JSON {"start": int, "end": int}

LMDB keeps keys in byte order, so a cursor positioned with set_range() walks a
key range in (account, block, hash) order.
"""
from __future__ import annotations

import json, logging, os
from typing import Iterator

import lmdb

from ..domain.models import BlockRange, TransactionRecord
from ..domain.value_types import Address
from ..exceptions import StoreError
from ..ports.storage import TransactionStore

log = logging.getLogger(__name__)

MAP_SIZE = 1 << 30        # 1 GiB
TX_DB_NAME = b"transactions"
COVERAGE_DB_NAME = b"coverage"


def _dumps(obj: object) -> bytes:
    return json.dumps(obj, separators=(",", ":")).encode()


class LmdbTransactionStore(TransactionStore):
    def __init__(self, path: str, map_size: int = MAP_SIZE) -> None:
        self.path = path
        try:
            os.makedirs(path, exist_ok=True)
            self.env = lmdb.open(path, map_size=map_size, max_dbs=4)
            with self.env.begin(write=True) as txn:
                self.tx_db = self.env.open_db(TX_DB_NAME, txn=txn, create=True)
                self.coverage_db = self.env.open_db(COVERAGE_DB_NAME, txn=txn, create=True)
        except (lmdb.Error, OSError) as e:
            raise StoreError(f"Cannot open store at {path}: {e}") from e
        log.debug("Opened LMDB store at %s", path)

    def __enter__(self) -> LmdbTransactionStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self.env.close()

    # -- records ---------------------------------------------------------------

    def put(self, key: bytes, record: TransactionRecord) -> None:
        try:
            with self.env.begin(write=True, db=self.tx_db) as txn:
                txn.put(key, _dumps(record.to_json_obj()))
        except lmdb.Error as e:
            raise StoreError(f"Error storing {key!r}: {e}") from e

    def scan(self, lower: bytes, upper: bytes) -> list[TransactionRecord]:
        out: list[TransactionRecord] = []
        try:
            with self.env.begin(db=self.tx_db) as txn:
                cur = txn.cursor()
                if not cur.set_range(lower):
                    return out
                for key, raw in cur:
                    if key >= upper:
                        break
                    out.append(self._decode(key, raw))
        except lmdb.Error as e:
            raise StoreError(f"Error scanning [{lower!r}, {upper!r}): {e}") from e
        return out

    def keys(self) -> Iterator[bytes]:
        try:
            with self.env.begin(db=self.tx_db) as txn:
                for key in txn.cursor().iternext(keys=True, values=False):
                    yield bytes(key)
        except lmdb.Error as e:
            raise StoreError(f"Error iterating keys: {e}") from e

    @staticmethod
    def _decode(key: bytes, raw: bytes) -> TransactionRecord:
        try:
            return TransactionRecord.from_json_obj(json.loads(bytes(raw)))
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Corrupt record under {key!r}: {e}") from e

    # -- coverage metadata -------------------------------------------------------

    def load_coverage(self) -> dict[Address, BlockRange]:
        out: dict[Address, BlockRange] = {}
        try:
            with self.env.begin(db=self.coverage_db) as txn:
                for key, raw in txn.cursor():
                    rec = json.loads(bytes(raw))
                    out[Address(bytes(key).decode("ascii"))] = BlockRange(int(rec["start"]), int(rec["end"]))
        except lmdb.Error as e:
            raise StoreError(f"Error reading coverage: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Corrupt coverage metadata: {e}") from e
        return out

    def save_coverage(self, account: Address, window: BlockRange) -> None:
        try:
            with self.env.begin(write=True, db=self.coverage_db) as txn:
                txn.put(str(account).encode("ascii"), _dumps({"start": window.start, "end": window.end}))
        except lmdb.Error as e:
            raise StoreError(f"Error saving coverage for {account}: {e}") from e
