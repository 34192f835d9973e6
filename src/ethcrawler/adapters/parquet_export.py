from __future__ import annotations
import os, pyarrow as pa, pyarrow.parquet as pq
from typing import Iterable

from ..domain.models import TransactionRecord
from ..domain.value_types import Address
from ..ports.storage import RecordSink

# u256 values do not fit int64: kept as decimal strings
_SCHEMA = pa.schema([
    ("account", pa.string()),
    ("block_number", pa.int64()),
    ("block_timestamp", pa.int64()),
    ("transaction_hash", pa.string()),
    ("from", pa.string()),
    ("to", pa.string()),
    ("value_wei", pa.string()),
    ("gas_price", pa.string()),
    ("gas_used", pa.int64()),
    ("transaction_type", pa.int32()),
    ("receipt_status", pa.int32()),
])

def records_to_table(account: Address, records: Iterable[TransactionRecord]) -> pa.Table:
    recs = list(records)
    return pa.Table.from_arrays(
        arrays=[
            pa.array([str(account)] * len(recs), pa.string()),
            pa.array([r.block_number for r in recs], pa.int64()),
            pa.array([r.block_timestamp for r in recs], pa.int64()),
            pa.array([r.transaction_hash for r in recs], pa.string()),
            pa.array([r.from_address for r in recs], pa.string()),
            pa.array([r.to_address for r in recs], pa.string()),
            pa.array([str(r.value) for r in recs], pa.string()),
            pa.array([None if r.gas_price is None else str(r.gas_price) for r in recs], pa.string()),
            pa.array([r.gas_used for r in recs], pa.int64()),
            pa.array([r.transaction_type for r in recs], pa.int32()),
            pa.array([r.receipt_status for r in recs], pa.int32()),
        ],
        schema=_SCHEMA,
    )

class ParquetRecordSink(RecordSink):
    def __init__(self, path: str) -> None:
        self.path = path
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    def write(self, account: Address, records: Iterable[TransactionRecord]) -> str:
        tmp = self.path + ".tmp"
        pq.write_table(records_to_table(account, records), tmp, compression="snappy", use_dictionary=True)
        os.replace(tmp, self.path)
        return self.path
