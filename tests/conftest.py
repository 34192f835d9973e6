import pytest
from collections import Counter

from ethcrawler.adapters.store_lmdb import LmdbTransactionStore
from ethcrawler.domain.models import Block, Receipt, Transaction, TransactionRecord
from ethcrawler.domain.value_types import Address, TxHash
from ethcrawler.exceptions import TransportError

ACCOUNT = Address("0x" + "ab" * 20)
OTHER = Address("0x" + "cd" * 20)
THIRD = Address("0x" + "ef" * 20)


def tx_hash(i: int) -> TxHash:
    return TxHash("0x" + f"{i:064x}")


def record(block: int, i: int, **kw) -> TransactionRecord:
    fields = dict(
        block_number=block, block_timestamp=1000 + block, transaction_hash=tx_hash(i),
        from_address=ACCOUNT, to_address=THIRD, value=3 * 10**18, gas_price=7,
        gas_used=21000, transaction_type=2, receipt_status=1,
    )
    fields.update(kw)
    return TransactionRecord(**fields)


class FakeLedger:
    """In-memory LedgerClient that counts every call."""

    def __init__(self):
        self.blocks: dict[int, Block] = {}
        self.txs: dict[str, Transaction] = {}
        self.receipts: dict[str, Receipt] = {}
        self.balances: dict[tuple[str, int], int] = {}
        self.head = 0
        self.calls = Counter()
        self.fail_on_block: int | None = None

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    def add_block(self, number: int, timestamp: int, txs=()):
        self.blocks[number] = Block(number, timestamp, tuple(t.hash for t in txs))
        for t in txs:
            self.txs[t.hash] = t
        self.head = max(self.head, number)

    def add_tx(self, block: int, i: int, frm=OTHER, to=THIRD, value=1, receipt_status=1):
        t = Transaction(hash=tx_hash(i), from_address=frm, to_address=to,
                        value=value, gas_price=10, gas=21000, transaction_type=2)
        if receipt_status is not None:
            self.receipts[t.hash] = Receipt(t.hash, receipt_status, 20000)
        return t

    async def latest_block(self):
        self.calls["latest_block"] += 1
        return self.head

    async def get_block(self, block_number):
        self.calls["get_block"] += 1
        if self.fail_on_block == block_number:
            raise TransportError(f"boom at {block_number}")
        return self.blocks.get(block_number)

    async def get_transaction(self, h):
        self.calls["get_transaction"] += 1
        return self.txs.get(h)

    async def get_receipt(self, h):
        self.calls["get_receipt"] += 1
        return self.receipts.get(h)

    async def get_balance(self, account, block_number):
        self.calls["get_balance"] += 1
        return self.balances.get((account, block_number), block_number * 100)


@pytest.fixture
def ledger():
    """Blocks 0..20, one matching tx in every even block plus an unrelated tx."""
    led = FakeLedger()
    i = 0
    for n in range(21):
        txs = []
        if n % 2 == 0:
            i += 1
            txs.append(led.add_tx(n, i, frm=ACCOUNT if n % 4 == 0 else OTHER,
                                  to=THIRD if n % 4 == 0 else ACCOUNT))
        i += 1
        txs.append(led.add_tx(n, i))
        led.add_block(n, 1000 + 12 * n, txs)
    return led


@pytest.fixture
def store(tmp_path):
    s = LmdbTransactionStore(str(tmp_path / "db"), map_size=1 << 24)
    yield s
    s.close()
