from __future__ import annotations
from dataclasses import dataclass
from typing import Any
from .value_types import Address, TxHash

@dataclass(slots=True, frozen=True)
class BlockRange:
    start: int
    end: int
    def contains(self, other: BlockRange) -> bool:
        return other.start >= self.start and other.end <= self.end

@dataclass(slots=True, frozen=True)
class Block:
    number: int
    timestamp: int
    transactions: tuple[TxHash, ...]

@dataclass(slots=True, frozen=True)
class Transaction:
    hash: TxHash
    from_address: Address | None
    to_address: Address | None
    value: int
    gas_price: int | None
    gas: int
    transaction_type: int | None

@dataclass(slots=True, frozen=True)
class Receipt:
    transaction_hash: TxHash
    status: int | None
    gas_used: int | None

@dataclass(slots=True, frozen=True)
class CacheKey:
    account: Address
    block_number: int
    transaction_hash: TxHash

@dataclass(slots=True, frozen=True)
class TransactionRecord:
    block_number: int
    block_timestamp: int
    transaction_hash: TxHash
    from_address: Address | None
    to_address: Address | None
    value: int                      # wei, u256
    gas_price: int | None
    gas_used: int
    transaction_type: int | None
    receipt_status: int | None      # None when no receipt was found

    @classmethod
    def build(cls, block: Block, tx: Transaction, receipt: Receipt | None) -> TransactionRecord:
        gas_used = receipt.gas_used if receipt is not None and receipt.gas_used is not None else tx.gas
        return cls(
            block_number=block.number,
            block_timestamp=block.timestamp,
            transaction_hash=tx.hash,
            from_address=tx.from_address,
            to_address=tx.to_address,
            value=tx.value,
            gas_price=tx.gas_price,
            gas_used=gas_used,
            transaction_type=tx.transaction_type,
            receipt_status=receipt.status if receipt is not None else None,
        )

    def to_json_obj(self) -> dict[str, Any]:
        """Big ints (value, gas price) as decimal strings, so the JSON stays portable."""
        return {
            "block_number": self.block_number,
            "block_timestamp": self.block_timestamp,
            "transaction_hash": self.transaction_hash,
            "from": self.from_address,
            "to": self.to_address,
            "value": str(self.value),
            "gas_price": None if self.gas_price is None else str(self.gas_price),
            "gas_used": self.gas_used,
            "transaction_type": self.transaction_type,
            "receipt_status": self.receipt_status,
        }

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> TransactionRecord:
        gp = obj.get("gas_price")
        return cls(
            block_number=int(obj["block_number"]),
            block_timestamp=int(obj["block_timestamp"]),
            transaction_hash=TxHash(obj["transaction_hash"]),
            from_address=Address(obj["from"]) if obj.get("from") else None,
            to_address=Address(obj["to"]) if obj.get("to") else None,
            value=int(obj["value"]),
            gas_price=None if gp is None else int(gp),
            gas_used=int(obj["gas_used"]),
            transaction_type=obj.get("transaction_type"),
            receipt_status=obj.get("receipt_status"),
        )
