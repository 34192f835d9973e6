from __future__ import annotations
import re
from typing import NewType, Literal

from eth_utils import is_hex_address

from ..exceptions import ParseError

Address = NewType("Address", str)   # 0x-prefixed, lowercase, 42 chars
TxHash  = NewType("TxHash", str)    # 0x-prefixed, lowercase, 66 chars
CoveragePolicy = Literal["merge", "replace"]

MAX_BLOCK_NUMBER = 2**64 - 1
ADDRESS_HEX_LEN = 42
TX_HASH_HEX_LEN = 66

_TX_HASH_RE = re.compile(r"0x[0-9a-f]{64}")


def to_address(text: str) -> Address:
    """Normalize 0x-prefixed address text (any case) to lowercase; raise ParseError otherwise."""
    s = str(text).strip()
    if not (s[:2].lower() == "0x" and is_hex_address(s)):
        raise ParseError(f"Invalid address: {text!r}")
    return Address(s.lower())

def to_tx_hash(text: str) -> TxHash:
    s = str(text).strip().lower()
    if not _TX_HASH_RE.fullmatch(s):
        raise ParseError(f"Invalid transaction hash: {text!r}")
    return TxHash(s)

def check_block_number(n: int) -> int:
    if not isinstance(n, int) or isinstance(n, bool) or n < 0 or n > MAX_BLOCK_NUMBER:
        raise ValueError(f"Block number out of u64 range: {n!r}")
    return n
