"""
Cache key layout (ASCII, fixed width):

    <account 0x+40 hex> "_" <block, 20 zero-padded digits> "_" <tx hash 0x+64 hex>

Zero padding makes byte order equal numeric block order for a given account.
Range upper bounds end with "~" (0x7E), which sorts after every hex char and "x",
so every hash belonging to the last block is inside the range.
"""
from __future__ import annotations

from .models import CacheKey
from .value_types import (
    ADDRESS_HEX_LEN, TX_HASH_HEX_LEN, Address, TxHash,
    check_block_number, to_address, to_tx_hash,
)
from ..exceptions import ParseError

SEP = "_"
BLOCK_WIDTH = 20   # digits in 2**64 - 1
SENTINEL = "~"

_ACC_END   = ADDRESS_HEX_LEN                 # 42
_BLK_START = _ACC_END + 1                    # 43
_BLK_END   = _BLK_START + BLOCK_WIDTH        # 63
_HASH_START = _BLK_END + 1                   # 64
KEY_LEN    = _HASH_START + TX_HASH_HEX_LEN   # 130
PREFIX_LEN = _BLK_END


def _pad(block_number: int) -> str:
    return f"{check_block_number(block_number):0{BLOCK_WIDTH}d}"

def account_block_prefix(account: Address, block_number: int) -> str:
    return f"{account}{SEP}{_pad(block_number)}"

def encode_key(account: Address, block_number: int, tx_hash: TxHash) -> bytes:
    return f"{account_block_prefix(account, block_number)}{SEP}{tx_hash}".encode("ascii")

def key_range(account: Address, block_start: int, block_end: int) -> tuple[bytes, bytes]:
    """Half-open [lower, upper) byte bounds covering every key of `account` in blocks [start, end]."""
    lower = account_block_prefix(account, block_start)
    upper = f"{account_block_prefix(account, block_end)}{SEP}{SENTINEL}"
    return lower.encode("ascii"), upper.encode("ascii")


def _text(key: bytes | str) -> str:
    if isinstance(key, str):
        return key
    try:
        return bytes(key).decode("ascii")
    except UnicodeDecodeError as e:
        raise ParseError(f"Cache key is not ASCII: {key!r}") from e

def _fields(s: str) -> tuple[Address, int]:
    if len(s) < PREFIX_LEN:
        raise ParseError(f"Cache key too short ({len(s)} chars): {s!r}")
    if s[_ACC_END] != SEP:
        raise ParseError(f"Missing separator after account in key: {s!r}")
    account = to_address(s[:_ACC_END])
    digits = s[_BLK_START:_BLK_END]
    if not (digits.isascii() and digits.isdigit()):
        raise ParseError(f"Malformed block number {digits!r} in key: {s!r}")
    block_number = int(digits)
    if block_number > 2**64 - 1:
        raise ParseError(f"Block number out of range in key: {s!r}")
    return account, block_number

def decode_key_prefix(key: bytes | str) -> tuple[Address, int]:
    """Extract (account, block_number) only; used by the coverage rebuild."""
    return _fields(_text(key))

def decode_key(key: bytes | str) -> CacheKey:
    s = _text(key)
    if len(s) != KEY_LEN:
        raise ParseError(f"Cache key must be {KEY_LEN} chars, got {len(s)}: {s!r}")
    account, block_number = _fields(s)
    if s[_BLK_END] != SEP:
        raise ParseError(f"Missing separator after block number in key: {s!r}")
    return CacheKey(account, block_number, to_tx_hash(s[_HASH_START:]))
