from __future__ import annotations
import itertools, logging, httpx
from typing import Any
from ..domain.models import Block, Receipt, Transaction
from ..domain.value_types import Address, TxHash, to_address, to_tx_hash
from ..exceptions import ParseError, TransportError
from ..ports.rpc import LedgerClient

log = logging.getLogger(__name__)

def _to_hex_block(n: int) -> str: return hex(int(n))
def _hex_int(x: Any) -> int:
    if isinstance(x, int): return x
    s = str(x).lower()
    return int(s, 16) if s.startswith("0x") else int(s)
def _opt_int(x: Any) -> int | None: return None if x is None else _hex_int(x)
def _opt_addr(x: Any) -> Address | None: return to_address(x) if x else None

def _parse_block(raw: dict[str, Any]) -> Block:
    txs = raw.get("transactions") or []
    # full tx objects when the node ignores hydrated=false
    hashes = tuple(to_tx_hash(t["hash"] if isinstance(t, dict) else t) for t in txs)
    return Block(number=_hex_int(raw["number"]), timestamp=_hex_int(raw["timestamp"]), transactions=hashes)

def _parse_transaction(raw: dict[str, Any]) -> Transaction:
    return Transaction(
        hash=to_tx_hash(raw["hash"]),
        from_address=_opt_addr(raw.get("from")),
        to_address=_opt_addr(raw.get("to")),
        value=_hex_int(raw.get("value", "0x0")),
        gas_price=_opt_int(raw.get("gasPrice")),
        gas=_hex_int(raw.get("gas", "0x0")),
        transaction_type=_opt_int(raw.get("type")),
    )

def _parse_receipt(raw: dict[str, Any]) -> Receipt:
    return Receipt(
        transaction_hash=to_tx_hash(raw["transactionHash"]),
        status=_opt_int(raw.get("status")),
        gas_used=_opt_int(raw.get("gasUsed")),
    )


class HttpxLedgerClient(LedgerClient):
    """JSON-RPC over a shared httpx.AsyncClient. No retries: every failure surfaces as TransportError."""

    def __init__(self, rpc_url: str, timeout_s: float = 20, max_conn: int = 64,
                 transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.rpc_url = rpc_url
        self._ids = itertools.count(1)
        self.client = httpx.AsyncClient(
            http2=True,
            timeout=httpx.Timeout(timeout_s),
            limits=httpx.Limits(max_connections=max_conn, max_keepalive_connections=max_conn//2),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> HttpxLedgerClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def _call(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc":"2.0","id":next(self._ids),"method":method,"params":params}
        log.debug("rpc %s %s", method, params)
        try:
            r = await self.client.post(self.rpc_url, json=payload)
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPError as e:
            raise TransportError(f"{method} to {self.rpc_url} failed: {type(e).__name__}: {e}") from e
        except ValueError as e:
            raise TransportError(f"{method}: response is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise TransportError(f"{method}: unexpected response {data!r}")
        if data.get("error") is not None:
            err = data["error"]
            if isinstance(err, dict):
                raise TransportError(f"{method} RPC error code={err.get('code')} message={err.get('message')}")
            raise TransportError(f"{method} RPC error: {err}")
        return data.get("result")

    async def _parsed(self, method: str, params: list[Any], parse: Any) -> Any:
        res = await self._call(method, params)
        if res is None:
            return None
        try:
            return parse(res)
        except (KeyError, TypeError, ValueError, ParseError) as e:
            raise TransportError(f"{method}: malformed result: {e}") from e

    async def latest_block(self) -> int:
        n = await self._parsed("eth_blockNumber", [], _hex_int)
        if n is None:
            raise TransportError("eth_blockNumber returned null")
        return n

    async def get_block(self, block_number: int) -> Block | None:
        return await self._parsed("eth_getBlockByNumber", [_to_hex_block(block_number), False], _parse_block)

    async def get_transaction(self, tx_hash: TxHash) -> Transaction | None:
        return await self._parsed("eth_getTransactionByHash", [str(tx_hash)], _parse_transaction)

    async def get_receipt(self, tx_hash: TxHash) -> Receipt | None:
        return await self._parsed("eth_getTransactionReceipt", [str(tx_hash)], _parse_receipt)

    async def get_balance(self, account: Address, block_number: int) -> int:
        bal = await self._parsed("eth_getBalance", [str(account), _to_hex_block(block_number)], _hex_int)
        if bal is None:
            raise TransportError(f"eth_getBalance returned null for {account} at {block_number}")
        return bal
