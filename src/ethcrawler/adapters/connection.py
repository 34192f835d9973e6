# ethcrawler/adapters/connection.py
from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..exceptions import TransportError
from .rpc_httpx import HttpxLedgerClient

log = logging.getLogger(__name__)

ClientFactory = Callable[[str], HttpxLedgerClient]


async def connect(
    jsonrpc_url: str | None,
    default_urls: Sequence[str],
    *,
    timeout_s: float = 20,
    factory: ClientFactory | None = None,
) -> HttpxLedgerClient:
    """
    Return a client for the first node that answers eth_blockNumber.
    `jsonrpc_url=None` means: try `default_urls` in order.
    If every candidate fails, the first candidate's error is raised.
    """
    urls = [jsonrpc_url] if jsonrpc_url else list(default_urls)
    if not urls:
        raise TransportError("No JSON-RPC URL configured")
    make = factory or (lambda url: HttpxLedgerClient(url, timeout_s=timeout_s))

    errors: list[TransportError] = []
    for url in urls:
        client = make(url)
        try:
            head = await client.latest_block()
        except TransportError as e:
            log.warning("Node %s unavailable: %s", url, e)
            errors.append(e)
            await client.aclose()
            continue
        log.info("Connected to %s (head block %d)", url, head)
        return client
    raise errors[0]
