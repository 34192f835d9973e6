"""
Crawler configuration.

Values come from, in increasing priority: built-in defaults, a `.env` file in the
working directory, process environment variables. CLI flags override the result.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import dotenv_values

from .domain.value_types import CoveragePolicy

# tried in order until one answers eth_blockNumber
DEFAULT_JSONRPC_URLS = (
    "http://127.0.0.1:8545",
    "https://ethereum-rpc.publicnode.com",
    "https://cloudflare-eth.com",
    "https://rpc.ankr.com/eth",
)

DEFAULTS = {
    'ETHCRAWLER_JSONRPC_URLS':      ','.join(DEFAULT_JSONRPC_URLS),
    'ETHCRAWLER_DB_PATH':           'db',
    'ETHCRAWLER_DB_MAP_SIZE':       str(1 << 30),
    'ETHCRAWLER_RPC_TIMEOUT':       '20',
    'ETHCRAWLER_LOG_LEVEL':         'INFO',
    'ETHCRAWLER_COVERAGE_POLICY':   'merge',
}

COVERAGE_POLICIES: tuple[CoveragePolicy, ...] = ("merge", "replace")


@dataclass(slots=True, frozen=True)
class Settings:
    jsonrpc_urls: tuple[str, ...]
    db_path: str
    db_map_size: int
    rpc_timeout: float
    log_level: str
    coverage_policy: CoveragePolicy


def _split_urls(raw: str) -> tuple[str, ...]:
    return tuple(u.strip() for u in raw.split(",") if u.strip())


def load_settings(env_file: str | None = ".env", environ: dict[str, str] | None = None) -> Settings:
    values = dict(DEFAULTS)
    if env_file and os.path.isfile(env_file):
        values.update({k: v for k, v in dotenv_values(env_file).items() if k in DEFAULTS and v is not None})
    env = os.environ if environ is None else environ
    values.update({k: env[k] for k in DEFAULTS if k in env})

    policy = values['ETHCRAWLER_COVERAGE_POLICY'].strip().lower()
    if policy not in COVERAGE_POLICIES:
        raise ValueError(f"ETHCRAWLER_COVERAGE_POLICY must be one of {COVERAGE_POLICIES}, got {policy!r}")
    urls = _split_urls(values['ETHCRAWLER_JSONRPC_URLS'])
    if not urls:
        raise ValueError("ETHCRAWLER_JSONRPC_URLS is empty")

    return Settings(
        jsonrpc_urls=urls,
        db_path=values['ETHCRAWLER_DB_PATH'],
        db_map_size=int(values['ETHCRAWLER_DB_MAP_SIZE']),
        rpc_timeout=float(values['ETHCRAWLER_RPC_TIMEOUT']),
        log_level=values['ETHCRAWLER_LOG_LEVEL'].upper(),
        coverage_policy=policy,  # type: ignore[arg-type]
    )
