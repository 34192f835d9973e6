import asyncio
from datetime import datetime, timezone
from typing import Optional

import typer
from eth_utils import to_checksum_address
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    Progress, BarColumn, TextColumn, TimeElapsedColumn,
    TimeRemainingColumn, MofNCompleteColumn, SpinnerColumn
)
from rich.table import Table

from ..adapters.connection import connect
from ..adapters.coverage_local import LocalCoverageIndex
from ..adapters.parquet_export import ParquetRecordSink
from ..adapters.store_lmdb import LmdbTransactionStore
from ..application.balance import BalanceResolver
from ..application.use_cases import RangeCacheCoordinator
from ..application.utils import date_from_string, wei_to_eth
from ..config import load_settings
from ..domain.models import TransactionRecord
from ..domain.value_types import Address, to_address
from ..exceptions import CrawlerError
from ..logging_setup import setup_logging

app = typer.Typer(help="Ethereum account transaction crawler with a local range cache.")
console = Console()


def _fmt_addr(a: Optional[str]) -> str:
    return to_checksum_address(a) if a else "-"

def _fmt_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

def render_records(account: Address, records: list[TransactionRecord]) -> Table:
    table = Table(title=f"Transactions of {_fmt_addr(account)}", expand=False)
    for col in ("transaction hash", "block number", "timestamp", "from", "to", "value",
                "gas price", "gas used", "transaction type", "status"):
        table.add_column(col, no_wrap=True)
    for r in records:
        table.add_row(
            r.transaction_hash,
            str(r.block_number),
            _fmt_ts(r.block_timestamp),
            _fmt_addr(r.from_address),
            _fmt_addr(r.to_address),
            f"{wei_to_eth(r.value)} ETH",
            "-" if r.gas_price is None else str(r.gas_price),
            str(r.gas_used),
            "-" if r.transaction_type is None else str(r.transaction_type),
            "-" if r.receipt_status is None else str(r.receipt_status),
        )
    return table


@app.command()
def crawl(
    account: str = typer.Option(..., help="Ethereum account address"),
    block_start: int = typer.Option(..., min=0, help="Ethereum block number start (unsigned integer)"),
    block_end: Optional[int] = typer.Option(None, min=0, help="Ethereum block number end; default: latest"),
    timestamp: Optional[str] = typer.Option(None, metavar="YYYY-MM-DD", help="Date to fetch the account balance at"),
    jsonrpc_url: Optional[str] = typer.Option(None, help="Ethereum JSON RPC url; default: configured fallback list"),
    db_path: Optional[str] = typer.Option(None, help="Cache directory (LMDB)"),
    out: Optional[str] = typer.Option(None, help="Also write the transactions to this Parquet file"),
    log_level: Optional[str] = typer.Option(None, help="DEBUG, INFO, WARNING, ..."),
):
    """Fetch (or read from cache) the transactions of ACCOUNT in a block range."""
    settings = load_settings()
    setup_logging(log_level or settings.log_level)
    try:
        addr = to_address(account)
    except CrawlerError as e:
        raise typer.BadParameter(str(e), param_hint="--account")
    try:
        when = date_from_string(timestamp) if timestamp else None
    except ValueError:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {timestamp!r}", param_hint="--timestamp")
    if block_end is not None and block_start > block_end:
        raise typer.BadParameter("--block-start must be <= --block-end")

    async def main() -> tuple[list[TransactionRecord], Optional[int]]:
        rpc = await connect(jsonrpc_url, settings.jsonrpc_urls, timeout_s=settings.rpc_timeout)
        async with rpc:
            balance = None
            if when is not None:
                console.log("Fetch balance started.")
                balance = await BalanceResolver(rpc).resolve_balance(addr, when)
                console.log("Fetch balance finished.")

            with LmdbTransactionStore(db_path or settings.db_path, settings.db_map_size) as store:
                coordinator = RangeCacheCoordinator(rpc, store, LocalCoverageIndex(store, settings.coverage_policy))
                end = block_end if block_end is not None else await rpc.latest_block()
                if end < block_start:
                    raise CrawlerError(f"--block-start {block_start} is past the chain head {end}")
                if not await coordinator.needs_fetch(addr, block_start, end):
                    return await coordinator.query(addr, block_start, end), balance

                progress = Progress(SpinnerColumn(),
                                    TextColumn("[bold]scanning blocks[/]"),
                                    BarColumn(),
                                    MofNCompleteColumn(),
                                    TextColumn("•"),
                                    TimeElapsedColumn(),
                                    TextColumn("→"),
                                    TimeRemainingColumn(),
                                    console=console,
                                    transient=True,
                                    )
                with progress:
                    task = progress.add_task(f"{block_start:,}-{end:,}", total=end - block_start + 1)
                    records = await coordinator.query(addr, block_start, end,
                                                      on_block=lambda _n: progress.advance(task, 1))
                return records, balance

    try:
        records, balance = asyncio.run(main())
    except CrawlerError as e:
        console.print(f"[bold red]error[/]: {e}")
        raise typer.Exit(code=1)

    if when is not None:
        text = (f"[bold]Timestamp:[/] {when:%Y-%m-%d %H:%M:%S %Z}\n[bold]Balance:[/] "
                + (f"{wei_to_eth(balance)} ETH" if balance is not None else "unknown (date is before the first block or past the chain head)"))
        console.print(Panel(text, title="Balance"))
    console.print(render_records(addr, records))
    if out:
        path = ParquetRecordSink(out).write(addr, records)
        console.print(f"[bold]wrote[/]: {len(records)} transactions → {path}")


@app.command("coverage")
def show_coverage(
    db_path: Optional[str] = typer.Option(None, help="Cache directory (LMDB)"),
):
    """List the block windows already cached per account."""
    settings = load_settings()
    setup_logging(settings.log_level)
    try:
        with LmdbTransactionStore(db_path or settings.db_path, settings.db_map_size) as store:
            windows = LocalCoverageIndex(store, settings.coverage_policy).snapshot()
    except CrawlerError as e:
        console.print(f"[bold red]error[/]: {e}")
        raise typer.Exit(code=1)
    table = Table(title="Cached block windows")
    for col in ("account", "first block", "last block"):
        table.add_column(col)
    for acc, w in sorted(windows.items()):
        table.add_row(_fmt_addr(acc), str(w.start), str(w.end))
    console.print(table)


if __name__ == "__main__":
    app()
