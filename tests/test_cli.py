import pyarrow.parquet as pq
import pytest
from typer.testing import CliRunner

from conftest import ACCOUNT
from ethcrawler.presentation import cli
from ethcrawler.exceptions import TransportError

runner = CliRunner()


class ClosingLedger:
    """Wraps a FakeLedger with the async context manager the CLI uses."""
    def __init__(self, inner):
        self.inner = inner
    def __getattr__(self, name):
        return getattr(self.inner, name)
    async def aclose(self):
        pass
    async def __aenter__(self):
        return self
    async def __aexit__(self, *exc):
        pass


@pytest.fixture
def fake_node(monkeypatch, ledger):
    async def fake_connect(url, defaults, **kw):
        return ClosingLedger(ledger)
    monkeypatch.setattr(cli, "connect", fake_connect)
    return ledger


class TestCrawlCommand:
    def test_crawl_then_cached(self, fake_node, tmp_path):
        db = str(tmp_path / "db")
        out = str(tmp_path / "res.parquet")
        args = ["crawl", "--account", ACCOUNT, "--block-start", "0", "--block-end", "8", "--db-path", db]
        result = runner.invoke(cli.app, args + ["--out", out])
        assert result.exit_code == 0, result.output
        assert pq.read_table(out).num_rows == 5

        fake_node.calls.clear()
        result = runner.invoke(cli.app, args)
        assert result.exit_code == 0, result.output
        assert fake_node.calls["get_block"] == 0

        result = runner.invoke(cli.app, ["coverage", "--db-path", db])
        assert result.exit_code == 0, result.output
        assert "Cached block windows" in result.output

    def test_balance_panel(self, fake_node, tmp_path):
        result = runner.invoke(cli.app, ["crawl", "--account", ACCOUNT, "--block-start", "0", "--block-end", "1",
                                         "--timestamp", "1970-01-01", "--db-path", str(tmp_path / "db")])
        assert result.exit_code == 0, result.output
        assert "Balance" in result.output
        # every block in the fixture is later than the epoch
        assert "unknown" in result.output

    def test_bad_account(self, fake_node, tmp_path):
        result = runner.invoke(cli.app, ["crawl", "--account", "0x1234", "--block-start", "0",
                                         "--db-path", str(tmp_path / "db")])
        assert result.exit_code != 0

    def test_transport_error_exit_code(self, monkeypatch, tmp_path):
        async def down(url, defaults, **kw):
            raise TransportError("all nodes down")
        monkeypatch.setattr(cli, "connect", down)
        result = runner.invoke(cli.app, ["crawl", "--account", ACCOUNT, "--block-start", "0",
                                         "--db-path", str(tmp_path / "db")])
        assert result.exit_code == 1
        assert "all nodes down" in result.output
