from datetime import datetime, timezone

import pytest

from conftest import ACCOUNT, FakeLedger
from ethcrawler.application.balance import BalanceResolver, to_unix_seconds


def linear_chain(n_blocks=101, start=1000, step=10) -> FakeLedger:
    led = FakeLedger()
    for n in range(n_blocks):
        led.add_block(n, start + step * n)
    return led


class TestResolveBalance:
    @pytest.mark.asyncio
    async def test_block_before_target(self):
        led = linear_chain()
        led.balances[(ACCOUNT, 57)] = 12345
        resolver = BalanceResolver(led)
        assert await resolver.resolve_block(1000 + 10 * 57 + 3) == 57
        assert await resolver.resolve_balance(ACCOUNT, 1573) == 12345
        assert led.calls["get_balance"] == 1

    @pytest.mark.asyncio
    async def test_exact_timestamp_match(self):
        led = linear_chain()
        assert await BalanceResolver(led).resolve_block(1000 + 10 * 40) == 40

    @pytest.mark.asyncio
    async def test_exact_match_stops_early(self):
        led = linear_chain()
        # block 50 is the first midpoint tried
        assert await BalanceResolver(led).resolve_block(1500) == 50
        assert led.calls["get_block"] == 1

    @pytest.mark.asyncio
    async def test_missing_midpoint_moves_right(self):
        led = linear_chain()
        del led.blocks[50]
        assert await BalanceResolver(led).resolve_block(1573) == 57
        assert await BalanceResolver(led).resolve_block(1735) == 73

    @pytest.mark.asyncio
    async def test_missing_block_before_target_is_skipped(self):
        led = linear_chain()
        del led.blocks[57]
        resolved = await BalanceResolver(led).resolve_block(1573)
        assert resolved == 56
        assert resolved in led.blocks

    @pytest.mark.asyncio
    async def test_non_uniform_intervals(self):
        led = FakeLedger()
        ts = 0
        for n in range(64):
            ts += 1 if n % 3 else 40
            led.add_block(n, ts)
        for target_block in (5, 20, 41, 59):
            target = led.blocks[target_block].timestamp
            assert await BalanceResolver(led).resolve_block(target) == target_block
            # anywhere before the next block still resolves to the same block
            assert await BalanceResolver(led).resolve_block(target + 1) == target_block
            assert await BalanceResolver(led).resolve_block(target + 39) == target_block

    @pytest.mark.asyncio
    async def test_past_head_has_no_answer(self):
        led = linear_chain()
        assert await BalanceResolver(led).resolve_balance(ACCOUNT, 1000 + 10 * 100 + 1) is None
        assert led.calls["get_balance"] == 0

    @pytest.mark.asyncio
    async def test_before_genesis_has_no_answer(self):
        led = linear_chain()
        assert await BalanceResolver(led).resolve_balance(ACCOUNT, 10) is None

    @pytest.mark.asyncio
    async def test_accepts_datetime(self):
        led = FakeLedger()
        base = int(datetime(2023, 4, 1, tzinfo=timezone.utc).timestamp())
        for n in range(101):
            led.add_block(n, base - 500 + 12 * n)
        # midnight falls between block 41 (base - 8) and block 42 (base + 4)
        assert await BalanceResolver(led).resolve_block(datetime(2023, 4, 1)) == 41


def test_to_unix_seconds():
    assert to_unix_seconds(1700000000) == 1700000000
    assert to_unix_seconds(datetime(1970, 1, 2)) == 86400
    assert to_unix_seconds(datetime(1970, 1, 2, tzinfo=timezone.utc)) == 86400
