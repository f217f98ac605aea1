"""Tests for holder distribution statistics and the holder fallback chain."""

import pytest

from conftest import SUPPLY, TOKEN, FakeChain, FakeExplorer, transfer_log
from rugscope.parsers.analysis_types import TokenInfo
from rugscope.parsers.chain.abi import TRANSFER_TOPIC
from rugscope.parsers.chain.exceptions import ChainRpcError
from rugscope.parsers.explorer.models import ExplorerHolder
from rugscope.parsers.holders import (
    RawHolder,
    analyze_holders,
    fetch_holder_distribution,
    gini_coefficient,
    holder_percent,
)
from rugscope.parsers.risk_scoring import assess_risk
from rugscope.utils.addresses import DEAD_ADDRESS, ZERO_ADDRESS

TOKEN_INFO = TokenInfo(address=TOKEN, name="Test", symbol="TST", decimals=18, total_supply=SUPPLY)


def _wallet(i: int) -> str:
    return "0x" + f"{i + 0x1000:040x}"


class TestHolderPercent:
    def test_integer_math(self) -> None:
        assert holder_percent(1, 3) == 33.33
        assert holder_percent(2, 3) == 66.66  # floor, not rounded
        assert holder_percent(50, 100) == 50.0

    def test_huge_supply_keeps_precision(self) -> None:
        supply = 10**40 + 7
        balance = supply // 8
        assert holder_percent(balance, supply) == (balance * 10000 // supply) / 100
        assert holder_percent(balance, supply) == 12.49

    def test_zero_supply(self) -> None:
        assert holder_percent(100, 0) == 0.0


class TestGini:
    def test_equal_balances_is_zero(self) -> None:
        assert gini_coefficient([5, 5, 5, 5]) == 0.0

    def test_single_dominant_holder_approaches_max(self) -> None:
        dominant = gini_coefficient([10**6] + [1] * 9)
        moderate = gini_coefficient([50, 30, 20])
        assert dominant > 0.85
        assert dominant > moderate

    def test_empty(self) -> None:
        assert gini_coefficient([]) == 0.0


class TestAnalyzeHolders:
    def test_burn_and_zero_excluded_from_live_stats(self) -> None:
        raw = [
            RawHolder(DEAD_ADDRESS, SUPPLY // 2),
            RawHolder(ZERO_ADDRESS, SUPPLY // 10),
            RawHolder(_wallet(1), SUPPLY // 10),
            RawHolder(_wallet(2), 0),
        ]
        dist = analyze_holders(raw, SUPPLY, min_live_holders=25)

        assert dist.live_holder_count == 1
        assert dist.holders[0].address == _wallet(1)
        assert dist.burned_pct == 50.0
        assert dist.top10_pct == 10.0

    def test_sorted_descending_and_top10(self) -> None:
        raw = [RawHolder(_wallet(i), (i + 1) * 10**18) for i in range(15)]
        dist = analyze_holders(raw, SUPPLY, min_live_holders=5)

        balances = [h.balance for h in dist.holders]
        assert balances == sorted(balances, reverse=True)
        assert dist.top10_pct == round(sum(h.percent for h in dist.holders[:10]), 2)

    def test_healthy_classification(self) -> None:
        raw = [RawHolder(_wallet(i), SUPPLY // 100) for i in range(30)]
        dist = analyze_holders(raw, SUPPLY, min_live_holders=25)

        assert dist.top10_pct == 10.0
        assert dist.gini == 0.0
        assert dist.classification == "healthy"

    def test_too_few_holders_is_concentrated(self) -> None:
        raw = [RawHolder(_wallet(i), SUPPLY // 100) for i in range(10)]
        dist = analyze_holders(raw, SUPPLY, min_live_holders=25)
        assert dist.classification == "concentrated"

    def test_unknown_supply_is_unknown(self) -> None:
        raw = [RawHolder(_wallet(i), 10**18) for i in range(40)]
        dist = analyze_holders(raw, 0, min_live_holders=25)

        assert dist.live_holder_count == 40
        assert dist.top10_pct == 0.0
        assert dist.classification == "unknown"

    def test_empty_is_unknown(self) -> None:
        dist = analyze_holders([], SUPPLY, min_live_holders=25)
        assert dist.classification == "unknown"
        assert dist.live_holder_count == 0


class TestFetchHolderDistribution:
    @pytest.mark.asyncio
    async def test_explorer_first(self, test_settings) -> None:
        explorer = FakeExplorer(
            holders=[ExplorerHolder(address=_wallet(1), balance=SUPPLY // 4, is_contract=False)]
        )
        dist = await fetch_holder_distribution(FakeChain(), explorer, TOKEN_INFO, test_settings)

        assert dist.source == "explorer"
        assert dist.holders[0].percent == 25.0

    @pytest.mark.asyncio
    async def test_falls_back_to_transfer_logs(self, test_settings) -> None:
        chain = FakeChain(
            logs={
                (TOKEN, TRANSFER_TOPIC): [
                    transfer_log(ZERO_ADDRESS, _wallet(1), 600),
                    transfer_log(_wallet(1), _wallet(2), 200),
                ]
            },
            reads={
                (TOKEN, "balanceOf(address)", (_wallet(1),)): SUPPLY // 2,
                (TOKEN, "balanceOf(address)", (_wallet(2),)): SUPPLY // 5,
            },
        )
        dist = await fetch_holder_distribution(chain, FakeExplorer(), TOKEN_INFO, test_settings)

        assert dist.source == "transfer_logs"
        assert [h.percent for h in dist.holders] == [50.0, 20.0]

    @pytest.mark.asyncio
    async def test_every_strategy_failing_gives_unknown(self, test_settings) -> None:
        """Holder fetch fails everywhere → empty, unknown, no exception."""
        chain = FakeChain(logs={(TOKEN, TRANSFER_TOPIC): ChainRpcError("boom")})

        class BrokenExplorer(FakeExplorer):
            async def get_holders(self, address, limit=100):
                raise RuntimeError("explorer down")

        dist = await fetch_holder_distribution(chain, BrokenExplorer(), TOKEN_INFO, test_settings)

        assert dist.live_holder_count == 0
        assert dist.classification == "unknown"
        assert dist.holders == []

    @pytest.mark.asyncio
    async def test_unknown_supply_gets_no_healthy_insight(self, test_settings) -> None:
        token = TokenInfo(address=TOKEN, name="Test", symbol="TST", decimals=18, total_supply=0)
        explorer = FakeExplorer(
            holders=[ExplorerHolder(address=_wallet(i), balance=10**18) for i in range(40)]
        )
        dist = await fetch_holder_distribution(FakeChain(), explorer, token, test_settings)
        assessment = assess_risk(token=token, holders=dist)

        assert dist.classification == "unknown"
        assert not any("Healthy holder distribution" in line for line in assessment.insights)
