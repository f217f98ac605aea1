"""Tests for tax unit normalization and the declarative tax probe table."""

import pytest

from conftest import SUPPLY, TOKEN, FakeChain
from rugscope.parsers.analysis_types import TokenInfo
from rugscope.parsers.taxes import (
    TaxProbe,
    apply_unit,
    clamp_pct,
    fetch_taxes,
    limit_percent,
    normalize_tax,
    probe_tax,
)

TOKEN_INFO = TokenInfo(address=TOKEN, name="Test", symbol="TST", decimals=18, total_supply=SUPPLY)


class TestNormalizeTax:
    def test_percent_band(self) -> None:
        assert normalize_tax(0) == 0.0
        assert normalize_tax(5) == 5.0
        assert normalize_tax(100) == 100.0

    def test_basis_points_band(self) -> None:
        assert normalize_tax(500) == 5.0
        assert normalize_tax(10_000) == 100.0

    def test_thousandths_band(self) -> None:
        assert normalize_tax(25_000) == 25.0

    def test_out_of_band_clamps_later(self) -> None:
        assert normalize_tax(10**18) == float(10**18)
        assert clamp_pct(normalize_tax(10**18)) == 100.0

    def test_explicit_units(self) -> None:
        assert apply_unit(300, "basis_points") == 3.0
        assert apply_unit(50, "per_mille") == 5.0
        assert apply_unit(7, "percent") == 7.0


class TestLimitPercent:
    def test_no_limit(self) -> None:
        assert limit_percent(None, SUPPLY) == 100.0
        assert limit_percent(0, SUPPLY) == 100.0
        assert limit_percent(SUPPLY * 2, SUPPLY) == 100.0

    def test_limit_as_share_of_supply(self) -> None:
        assert limit_percent(SUPPLY // 50, SUPPLY) == 2.0

    def test_tiny_limit_stays_positive(self) -> None:
        assert limit_percent(1, SUPPLY) == 0.01


class TestProbes:
    @pytest.mark.asyncio
    async def test_first_answering_probe_wins(self) -> None:
        chain = FakeChain(reads={(TOKEN, "getBuyTax()"): 3, (TOKEN, "buyFee()"): 99})
        value = await probe_tax(chain, TOKEN, [TaxProbe("buyTax()"), TaxProbe("getBuyTax()"), TaxProbe("buyFee()")])
        assert value == 3.0

    @pytest.mark.asyncio
    async def test_no_accessor(self) -> None:
        assert await probe_tax(FakeChain(), TOKEN, [TaxProbe("buyTax()")]) is None

    @pytest.mark.asyncio
    async def test_fetch_taxes(self) -> None:
        chain = FakeChain(
            reads={
                (TOKEN, "buyTax()"): 25,
                (TOKEN, "sellTotalFees()"): 3000,
                (TOKEN, "_maxTxAmount()"): SUPPLY // 100,
            }
        )
        taxes = await fetch_taxes(chain, TOKEN_INFO)

        assert taxes.buy_tax == 25.0
        assert taxes.sell_tax == 30.0
        assert taxes.max_tx_pct == 1.0
        assert taxes.max_wallet_pct == 100.0
        assert taxes.has_limits is True

    @pytest.mark.asyncio
    async def test_fetch_taxes_nothing_found(self) -> None:
        taxes = await fetch_taxes(FakeChain(), TOKEN_INFO)

        assert taxes.found is False
        assert taxes.max_tax == 0.0
        assert taxes.has_limits is False
