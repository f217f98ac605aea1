"""Tests for the liquidity pair discovery strategy chain."""

import pytest

from conftest import BASE, FACTORY, PAIR, ROUTER, TOKEN, FakeChain, FakeExplorer
from rugscope.parsers.explorer.models import ExplorerTransfer
from rugscope.parsers.pair_locator import locate_pair
from rugscope.utils.addresses import ZERO_ADDRESS

OTHER = "0x9999999999999999999999999999999999999999"


def _pool_reads(pair: str = PAIR, token0: str = TOKEN, token1: str = BASE) -> dict:
    return {(pair, "token0()"): token0, (pair, "token1()"): token1}


@pytest.mark.asyncio
async def test_token_accessor_wins(test_settings) -> None:
    chain = FakeChain(reads={(TOKEN, "uniswapV2Pair()"): PAIR, **_pool_reads()})

    lookup = await locate_pair(chain, None, TOKEN, test_settings)

    assert lookup.pair_address == PAIR
    assert lookup.paired_token == BASE
    assert lookup.strategy == "token_accessor"


@pytest.mark.asyncio
async def test_accessor_pointing_elsewhere_is_ignored(test_settings) -> None:
    """A pair() that returns a pool without the token must not be trusted."""
    chain = FakeChain(
        reads={
            (TOKEN, "pair()"): PAIR,
            **_pool_reads(token0=OTHER, token1=BASE),
            (FACTORY, "getPair(address,address)", (TOKEN, BASE)): OTHER,
        }
    )

    lookup = await locate_pair(chain, None, TOKEN, test_settings)

    assert lookup.pair_address == OTHER
    assert lookup.strategy == "factory_get_pair"


@pytest.mark.asyncio
async def test_factory_get_pair_skips_zero(test_settings) -> None:
    test_settings.base_tokens = f"{OTHER},{BASE}"
    chain = FakeChain(
        reads={
            (FACTORY, "getPair(address,address)", (TOKEN, OTHER)): ZERO_ADDRESS,
            (FACTORY, "getPair(address,address)", (TOKEN, BASE)): PAIR,
        }
    )

    lookup = await locate_pair(chain, None, TOKEN, test_settings)

    assert lookup.pair_address == PAIR
    assert lookup.paired_token == BASE


@pytest.mark.asyncio
async def test_factory_scan_finds_recent_pair(test_settings) -> None:
    test_settings.base_tokens = ""
    reads = {(FACTORY, "allPairsLength()"): 3}
    for i in range(3):
        reads[(FACTORY, "allPairs(uint256)", (i,))] = "0x" + f"{0xa0 + i:040x}"
    reads.update(_pool_reads(pair="0x" + f"{0xa1:040x}", token0=BASE, token1=TOKEN))
    chain = FakeChain(reads=reads)

    lookup = await locate_pair(chain, None, TOKEN, test_settings)

    assert lookup.pair_address == "0x" + f"{0xa1:040x}"
    assert lookup.paired_token == BASE
    assert lookup.strategy == "factory_scan"


@pytest.mark.asyncio
async def test_transfer_history_fallback(test_settings) -> None:
    test_settings.factory_address = ""
    wallet = "0x8888888888888888888888888888888888888888"
    transfers = [
        ExplorerTransfer(from_address=PAIR, to_address=wallet, from_is_contract=True, to_is_contract=False),
        ExplorerTransfer(from_address=wallet, to_address=PAIR, from_is_contract=False, to_is_contract=True),
        ExplorerTransfer(from_address=ROUTER, to_address=wallet, from_is_contract=True, to_is_contract=False),
    ]
    chain = FakeChain(reads=_pool_reads())

    lookup = await locate_pair(chain, FakeExplorer(transfers=transfers), TOKEN, test_settings)

    assert lookup.pair_address.lower() == PAIR
    assert lookup.strategy == "transfer_history"


@pytest.mark.asyncio
async def test_not_found_sentinel(test_settings) -> None:
    lookup = await locate_pair(FakeChain(), FakeExplorer(), TOKEN, test_settings)

    assert lookup.found is False
    assert lookup.pair_address is None
    assert lookup.strategy is None
