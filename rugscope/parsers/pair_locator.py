"""Liquidity pair discovery via an ordered strategy chain.

1. The token's own pair accessor (many launch templates store it).
2. factory.getPair(token, base) for each configured base token, in order.
3. Scan of the newest factory pairs via allPairs(i).
4. Contracts seen in the explorer transfer feed that look like a pair.

Only the first pool found is analysed; tokens with several pools are
judged by that one.
"""

import asyncio
from collections import Counter

from loguru import logger

from config.settings import Settings
from rugscope.parsers.analysis_types import PairLookup
from rugscope.parsers.chain.client import ChainRpcClient
from rugscope.parsers.explorer.client import ExplorerClient
from rugscope.parsers.fallback import first_present
from rugscope.utils.addresses import is_burn_address, same_address

PAIR_ACCESSORS = (
    "pair()",
    "uniswapV2Pair()",
    "pancakePair()",
    "lpPair()",
    "mainPair()",
    "uniswapPair()",
)
FACTORY_SCAN_BATCH = 20
HISTORY_MAX_CANDIDATES = 5


async def pair_tokens(chain: ChainRpcClient, pair: str) -> tuple[str, str] | None:
    token0, token1 = await asyncio.gather(
        chain.read(pair, "token0()", ("address",)),
        chain.read(pair, "token1()", ("address",)),
    )
    if not token0 or not token1:
        return None
    return token0, token1


async def _confirm_pair(chain: ChainRpcClient, token: str, pair: str | None) -> PairLookup | None:
    """Accept ``pair`` only if it is a pool containing ``token``."""
    if not pair or is_burn_address(pair):
        return None
    tokens = await pair_tokens(chain, pair)
    if tokens is None:
        return None
    token0, token1 = tokens
    if same_address(token0, token):
        return PairLookup(pair_address=pair, paired_token=token1)
    if same_address(token1, token):
        return PairLookup(pair_address=pair, paired_token=token0)
    return None


async def _from_token_accessor(chain: ChainRpcClient, token: str) -> PairLookup | None:
    for signature in PAIR_ACCESSORS:
        pair = await chain.read(token, signature, ("address",))
        found = await _confirm_pair(chain, token, pair)
        if found is not None:
            return found
    return None


async def _from_factory_get_pair(
    chain: ChainRpcClient, token: str, factory: str, base_tokens: list[str]
) -> PairLookup | None:
    if not factory:
        return None
    for base in base_tokens:
        if same_address(base, token):
            continue
        pair = await chain.read(factory, "getPair(address,address)", ("address",), (token, base))
        if pair and not is_burn_address(pair):
            return PairLookup(pair_address=pair, paired_token=base)
    return None


async def _from_factory_scan(
    chain: ChainRpcClient, token: str, factory: str, scan_limit: int
) -> PairLookup | None:
    """Walk the newest pairs of the factory, most recent first."""
    if not factory or scan_limit <= 0:
        return None
    total = await chain.read(factory, "allPairsLength()", ("uint256",))
    if not total:
        return None

    lowest = max(int(total) - scan_limit, 0)
    index = int(total) - 1
    while index >= lowest:
        batch = range(index, max(index - FACTORY_SCAN_BATCH, lowest - 1), -1)
        pairs = await asyncio.gather(
            *(chain.read(factory, "allPairs(uint256)", ("address",), (i,)) for i in batch)
        )
        confirmed = await asyncio.gather(*(_confirm_pair(chain, token, pair) for pair in pairs))
        found = next((c for c in confirmed if c is not None), None)
        if found is not None:
            return found
        index -= FACTORY_SCAN_BATCH
    return None


async def _from_transfer_history(
    chain: ChainRpcClient,
    explorer: ExplorerClient | None,
    token: str,
    router: str,
) -> PairLookup | None:
    """Contracts that trade the token most often are likely its pool."""
    if explorer is None:
        return None
    transfers = await explorer.get_token_transfers(token)
    if not transfers:
        return None

    seen: Counter[str] = Counter()
    for t in transfers:
        for address, is_contract in (
            (t.from_address, t.from_is_contract),
            (t.to_address, t.to_is_contract),
        ):
            if not address or is_contract is False:
                continue
            if same_address(address, token) or same_address(address, router) or is_burn_address(address):
                continue
            seen[address.lower()] += 1

    for address, _ in seen.most_common(HISTORY_MAX_CANDIDATES):
        found = await _confirm_pair(chain, token, address)
        if found is not None:
            return found
    return None


async def locate_pair(
    chain: ChainRpcClient,
    explorer: ExplorerClient | None,
    token: str,
    settings: Settings,
) -> PairLookup:
    """Return the first pair any strategy finds, or an empty PairLookup.

    Each strategy runs under ``pair_strategy_timeout_sec`` of its own.
    """
    hit = await first_present(
        [
            ("token_accessor", lambda: _from_token_accessor(chain, token)),
            (
                "factory_get_pair",
                lambda: _from_factory_get_pair(
                    chain, token, settings.factory_address, settings.base_token_list
                ),
            ),
            (
                "factory_scan",
                lambda: _from_factory_scan(
                    chain, token, settings.factory_address, settings.factory_scan_limit
                ),
            ),
            (
                "transfer_history",
                lambda: _from_transfer_history(chain, explorer, token, settings.router_address),
            ),
        ],
        tag="PAIR",
        timeout=settings.pair_strategy_timeout_sec,
    )
    if hit is None:
        logger.info(f"[PAIR] No liquidity pair found for {token[:10]}")
        return PairLookup()

    strategy, lookup = hit
    lookup.strategy = strategy
    logger.debug(f"[PAIR] {token[:10]} → {lookup.pair_address} via {strategy}")
    return lookup
