"""Holder distribution: concentration statistics over the top holder sample.

Percentages use integer math scaled by 10,000 so very large supplies keep
two exact decimals. The Gini-style coefficient is computed over the sampled
holders only (capped by holder_fetch_limit), so for tokens with thousands of
holders it describes the head of the distribution, not the whole of it.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from config.settings import Settings
from rugscope.parsers.analysis_types import HolderDistribution, HolderRecord, TokenInfo
from rugscope.parsers.chain.abi import TRANSFER_TOPIC
from rugscope.parsers.chain.client import ChainRpcClient
from rugscope.parsers.explorer.client import ExplorerClient
from rugscope.parsers.fallback import first_present
from rugscope.utils.addresses import DEAD_ADDRESS, ZERO_ADDRESS, same_address, topic_to_address

HEALTHY_MAX_TOP10_PCT = 40.0
HEALTHY_MAX_GINI = 0.7
LOG_BALANCE_CANDIDATES = 25


@dataclass(frozen=True)
class RawHolder:
    address: str
    balance: int
    is_contract: bool | None = None
    name: str | None = None


def holder_percent(balance: int, supply: int) -> float:
    """Share of supply in percent, exact to two decimals (floor)."""
    if supply <= 0:
        return 0.0
    return (balance * 10_000 // supply) / 100


def gini_coefficient(balances: Sequence[int | float]) -> float:
    """Concentration of the sampled distribution: 0 = equal, →1 = one holder.

    Sort descending, then accumulate (cumulative share - rank/n) * share.
    """
    values = sorted((b for b in balances if b >= 0), reverse=True)
    n = len(values)
    total = sum(values)
    if n == 0 or total <= 0:
        return 0.0

    cumulative = 0.0
    acc = 0.0
    for rank, value in enumerate(values, start=1):
        share = value / total
        cumulative += share
        acc += (cumulative - rank / n) * share
    return round(abs(acc), 4)


def analyze_holders(
    raw: Sequence[RawHolder],
    total_supply: int,
    *,
    min_live_holders: int,
    source: str | None = None,
) -> HolderDistribution:
    """Compute distribution statistics from a raw holder list. Pure."""
    burned_balance = 0
    live: list[RawHolder] = []
    for holder in raw:
        if same_address(holder.address, DEAD_ADDRESS):
            burned_balance += holder.balance
            continue
        if same_address(holder.address, ZERO_ADDRESS) or holder.balance <= 0:
            continue
        live.append(holder)

    live.sort(key=lambda h: h.balance, reverse=True)
    records = [
        HolderRecord(
            address=h.address,
            balance=h.balance,
            percent=holder_percent(h.balance, total_supply),
            is_contract=h.is_contract,
            label=h.name,
        )
        for h in live
    ]

    dist = HolderDistribution(
        holders=records,
        live_holder_count=len(records),
        top10_pct=round(sum(r.percent for r in records[:10]), 2),
        gini=gini_coefficient([r.balance for r in records]),
        burned_balance=burned_balance,
        burned_pct=holder_percent(burned_balance, total_supply),
        source=source,
    )

    # Without a supply every share reads 0%, which must not pass as healthy
    if not records or total_supply <= 0:
        dist.classification = "unknown"
    elif (
        dist.top10_pct < HEALTHY_MAX_TOP10_PCT
        and dist.live_holder_count > min_live_holders
        and dist.gini < HEALTHY_MAX_GINI
    ):
        dist.classification = "healthy"
    else:
        dist.classification = "concentrated"
    return dist


async def _from_explorer(
    explorer: ExplorerClient | None, address: str, limit: int
) -> list[RawHolder] | None:
    if explorer is None:
        return None
    holders = await explorer.get_holders(address, limit=limit)
    if not holders:
        return None
    return [RawHolder(h.address, h.balance, h.is_contract, h.name) for h in holders]


async def _from_transfer_logs(
    chain: ChainRpcClient, address: str, settings: Settings
) -> list[RawHolder] | None:
    """Rank recent recipients by net inflow, then read their real balances."""
    logs = await chain.get_logs_windowed(
        address,
        [TRANSFER_TOPIC],
        blocks_back=settings.lp_holder_block_window,
        min_chunk=settings.min_log_chunk,
    )
    net: dict[str, int] = {}
    for log in logs:
        if len(log.topics) < 3:
            continue
        sender = topic_to_address(log.topics[1])
        recipient = topic_to_address(log.topics[2])
        value = int(log.data, 16) if log.data not in ("", "0x") else 0
        net[sender] = net.get(sender, 0) - value
        net[recipient] = net.get(recipient, 0) + value

    candidates = sorted((a for a, v in net.items() if v > 0), key=lambda a: net[a], reverse=True)
    candidates = candidates[:LOG_BALANCE_CANDIDATES]
    if not candidates:
        return None

    balances = await asyncio.gather(
        *(chain.read(address, "balanceOf(address)", ("uint256",), (c,)) for c in candidates)
    )
    holders = [RawHolder(c, int(b)) for c, b in zip(candidates, balances) if b]
    return holders or None


async def fetch_holder_distribution(
    chain: ChainRpcClient,
    explorer: ExplorerClient | None,
    token: TokenInfo,
    settings: Settings,
) -> HolderDistribution:
    """Fetch holders (explorer, then transfer-log rebuild) and analyse them.

    Never raises: if every source fails the distribution is empty/unknown.
    """
    hit = await first_present(
        [
            ("explorer", lambda: _from_explorer(explorer, token.address, settings.holder_fetch_limit)),
            ("transfer_logs", lambda: _from_transfer_logs(chain, token.address, settings)),
        ],
        tag="HOLDERS",
    )
    if hit is None:
        logger.info(f"[HOLDERS] No holder data for {token.address[:10]}, distribution unknown")
        return HolderDistribution()

    source, raw = hit
    dist = analyze_holders(
        raw[: settings.holder_fetch_limit],
        token.total_supply,
        min_live_holders=settings.min_live_holders,
        source=source,
    )
    logger.debug(
        f"[HOLDERS] {token.symbol}: {dist.live_holder_count} live via {source}, "
        f"top10={dist.top10_pct:.2f}% gini={dist.gini:.3f} → {dist.classification}"
    )
    return dist
