"""LP burn / lock status and the liquidity risk tier.

The tier is a pure function of (pair found, burn %, lock %, active lock).
An unlocked, unburned pool lets the deployer pull all liquidity, so a
CRITICAL tier later overrides the aggregate risk tier.
"""

import asyncio
import time
from collections.abc import Sequence

from loguru import logger

from config.settings import Settings
from rugscope.parsers.analysis_types import (
    HolderRecord,
    LiquidityInfo,
    LiquidityRisk,
    LockRecord,
    PairLookup,
)
from rugscope.parsers.chain.abi import TRANSFER_TOPIC, address_topic, event_topic
from rugscope.parsers.chain.client import ChainRpcClient
from rugscope.parsers.chain.exceptions import ChainRpcError
from rugscope.parsers.chain.models import LogEntry
from rugscope.parsers.holders import holder_percent
from rugscope.utils.addresses import DEAD_ADDRESS, ZERO_ADDRESS, topic_to_address

LOCKED_TOPIC = event_topic("Locked(address,address,uint256,uint256)")
UNLOCKED_TOPIC = event_topic("Unlocked(address,address,uint256)")

SAFE_PCT = 51.0
PARTIAL_PCT = 25.0
LP_TOP_HOLDERS = 3


def classify_liquidity(
    *,
    pair_found: bool,
    burned_pct: float,
    locked_pct: float,
    has_active_lock: bool,
) -> LiquidityRisk:
    """First matching row wins; burn is only consulted without an active lock."""
    if not pair_found:
        return LiquidityRisk.CRITICAL
    if has_active_lock:
        if locked_pct >= SAFE_PCT:
            return LiquidityRisk.LOW
        if locked_pct >= PARTIAL_PCT:
            return LiquidityRisk.MEDIUM
        return LiquidityRisk.HIGH
    if burned_pct >= SAFE_PCT:
        return LiquidityRisk.LOW
    if burned_pct >= PARTIAL_PCT:
        return LiquidityRisk.MEDIUM
    return LiquidityRisk.CRITICAL


def _words(data: str) -> list[int]:
    raw = data.removeprefix("0x")
    return [int(raw[i : i + 64], 16) for i in range(0, len(raw) - 63, 64)]


def parse_lock_logs(locked: Sequence[LogEntry], unlocked: Sequence[LogEntry]) -> list[LockRecord]:
    """Build lock records; an Unlocked event releases that owner's earlier locks."""
    releases: list[tuple[str, int]] = []
    for log in unlocked:
        if len(log.topics) >= 3:
            releases.append((topic_to_address(log.topics[2]).lower(), log.block_number))

    records: list[LockRecord] = []
    for log in locked:
        words = _words(log.data)
        if len(log.topics) < 3 or len(words) < 2:
            continue
        owner = topic_to_address(log.topics[2])
        released = any(
            owner.lower() == who and block >= log.block_number for who, block in releases
        )
        records.append(
            LockRecord(amount=words[0], unlock_time=words[1], owner=owner, unlocked=released)
        )
    return records


def summarize_locks(
    locks: Sequence[LockRecord], lp_total_supply: int, now: int
) -> tuple[float, int | None, bool]:
    """(locked %, earliest active unlock time, any active lock).

    Expired or withdrawn locks do not count.
    """
    active = [lock for lock in locks if lock.is_active(now)]
    if not active:
        return 0.0, None, False
    locked = sum(lock.amount for lock in active)
    pct = min(holder_percent(locked, lp_total_supply), 100.0)
    return pct, min(lock.unlock_time for lock in active), True


async def _fetch_locks(chain: ChainRpcClient, pair: str, settings: Settings) -> list[LockRecord]:
    """Full locker history for ``pair``; a lock may predate any recent window."""
    if not settings.locker_address:
        return []
    locked, unlocked = await asyncio.gather(
        chain.get_logs_windowed(
            settings.locker_address,
            [LOCKED_TOPIC, address_topic(pair)],
            from_block=settings.locker_start_block,
            min_chunk=settings.min_log_chunk,
        ),
        chain.get_logs_windowed(
            settings.locker_address,
            [UNLOCKED_TOPIC, address_topic(pair)],
            from_block=settings.locker_start_block,
            min_chunk=settings.min_log_chunk,
        ),
    )
    return parse_lock_logs(locked, unlocked)


def rebuild_lp_holders(logs: Sequence[LogEntry], lp_total_supply: int) -> list[HolderRecord]:
    """Top LP holders from net Transfer flows inside the log window."""
    balances: dict[str, int] = {}
    for log in logs:
        if len(log.topics) < 3:
            continue
        sender = topic_to_address(log.topics[1])
        recipient = topic_to_address(log.topics[2])
        value = int(log.data, 16) if log.data not in ("", "0x") else 0
        if sender != ZERO_ADDRESS:
            balances[sender] = balances.get(sender, 0) - value
        balances[recipient] = balances.get(recipient, 0) + value

    ranked = sorted(
        ((a, b) for a, b in balances.items() if b > 0 and a != ZERO_ADDRESS),
        key=lambda item: item[1],
        reverse=True,
    )
    return [
        HolderRecord(address=a, balance=b, percent=holder_percent(b, lp_total_supply))
        for a, b in ranked[:LP_TOP_HOLDERS]
    ]


async def check_liquidity(
    chain: ChainRpcClient,
    lookup: PairLookup,
    settings: Settings,
    *,
    now: int | None = None,
) -> LiquidityInfo:
    """Burn and lock status of the pair's LP supply. Never raises."""
    now = int(time.time()) if now is None else now

    if not lookup.found:
        return LiquidityInfo(risk=LiquidityRisk.CRITICAL, error="pair not found")

    pair = lookup.pair_address
    info = LiquidityInfo(pair_address=pair, paired_token=lookup.paired_token)

    supply, dead_balance, zero_balance = await asyncio.gather(
        chain.read(pair, "totalSupply()", ("uint256",)),
        chain.read(pair, "balanceOf(address)", ("uint256",), (DEAD_ADDRESS,)),
        chain.read(pair, "balanceOf(address)", ("uint256",), (ZERO_ADDRESS,)),
    )
    if not supply:
        logger.warning(f"[LP] Could not read LP supply for {pair}")
        info.error = "lp supply unavailable"
        info.risk = LiquidityRisk.CRITICAL
        return info

    info.lp_total_supply = int(supply)
    info.burned_balance = (dead_balance or 0) + (zero_balance or 0)
    info.burned_pct = holder_percent(info.burned_balance, info.lp_total_supply)

    try:
        locks = await _fetch_locks(chain, pair, settings)
    except ChainRpcError as e:
        logger.debug(f"[LP] Locker scan failed for {pair}: {e}")
        locks = []

    info.locked_pct, info.unlock_time, info.has_active_lock = summarize_locks(
        locks, info.lp_total_supply, now
    )
    info.risk = classify_liquidity(
        pair_found=True,
        burned_pct=info.burned_pct,
        locked_pct=info.locked_pct,
        has_active_lock=info.has_active_lock,
    )

    if info.risk >= LiquidityRisk.HIGH:
        try:
            logs = await chain.get_logs_windowed(
                pair,
                [TRANSFER_TOPIC],
                blocks_back=settings.lp_holder_block_window,
                min_chunk=settings.min_log_chunk,
            )
            info.lp_top_holders = rebuild_lp_holders(logs, info.lp_total_supply)
        except ChainRpcError as e:
            logger.debug(f"[LP] LP holder scan failed for {pair}: {e}")

    logger.debug(
        f"[LP] {pair[:10]}: burned={info.burned_pct:.2f}% locked={info.locked_pct:.2f}% "
        f"active_lock={info.has_active_lock} → {info.risk.name}"
    )
    return info
