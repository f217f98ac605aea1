"""Recent trading activity and dev-wallet selling.

Both read the token's Transfer events over a recent block window. Transfer
direction alone does not say whether a move was a buy or a sell, so both
analyses are deliberately coarse:
- buys/sells are estimated as a fixed split of the transfer count;
- tokens leaving the dev wallet count as sells, tokens arriving as buys.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from config.settings import Settings
from rugscope.parsers.analysis_types import DevActivity, TradingActivity
from rugscope.parsers.chain.abi import TRANSFER_TOPIC
from rugscope.parsers.chain.client import ChainRpcClient
from rugscope.parsers.chain.models import LogEntry
from rugscope.parsers.explorer.client import ExplorerClient
from rugscope.parsers.fallback import first_present
from rugscope.utils.addresses import ZERO_ADDRESS, same_address, topic_to_address

ESTIMATED_BUY_SHARE = 0.6


@dataclass(frozen=True)
class TransferEvent:
    sender: str
    recipient: str
    value: int
    block_number: int = 0


def decode_transfers(logs: Sequence[LogEntry]) -> list[TransferEvent]:
    events = []
    for log in logs:
        if len(log.topics) < 3:
            continue
        value = int(log.data, 16) if log.data not in ("", "0x") else 0
        events.append(
            TransferEvent(
                sender=topic_to_address(log.topics[1]),
                recipient=topic_to_address(log.topics[2]),
                value=value,
                block_number=log.block_number,
            )
        )
    return events


async def _from_chain(chain: ChainRpcClient, token: str, settings: Settings) -> list[TransferEvent] | None:
    logs = await chain.get_logs_windowed(
        token,
        [TRANSFER_TOPIC],
        blocks_back=settings.activity_block_window,
        min_chunk=settings.min_log_chunk,
    )
    return decode_transfers(logs)


async def _from_explorer(explorer: ExplorerClient | None, token: str) -> list[TransferEvent] | None:
    if explorer is None:
        return None
    transfers = await explorer.get_token_transfers(token)
    if transfers is None:
        return None
    return [
        TransferEvent(t.from_address, t.to_address, t.value or 0, t.block_number or 0)
        for t in transfers
        if t.from_address and t.to_address
    ]


async def fetch_transfers(
    chain: ChainRpcClient,
    explorer: ExplorerClient | None,
    token: str,
    settings: Settings,
) -> list[TransferEvent] | None:
    """Recent transfers (chain logs, then explorer feed). None if unavailable."""
    hit = await first_present(
        [
            ("chain_logs", lambda: _from_chain(chain, token, settings)),
            ("explorer", lambda: _from_explorer(explorer, token)),
        ],
        tag="ACTIVITY",
    )
    if hit is None:
        return None
    return hit[1]


def analyze_trading_activity(
    transfers: Sequence[TransferEvent] | None,
    *,
    low_activity_threshold: int,
) -> TradingActivity:
    if transfers is None:
        return TradingActivity()

    count = len(transfers)
    addresses = {t.sender.lower() for t in transfers} | {t.recipient.lower() for t in transfers}
    addresses.discard(ZERO_ADDRESS)
    buys = round(count * ESTIMATED_BUY_SHARE)
    return TradingActivity(
        transfer_count=count,
        unique_addresses=len(addresses),
        estimated_buys=buys,
        estimated_sells=count - buys,
        low_activity=count < low_activity_threshold,
        analyzed=True,
    )


def analyze_dev_activity(
    transfers: Sequence[TransferEvent] | None,
    dev_address: str | None,
    *,
    sell_count_threshold: int,
) -> DevActivity:
    """Flag a dev wallet selling more than twice what it bought, or selling often."""
    dev = DevActivity(dev_address=dev_address)
    if not transfers or not dev_address:
        return dev

    for t in transfers:
        if same_address(t.sender, dev_address):
            dev.sell_count += 1
            dev.sell_volume += t.value
        elif same_address(t.recipient, dev_address):
            dev.buy_count += 1
            dev.buy_volume += t.value

    dev.suspicious = (
        dev.sell_volume > 0 and dev.sell_volume > 2 * dev.buy_volume
    ) or dev.sell_count > sell_count_threshold

    if dev.suspicious:
        logger.info(
            f"[ACTIVITY] Dev {dev_address[:10]} sold {dev.sell_count}x "
            f"(vol {dev.sell_volume}) vs bought {dev.buy_count}x (vol {dev.buy_volume})"
        )
    return dev
