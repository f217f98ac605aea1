"""Buy/sell tax and max-tx / max-wallet probing.

Token templates name their fee getters differently and store them in
different units. Both are kept as data: a table of candidate getters, each
with a unit rule, tried in order until one answers.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from rugscope.parsers.analysis_types import TaxInfo, TokenInfo
from rugscope.parsers.chain.client import ChainRpcClient
from rugscope.parsers.holders import holder_percent

NO_LIMIT_PCT = 100.0
MIN_LIMIT_PCT = 0.01


@dataclass(frozen=True)
class TaxProbe:
    signature: str
    unit: str = "auto"  # "auto", "percent", "basis_points", "per_mille"


BUY_TAX_PROBES: tuple[TaxProbe, ...] = (
    TaxProbe("buyTax()"),
    TaxProbe("_buyTax()"),
    TaxProbe("getBuyTax()"),
    TaxProbe("totalBuyTax()"),
    TaxProbe("buyTotalFees()"),
    TaxProbe("buyFee()"),
    TaxProbe("taxFee()"),
    TaxProbe("getTotalFee()"),
    TaxProbe("buyTaxBps()", unit="basis_points"),
)

SELL_TAX_PROBES: tuple[TaxProbe, ...] = (
    TaxProbe("sellTax()"),
    TaxProbe("_sellTax()"),
    TaxProbe("getSellTax()"),
    TaxProbe("totalSellTax()"),
    TaxProbe("sellTotalFees()"),
    TaxProbe("sellFee()"),
    TaxProbe("liquidityFee()"),
    TaxProbe("sellTaxBps()", unit="basis_points"),
)

MAX_TX_PROBES = (
    "_maxTxAmount()",
    "maxTxAmount()",
    "maxTransactionAmount()",
    "_maxTransactionAmount()",
    "maxTx()",
)

MAX_WALLET_PROBES = (
    "_maxWalletSize()",
    "maxWalletSize()",
    "maxWalletAmount()",
    "_maxWalletAmount()",
    "maxWallet()",
    "_maxWalletToken()",
)


def normalize_tax(raw: int) -> float:
    """Guess the unit of a raw fee value from its magnitude.

    <=100 percent, <=10,000 basis points, <=100,000 thousandths of a
    percent; anything larger is returned as-is (and clamps to 100 later).
    The bands are a heuristic and misread e.g. a 100-bps (1%) fee stored
    as 100 as 100%.
    """
    if raw <= 100:
        return float(raw)
    if raw <= 10_000:
        return raw / 100
    if raw <= 100_000:
        return raw / 1000
    return float(raw)


def apply_unit(raw: int, unit: str) -> float:
    if unit == "percent":
        return float(raw)
    if unit == "basis_points":
        return raw / 100
    if unit == "per_mille":
        return raw / 10
    return normalize_tax(raw)


def clamp_pct(value: float) -> float:
    return min(max(value, 0.0), 100.0)


def limit_percent(amount: int | None, supply: int) -> float:
    """Max-tx / max-wallet amount as % of supply, in (0, 100]."""
    if not amount or amount <= 0 or supply <= 0:
        return NO_LIMIT_PCT
    pct = holder_percent(amount, supply)
    if pct >= NO_LIMIT_PCT:
        return NO_LIMIT_PCT
    return max(pct, MIN_LIMIT_PCT)


async def probe_tax(chain: ChainRpcClient, token: str, probes: Sequence[TaxProbe]) -> float | None:
    for probe in probes:
        raw = await chain.read(token, probe.signature, ("uint256",))
        if raw is not None:
            value = clamp_pct(apply_unit(int(raw), probe.unit))
            logger.debug(f"[TAX] {token[:10]} {probe.signature} raw={raw} → {value}%")
            return value
    return None


async def probe_amount(chain: ChainRpcClient, token: str, signatures: Sequence[str]) -> int | None:
    for signature in signatures:
        raw = await chain.read(token, signature, ("uint256",))
        if raw is not None:
            return int(raw)
    return None


async def fetch_taxes(chain: ChainRpcClient, token: TokenInfo) -> TaxInfo:
    """Probe fee getters and transaction limits. Never raises."""
    buy, sell, max_tx, max_wallet = await asyncio.gather(
        probe_tax(chain, token.address, BUY_TAX_PROBES),
        probe_tax(chain, token.address, SELL_TAX_PROBES),
        probe_amount(chain, token.address, MAX_TX_PROBES),
        probe_amount(chain, token.address, MAX_WALLET_PROBES),
    )
    return TaxInfo(
        buy_tax=buy,
        sell_tax=sell,
        max_tx_pct=limit_percent(max_tx, token.total_supply),
        max_wallet_pct=limit_percent(max_wallet, token.total_supply),
    )
