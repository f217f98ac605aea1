"""Token analysis orchestrator: fan out fetchers, aggregate, render.

Dependency order inside one analysis:
- token metadata first (fatal if unresolvable; everything needs supply/decimals)
- then in parallel: holders, taxes, ownership, bytecode, recent transfers,
  and the pair chain (pair lookup → LP burn/lock + trade simulation)
- dev-wallet and activity analysis once owner/holders/transfers are known
- aggregation and formatting

Every fetcher runs under a timeout and degrades to its neutral default;
pair discovery instead bounds each of its strategies separately.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from loguru import logger

from config.settings import Settings
from rugscope.bot.formatters import format_error_report, format_report
from rugscope.parsers.activity import (
    analyze_dev_activity,
    analyze_trading_activity,
    fetch_transfers,
)
from rugscope.parsers.analysis_types import (
    HolderDistribution,
    LiquidityInfo,
    LiquidityRisk,
    OwnershipInfo,
    PairLookup,
    SecurityFeatures,
    SimulationResult,
    TaxInfo,
    TokenReport,
)
from rugscope.parsers.chain.client import ChainRpcClient
from rugscope.parsers.explorer.client import ExplorerClient
from rugscope.parsers.holders import fetch_holder_distribution
from rugscope.parsers.honeypot_simulator import simulate_trades
from rugscope.parsers.liquidity import check_liquidity
from rugscope.parsers.ownership import fetch_ownership
from rugscope.parsers.pair_locator import locate_pair
from rugscope.parsers.risk_scoring import assess_risk
from rugscope.parsers.security_features import fetch_security_features
from rugscope.parsers.taxes import fetch_taxes
from rugscope.parsers.token_info import TokenResolutionError, fetch_token_info
from rugscope.utils.addresses import normalize_address, same_address

T = TypeVar("T")


class TokenAnalyzer:
    """Stateless per request; holds only clients and configuration."""

    def __init__(
        self,
        settings: Settings,
        chain: ChainRpcClient,
        explorer: ExplorerClient | None = None,
    ) -> None:
        self._settings = settings
        self._chain = chain
        self._explorer = explorer

    async def close(self) -> None:
        await self._chain.close()
        if self._explorer is not None:
            await self._explorer.close()

    async def analyze(self, address: str) -> str:
        """Analyse one token and return the rendered report text."""
        normalized = normalize_address(address)
        if normalized is None:
            return format_error_report(address, "not a valid contract address")

        try:
            report = await self.build_report(normalized)
        except TokenResolutionError as e:
            logger.warning(f"[ANALYZE] Cannot resolve {normalized}: {e}")
            return format_error_report(normalized, "token metadata could not be resolved")

        explorer_url = self._explorer.site_url if self._explorer is not None else None
        return format_report(report, explorer_url=explorer_url)

    async def build_report(self, address: str) -> TokenReport:
        """Run every fetcher and the aggregator. Raises TokenResolutionError only."""
        settings = self._settings
        try:
            token = await asyncio.wait_for(
                fetch_token_info(self._chain, self._explorer, address),
                timeout=settings.fetch_timeout_sec,
            )
        except asyncio.TimeoutError as e:
            raise TokenResolutionError(f"metadata lookup timed out for {address}") from e

        logger.info(f"[ANALYZE] {token.symbol} ({address}): starting fan-out")

        (lookup, liquidity, simulation), holders, taxes, ownership, security, transfers = (
            await asyncio.gather(
                self._pair_chain(address),
                self._guarded(
                    fetch_holder_distribution(self._chain, self._explorer, token, settings),
                    HolderDistribution(),
                    "holders",
                ),
                self._guarded(fetch_taxes(self._chain, token), TaxInfo(), "taxes"),
                self._guarded(fetch_ownership(self._chain, address), OwnershipInfo(), "ownership"),
                self._guarded(fetch_security_features(self._chain, address), SecurityFeatures(), "security"),
                self._guarded(fetch_transfers(self._chain, self._explorer, address, settings), None, "transfers"),
            )
        )

        activity = analyze_trading_activity(
            transfers, low_activity_threshold=settings.low_activity_transfer_threshold
        )
        dev = analyze_dev_activity(
            transfers,
            _dev_wallet(ownership, holders, lookup),
            sell_count_threshold=settings.dev_sell_count_threshold,
        )

        assessment = assess_risk(
            token=token,
            taxes=taxes,
            liquidity=liquidity,
            holders=holders,
            ownership=ownership,
            simulation=simulation,
            security=security,
            activity=activity,
            dev=dev,
        )

        return TokenReport(
            token=token,
            holders=holders,
            liquidity=liquidity,
            taxes=taxes,
            ownership=ownership,
            security=security,
            simulation=simulation,
            activity=activity,
            dev=dev,
            assessment=assessment,
        )

    async def _pair_chain(self, address: str) -> tuple[PairLookup, LiquidityInfo, SimulationResult]:
        """Pair lookup, then LP status and trade simulation on that pair."""
        settings = self._settings
        lookup = await self._guarded(
            locate_pair(self._chain, self._explorer, address, settings),
            PairLookup(),
            "pair",
            bounded=False,
        )
        liquidity, simulation = await asyncio.gather(
            self._guarded(
                check_liquidity(self._chain, lookup, settings),
                LiquidityInfo(
                    pair_address=lookup.pair_address,
                    paired_token=lookup.paired_token,
                    risk=LiquidityRisk.CRITICAL,
                    error="lp query failed",
                ),
                "liquidity",
            ),
            self._guarded(
                simulate_trades(self._chain, address, lookup, settings.router_address),
                SimulationResult(),
                "simulation",
            ),
        )
        return lookup, liquidity, simulation

    async def _guarded(self, coro: Awaitable[T], default: T, label: str, *, bounded: bool = True) -> T:
        """Await ``coro``, falling back to ``default`` on error or timeout.

        ``bounded=False`` is for fetchers that enforce their own time budget.
        """
        timeout = self._settings.fetch_timeout_sec if bounded else None
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[ANALYZE] {label} timed out after {timeout}s")
        except Exception as e:
            logger.warning(f"[ANALYZE] {label} failed: {type(e).__name__}: {e}")
        return default


def _dev_wallet(
    ownership: OwnershipInfo, holders: HolderDistribution, lookup: PairLookup
) -> str | None:
    """Owner if one is exposed, else the largest live EOA holder that is not the pool."""
    if ownership.owner and not ownership.renounced:
        return ownership.owner
    for holder in holders.holders:
        if holder.is_contract is True or same_address(holder.address, lookup.pair_address):
            continue
        return holder.address
    return None
