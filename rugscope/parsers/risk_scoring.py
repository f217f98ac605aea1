"""Risk aggregation: weighted penalties → score, percentage, tier, narrative.

Pure function: no IO. Every input is optional; a missing or unanalysed
signal contributes no penalty instead of aborting the assessment.

Scoring:
- each triggered condition adds a fixed penalty (PENALTIES)
- percentage = score / MAX_SCORE * 100, rounded
- tier: >= 50% HIGH, >= 30% MEDIUM, else LOW
- a CRITICAL liquidity tier forces HIGH regardless of percentage
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from loguru import logger

from rugscope.parsers.analysis_types import (
    DevActivity,
    HolderDistribution,
    HoneypotRisk,
    LiquidityInfo,
    LiquidityRisk,
    OwnershipInfo,
    OwnershipRisk,
    RiskAssessment,
    RiskFactor,
    RiskTier,
    SecurityFeatures,
    SimulationResult,
    TaxInfo,
    TokenInfo,
    TradingActivity,
)

PENALTIES: dict[str, int] = {
    "ownership_transferable": 20,
    "ownership_self": 10,
    "tax_high": 20,
    "tax_medium": 10,
    "no_limits": 5,
    "liquidity_critical": 25,
    "liquidity_high": 15,
    "liquidity_medium": 8,
    "concentration_high": 20,
    "concentration_medium": 10,
    "honeypot_high": 25,
    "honeypot_potential": 12,
    "dangerous_features": 10,
    "low_security_score": 5,
    "low_activity": 5,
    "dev_selling": 5,
    "high_complexity": 3,
    "mintable": 3,
}

# Mutually exclusive penalties share a group; only one per group can fire
PENALTY_GROUPS: tuple[tuple[str, ...], ...] = (
    ("ownership_transferable", "ownership_self"),
    ("tax_high", "tax_medium"),
    ("no_limits",),
    ("liquidity_critical", "liquidity_high", "liquidity_medium"),
    ("concentration_high", "concentration_medium"),
    ("honeypot_high", "honeypot_potential"),
    ("dangerous_features",),
    ("low_security_score",),
    ("low_activity",),
    ("dev_selling",),
    ("high_complexity",),
    ("mintable",),
)

MAX_SCORE = sum(max(PENALTIES[key] for key in group) for group in PENALTY_GROUPS)

HIGH_TIER_PCT = 50
MEDIUM_TIER_PCT = 30

TAX_HIGH_PCT = 15.0
TAX_MEDIUM_PCT = 10.0
LOW_TAX_PCT = 5.0
CONCENTRATION_HIGH_PCT = 60.0
CONCENTRATION_MEDIUM_PCT = 40.0
LOW_SECURITY_SCORE = 5


@dataclass(frozen=True)
class _Hit:
    key: str
    category: str
    description: str
    warning: str | None = None


def _tier_for(percentage: int) -> RiskTier:
    if percentage >= HIGH_TIER_PCT:
        return RiskTier.HIGH
    if percentage >= MEDIUM_TIER_PCT:
        return RiskTier.MEDIUM
    return RiskTier.LOW


def _fmt_date(ts: int | None) -> str:
    if not ts:
        return "?"
    return datetime.fromtimestamp(ts, UTC).strftime("%Y-%m-%d")


def _collect_hits(
    taxes: TaxInfo | None,
    liquidity: LiquidityInfo | None,
    holders: HolderDistribution | None,
    ownership: OwnershipInfo | None,
    simulation: SimulationResult | None,
    security: SecurityFeatures | None,
    activity: TradingActivity | None,
    dev: DevActivity | None,
) -> list[_Hit]:
    hits: list[_Hit] = []

    if ownership is not None:
        if ownership.risk == OwnershipRisk.HIGH:
            hits.append(_Hit(
                "ownership_transferable", "ownership",
                "Ownership: active wallet owns the contract and can transfer or use privileges",
                "Owner wallet still controls the contract",
            ))
        elif ownership.risk == OwnershipRisk.MEDIUM:
            hits.append(_Hit(
                "ownership_self", "ownership",
                "Ownership: contract owns itself (non-standard ownership)",
            ))

    if taxes is not None:
        worst = taxes.max_tax
        if worst > TAX_HIGH_PCT:
            hits.append(_Hit(
                "tax_high", "tax",
                f"Tax: very high tax (buy {_pct(taxes.buy_tax)} / sell {_pct(taxes.sell_tax)})",
                f"Taxes of {worst:g}% make profitable exits unlikely",
            ))
        elif worst > TAX_MEDIUM_PCT:
            hits.append(_Hit(
                "tax_medium", "tax",
                f"Tax: elevated tax (buy {_pct(taxes.buy_tax)} / sell {_pct(taxes.sell_tax)})",
                f"Taxes of {worst:g}% eat into every trade",
            ))
        if not taxes.has_limits:
            hits.append(_Hit("no_limits", "limits", "Limits: no max-transaction or max-wallet limit found"))

    if liquidity is not None:
        if liquidity.risk == LiquidityRisk.CRITICAL:
            reason = (
                "no liquidity pair found"
                if liquidity.pair_address is None
                else f"LP neither locked nor burned ({liquidity.burned_pct:.2f}% burned)"
            )
            hits.append(_Hit(
                "liquidity_critical", "liquidity",
                f"Liquidity: CRITICAL, {reason}",
                "Deployer can pull the liquidity at any moment",
            ))
        elif liquidity.risk == LiquidityRisk.HIGH:
            hits.append(_Hit(
                "liquidity_high", "liquidity",
                f"Liquidity: HIGH risk, only {liquidity.locked_pct:.2f}% of LP locked",
                "Most of the LP is unlocked and withdrawable",
            ))
        elif liquidity.risk == LiquidityRisk.MEDIUM:
            hits.append(_Hit(
                "liquidity_medium", "liquidity",
                "Liquidity: MEDIUM risk, LP only partially secured "
                f"({liquidity.burned_pct:.2f}% burned, {liquidity.locked_pct:.2f}% locked)",
            ))

    if holders is not None and holders.live_holder_count > 0:
        if holders.top10_pct > CONCENTRATION_HIGH_PCT:
            hits.append(_Hit(
                "concentration_high", "holders",
                f"Holders: top 10 wallets hold {holders.top10_pct:.2f}% of supply",
                "A few wallets can crash the price by selling",
            ))
        elif holders.top10_pct > CONCENTRATION_MEDIUM_PCT:
            hits.append(_Hit(
                "concentration_medium", "holders",
                f"Holders: top 10 wallets hold {holders.top10_pct:.2f}% of supply",
            ))

    if simulation is not None:
        failed = ", ".join(p.name for p in simulation.critical_failures)
        if simulation.risk == HoneypotRisk.HIGH:
            hits.append(_Hit(
                "honeypot_high", "honeypot",
                f"Honeypot: HIGH, simulations failed unexpectedly ({failed})",
                "Selling is likely blocked",
            ))
        elif simulation.risk in (HoneypotRisk.POTENTIAL, HoneypotRisk.MODERATE):
            hits.append(_Hit(
                "honeypot_potential", "honeypot",
                f"Honeypot: {simulation.risk.value}, unexpected revert ({failed})",
                "A trade simulation reverted unexpectedly; test-sell before sizing up",
            ))

    if security is not None and security.analyzed:
        if security.dangerous:
            flags = [
                name
                for name, on in (
                    ("mint", security.mintable),
                    ("blacklist", security.blacklist_capable),
                    ("pause", security.pausable),
                )
                if on
            ]
            hits.append(_Hit(
                "dangerous_features", "security",
                f"Security: privileged functions present ({', '.join(flags)})",
                "Owner can restrict or dilute holders",
            ))
        if security.score < LOW_SECURITY_SCORE:
            hits.append(_Hit("low_security_score", "security", f"Security: low security score ({security.score}/10)"))
        if security.high_complexity:
            hits.append(_Hit(
                "high_complexity", "security",
                f"Security: complex bytecode ({security.bytecode_size} bytes, {security.selector_count} selectors)",
            ))
        if security.mintable:
            hits.append(_Hit("mintable", "security", "Security: supply can be minted"))

    if activity is not None and activity.analyzed and activity.low_activity:
        hits.append(_Hit(
            "low_activity", "activity",
            f"Activity: only {activity.transfer_count} transfers in the recent window",
        ))

    if dev is not None and dev.suspicious:
        hits.append(_Hit(
            "dev_selling", "dev",
            f"Dev wallet: {dev.sell_count} sells vs {dev.buy_count} buys recently",
            "Dev wallet is selling",
        ))

    return hits


def _pct(value: float | None) -> str:
    return "?" if value is None else f"{value:g}%"


def _positive_insights(
    token: TokenInfo | None,
    taxes: TaxInfo | None,
    liquidity: LiquidityInfo | None,
    holders: HolderDistribution | None,
    ownership: OwnershipInfo | None,
    simulation: SimulationResult | None,
    security: SecurityFeatures | None,
) -> list[str]:
    positives: list[str] = []
    if liquidity is not None and liquidity.risk == LiquidityRisk.LOW:
        if liquidity.has_active_lock:
            positives.append(
                f"✅ {liquidity.locked_pct:.2f}% of LP locked until {_fmt_date(liquidity.unlock_time)}"
            )
        else:
            positives.append(f"✅ {liquidity.burned_pct:.2f}% of LP burned")
    if ownership is not None and ownership.renounced:
        positives.append("✅ Ownership renounced")
    if taxes is not None and taxes.found and taxes.max_tax <= LOW_TAX_PCT:
        positives.append(f"✅ Low taxes (buy {_pct(taxes.buy_tax)} / sell {_pct(taxes.sell_tax)})")
    if holders is not None and holders.classification == "healthy":
        positives.append(f"✅ Healthy holder distribution (top 10 hold {holders.top10_pct:.2f}%)")
    if simulation is not None and simulation.risk == HoneypotRisk.LOW:
        positives.append("✅ Trade simulations found no sell block")
    if security is not None and security.analyzed and not security.dangerous:
        positives.append("✅ No privileged mint/blacklist/pause functions detected")
    if token is not None and token.verified:
        positives.append("✅ Contract source verified")
    return positives


def _recommendation(percentage: int, liquidity: LiquidityInfo | None) -> str:
    liq_risk = liquidity.risk if liquidity is not None else None
    if liq_risk == LiquidityRisk.CRITICAL:
        return "🚫 Avoid: liquidity is not secured, a rug pull can happen at any moment"
    if percentage >= HIGH_TIER_PCT:
        return "🔴 High risk: gamble-sized positions only, be ready to lose all of it"
    if percentage >= MEDIUM_TIER_PCT or liq_risk == LiquidityRisk.HIGH:
        return "🟡 Moderate risk: small position, take profits early and watch the LP"
    return "🟢 Lower risk: normal sizing, still check the team and socials"


def assess_risk(
    *,
    token: TokenInfo | None = None,
    taxes: TaxInfo | None = None,
    liquidity: LiquidityInfo | None = None,
    holders: HolderDistribution | None = None,
    ownership: OwnershipInfo | None = None,
    simulation: SimulationResult | None = None,
    security: SecurityFeatures | None = None,
    activity: TradingActivity | None = None,
    dev: DevActivity | None = None,
) -> RiskAssessment:
    """Combine every fetcher result into one RiskAssessment."""
    hits = _collect_hits(taxes, liquidity, holders, ownership, simulation, security, activity, dev)

    score = sum(PENALTIES[h.key] for h in hits)
    percentage = round(score / MAX_SCORE * 100)
    tier = _tier_for(percentage)

    override = liquidity is not None and liquidity.risk == LiquidityRisk.CRITICAL
    if override:
        tier = RiskTier.HIGH

    ordered = sorted(hits, key=lambda h: PENALTIES[h.key], reverse=True)
    factors = [RiskFactor(h.category, h.description, PENALTIES[h.key]) for h in ordered]

    insights = _positive_insights(token, taxes, liquidity, holders, ownership, simulation, security)
    insights += [f"⚠️ {h.warning}" for h in ordered if h.warning]
    insights.append(_recommendation(percentage, liquidity))

    if token is not None:
        logger.info(
            f"[RISK] {token.symbol} ({token.address[:10]}): score={score}/{MAX_SCORE} "
            f"({percentage}%) tier={tier.value}{' [liquidity override]' if override else ''}"
        )

    return RiskAssessment(
        score=score,
        percentage=percentage,
        tier=tier,
        factors=factors,
        insights=insights,
        liquidity_override=override,
    )
