"""Format analysis results into Telegram HTML messages."""

import html
from datetime import UTC, datetime

from rugscope.parsers.analysis_types import (
    HolderDistribution,
    HolderRecord,
    LiquidityInfo,
    LiquidityRisk,
    OwnershipInfo,
    RiskTier,
    TaxInfo,
    TokenReport,
    TradingActivity,
)
from rugscope.utils.addresses import ZERO_ADDRESS, is_burn_address, same_address

TOP_HOLDERS_SHOWN = 5
MAX_FACTORS_SHOWN = 8
DUST_BURN_PCT = 0.01

TIER_BADGES = {
    RiskTier.LOW: "🟢 LOW RISK",
    RiskTier.MEDIUM: "🟡 MEDIUM RISK",
    RiskTier.HIGH: "🔴 HIGH RISK",
}

LIQUIDITY_BADGES = {
    LiquidityRisk.LOW: "🟢",
    LiquidityRisk.MEDIUM: "🟡",
    LiquidityRisk.HIGH: "🟠",
    LiquidityRisk.CRITICAL: "🔴",
}


def format_report(report: TokenReport, explorer_url: str | None = None) -> str:
    """Render one full token report as HTML."""
    token = report.token
    assessment = report.assessment

    name = html.escape(token.name)
    symbol = html.escape(token.symbol)
    verified = " ✅" if token.verified else ""

    lines = [
        f"<b>{TIER_BADGES[assessment.tier]}</b>: {assessment.percentage}% "
        f"(score {assessment.score})",
        "",
        f"<b>{name} ({symbol})</b>{verified}",
        f"<code>{token.address}</code>",
        "",
        f"<b>Supply:</b> {_fmt_supply(token.total_supply, token.decimals)}"
        f"{_fmt_supply_burn(report.holders)}",
        f"<b>Owner:</b> {_fmt_owner(report.ownership, explorer_url)}",
        f"<b>Taxes:</b> {_fmt_taxes(report.taxes)}",
        f"<b>Limits:</b> {_fmt_limits(report.taxes)}",
        "",
        f"<b>LP:</b> {_fmt_liquidity(report.liquidity, explorer_url)}",
    ]

    if report.liquidity.lp_top_holders:
        lines.append("<b>LP Top Holders:</b>")
        for holder in report.liquidity.lp_top_holders:
            lines.append(f"• {_link(holder.address, explorer_url)} ({holder.percent:.2f}%)")

    lines.append("")
    lines.append(f"<b>Honeypot:</b> {report.simulation.risk.value}")

    holders = report.holders
    if holders.holders:
        count = token.holders_count or holders.live_holder_count
        top10 = f"{holders.top10_pct:.2f}%" if token.total_supply > 0 else "N/A"
        lines.append("")
        lines.append(
            f"<b>Top Holders</b> ({count} holders, top 10 = {top10}, "
            f"gini {holders.gini:.2f}):"
        )
        for holder in holders.holders[:TOP_HOLDERS_SHOWN]:
            label = _holder_label(holder, report.liquidity.pair_address)
            suffix = f" [{html.escape(label)}]" if label else ""
            lines.append(f"• {_link(holder.address, explorer_url)} ({holder.percent:.2f}%){suffix}")
    else:
        lines.append("")
        lines.append("<b>Top Holders:</b> N/A")

    lines.append("")
    lines.append(f"<b>Activity (24h):</b> {_fmt_activity(report.activity)}")
    if report.dev.suspicious:
        lines.append(
            f"🚨 <b>Dev selling detected in last 24h</b> "
            f"({report.dev.sell_count} sells / {report.dev.buy_count} buys)"
        )
    elif report.dev.dev_address:
        lines.append("✅ No dev sells in last 24h")

    if assessment.factors:
        lines.append("")
        lines.append("<b>Risk factors:</b>")
        for factor in assessment.factors[:MAX_FACTORS_SHOWN]:
            lines.append(f"• {html.escape(factor.description)} (+{factor.penalty})")

    if assessment.insights:
        lines.append("")
        lines.append("<b>Insights:</b>")
        lines.extend(html.escape(insight) for insight in assessment.insights)

    return "\n".join(lines)


def format_error_report(address: str, reason: str) -> str:
    return (
        "⚠️ <b>Could not analyze this token</b>\n"
        f"<code>{html.escape(address)}</code>\n"
        f"Reason: {html.escape(reason)}"
    )


def _link(address: str, explorer_url: str | None) -> str:
    if not explorer_url:
        return f"<code>{address}</code>"
    return f'<a href="{html.escape(explorer_url)}/address/{address}">{address[:6]}…{address[-4:]}</a>'


def _fmt_supply(raw: int, decimals: int) -> str:
    if raw <= 0:
        return "N/A"
    value = raw / 10**decimals
    if value >= 1:
        return f"{value:,.0f}"
    return f"{value:.6g}"


def _fmt_supply_burn(holders: HolderDistribution) -> str:
    if holders.burned_balance <= 0:
        return ""
    return f" (🔥 {holders.burned_pct:.2f}% of supply burned)"


def _fmt_activity(activity: TradingActivity) -> str:
    """Buy/sell counts are a fixed split of the transfer count, not decoded swaps."""
    if not activity.analyzed:
        return "N/A"
    return (
        f"{activity.transfer_count} transfers, {activity.unique_addresses} wallets, "
        f"~{activity.estimated_buys} buys / ~{activity.estimated_sells} sells (est.)"
    )


def _fmt_owner(ownership: OwnershipInfo, explorer_url: str | None) -> str:
    if ownership.renounced:
        return "Renounced ✅"
    if ownership.owner is None:
        return "N/A"
    return f"{_link(ownership.owner, explorer_url)} ({ownership.risk.value} risk)"


def _fmt_taxes(taxes: TaxInfo) -> str:
    if not taxes.found:
        return "No public tax functions found"
    buy = "?" if taxes.buy_tax is None else f"{taxes.buy_tax:g}"
    sell = "?" if taxes.sell_tax is None else f"{taxes.sell_tax:g}"
    return f"Buy {buy}% / Sell {sell}%"


def _fmt_limits(taxes: TaxInfo) -> str:
    if not taxes.has_limits:
        return "none"
    parts = []
    if taxes.max_tx_pct < 100:
        parts.append(f"max tx {taxes.max_tx_pct:g}%")
    if taxes.max_wallet_pct < 100:
        parts.append(f"max wallet {taxes.max_wallet_pct:g}%")
    return ", ".join(parts)


def _fmt_liquidity(liquidity: LiquidityInfo, explorer_url: str | None) -> str:
    badge = LIQUIDITY_BADGES[liquidity.risk]
    if liquidity.pair_address is None:
        return f"{badge} ⚠️ No liquidity pair found"
    if liquidity.error:
        return f"{badge} ⚠️ LP status unavailable ({html.escape(liquidity.error)})"

    parts = [f"{badge} {liquidity.risk.name}"]
    if liquidity.burned_balance and liquidity.burned_pct < DUST_BURN_PCT:
        parts.append("dust burned")
    else:
        parts.append(f"{liquidity.burned_pct:.2f}% burned")
    if liquidity.has_active_lock:
        parts.append(f"{liquidity.locked_pct:.2f}% locked until <b>{_fmt_ts(liquidity.unlock_time)}</b>")
    else:
        parts.append("no active lock")
    parts.append(f"pair {_link(liquidity.pair_address, explorer_url)}")
    return ", ".join(parts)


def _fmt_ts(ts: int | None) -> str:
    if not ts:
        return "?"
    return datetime.fromtimestamp(ts, UTC).strftime("%Y-%m-%d %H:%M UTC")


def _holder_label(holder: HolderRecord, pair_address: str | None) -> str | None:
    if same_address(holder.address, pair_address):
        return "LP pair"
    if same_address(holder.address, ZERO_ADDRESS):
        return "zero address"
    if is_burn_address(holder.address):
        return "burn"
    if holder.label:
        return holder.label
    if holder.is_contract:
        return "contract"
    return None
