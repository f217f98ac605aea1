"""Honeypot detection by dry-run trade simulation.

Every probe is an eth_call from a throwaway address: nothing is signed or
broadcast, and no chain state changes. Because the probe address holds no
tokens, reverts such as "insufficient balance" are the normal answer and
count as expected failures. Only reverts with an unrecognized reason are
treated as evidence that the contract blocks trading.
"""

import secrets
import time
from collections.abc import Sequence

from eth_utils import to_checksum_address
from loguru import logger

from rugscope.parsers.analysis_types import (
    HoneypotRisk,
    PairLookup,
    ProbeOutcome,
    ProbeResult,
    SimulationResult,
)
from rugscope.parsers.chain.client import ChainRpcClient
from rugscope.parsers.chain.exceptions import ChainRpcError, ExecutionRevertedError

SWAP_SIGNATURE = (
    "swapExactTokensForTokensSupportingFeeOnTransferTokens(uint256,uint256,address[],address,uint256)"
)
SWAP_DEADLINE_SEC = 600

# Matched case-insensitively as substrings of the revert reason
LIQUIDITY_REVERT_PATTERNS = (
    "insufficient_liquidity",
    "insufficient liquidity",
    "low liquidity",
    "insufficient_output_amount",
    "insufficient_input_amount",
)

BENIGN_REVERT_PATTERNS = (
    "insufficient balance",
    "exceeds balance",
    "insufficientbalance",
    "insufficient allowance",
    "exceeds allowance",
    "insufficientallowance",
    "transfer_from_failed",
    "transferfrom failed",
    "transfer amount exceeds",
    "expired",
    "deadline",
    "arithmetic underflow",
    "subtraction overflow",
    "ds-math-sub-underflow",
) + LIQUIDITY_REVERT_PATTERNS

CRITICAL_PATHS = ("transfer", "sell")


def classify_revert(reason: str) -> ProbeOutcome:
    lowered = reason.lower()
    if any(pattern in lowered for pattern in BENIGN_REVERT_PATTERNS):
        return ProbeOutcome.EXPECTED_FAILURE
    return ProbeOutcome.CRITICAL_FAILURE


def is_liquidity_revert(reason: str) -> bool:
    lowered = reason.lower()
    return any(pattern in lowered for pattern in LIQUIDITY_REVERT_PATTERNS)


def aggregate_honeypot(probes: Sequence[ProbeResult]) -> HoneypotRisk:
    """Two or more critical failures → HIGH; one → POTENTIAL or MODERATE."""
    critical = [p for p in probes if p.outcome == ProbeOutcome.CRITICAL_FAILURE]
    warnings = [p for p in probes if p.warning]

    if len(critical) >= 2:
        return HoneypotRisk.HIGH
    if len(critical) == 1:
        if warnings or critical[0].path in CRITICAL_PATHS:
            return HoneypotRisk.POTENTIAL
        return HoneypotRisk.MODERATE
    if any(p.outcome == ProbeOutcome.PASSED for p in probes):
        return HoneypotRisk.LOW
    return HoneypotRisk.UNKNOWN


def random_probe_address() -> str:
    return to_checksum_address("0x" + secrets.token_hex(20))


async def _probe(
    chain: ChainRpcClient,
    name: str,
    path: str,
    to: str,
    signature: str,
    args: tuple,
    sender: str,
) -> ProbeResult:
    try:
        await chain.call_function(to, signature, args, sender=sender)
    except ExecutionRevertedError as e:
        outcome = classify_revert(e.reason)
        warning = outcome == ProbeOutcome.EXPECTED_FAILURE and is_liquidity_revert(e.reason)
        return ProbeResult(name, path, outcome, e.reason or "reverted without reason", warning)
    except ChainRpcError as e:
        return ProbeResult(name, path, ProbeOutcome.INCONCLUSIVE, str(e), warning=True)
    return ProbeResult(name, path, ProbeOutcome.PASSED)


def _skipped(name: str, path: str, reason: str) -> ProbeResult:
    return ProbeResult(name, path, ProbeOutcome.INCONCLUSIVE, reason, warning=True)


async def simulate_trades(
    chain: ChainRpcClient,
    token: str,
    lookup: PairLookup,
    router: str,
    *,
    probe_address: str | None = None,
    now: int | None = None,
) -> SimulationResult:
    """Run the transfer / approve / buy / sell probes. Never raises.

    Probes run sequentially so each one sees the same node state.
    """
    sender = probe_address or random_probe_address()
    recipient = random_probe_address() if probe_address is None else sender
    deadline = (int(time.time()) if now is None else now) + SWAP_DEADLINE_SEC

    probes = [
        await _probe(chain, "transfer_zero", "transfer", token, "transfer(address,uint256)", (recipient, 0), sender),
        await _probe(chain, "transfer_one", "transfer", token, "transfer(address,uint256)", (recipient, 1), sender),
    ]

    if router:
        probes.append(
            await _probe(chain, "approve", "approve", token, "approve(address,uint256)", (router, 1), sender)
        )
    else:
        probes.append(_skipped("approve", "approve", "router not configured"))

    if router and lookup.found and lookup.paired_token:
        base = lookup.paired_token
        probes.append(
            await _probe(chain, "buy", "buy", router, SWAP_SIGNATURE, (1, 0, [base, token], sender, deadline), sender)
        )
        probes.append(
            await _probe(chain, "sell", "sell", router, SWAP_SIGNATURE, (1, 0, [token, base], sender, deadline), sender)
        )
    else:
        missing = "router not configured" if not router else "no liquidity pair"
        probes.append(_skipped("buy", "buy", missing))
        probes.append(_skipped("sell", "sell", missing))

    result = SimulationResult(probes=probes, risk=aggregate_honeypot(probes))
    if result.critical_failures:
        logger.info(
            f"[HONEYPOT] {token[:10]}: {len(result.critical_failures)} critical probe failure(s) "
            f"→ {result.risk.value} ({', '.join(p.name for p in result.critical_failures)})"
        )
    return result
