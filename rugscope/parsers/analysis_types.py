"""Transient entities produced by one token analysis.

Everything here is built fresh per request and discarded once the report
is rendered; the token address is the only key tying them together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum

RENOUNCED = "renounced"


class LiquidityRisk(IntEnum):
    """Ordinal liquidity tier. Higher value = more dangerous."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3


class OwnershipRisk(str, Enum):
    NONE = "None"  # renounced
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    UNKNOWN = "Unknown"


class ProbeOutcome(str, Enum):
    PASSED = "passed"
    EXPECTED_FAILURE = "expectedFailure"
    INCONCLUSIVE = "inconclusive"
    CRITICAL_FAILURE = "criticalFailure"


class HoneypotRisk(str, Enum):
    HIGH = "HIGH"
    POTENTIAL = "POTENTIAL"
    MODERATE = "MODERATE"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"


class RiskTier(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class TokenInfo:
    address: str
    name: str
    symbol: str
    decimals: int
    total_supply: int  # raw units
    verified: bool = False
    holders_count: int = 0


@dataclass(frozen=True)
class HolderRecord:
    address: str
    balance: int  # raw units
    percent: float  # of total supply, 2 decimals
    is_contract: bool | None = None
    label: str | None = None


@dataclass
class HolderDistribution:
    """Holder statistics over the sampled (top-N) holder list."""

    holders: list[HolderRecord] = field(default_factory=list)  # live holders, balance desc
    live_holder_count: int = 0
    top10_pct: float = 0.0
    gini: float = 0.0
    burned_balance: int = 0  # held by the dead address
    burned_pct: float = 0.0
    classification: str = "unknown"  # "healthy", "concentrated", "unknown"
    source: str | None = None


@dataclass
class PairLookup:
    pair_address: str | None = None  # None = not found
    paired_token: str | None = None
    strategy: str | None = None

    @property
    def found(self) -> bool:
        return self.pair_address is not None


@dataclass(frozen=True)
class LockRecord:
    amount: int
    unlock_time: int  # unix seconds
    owner: str = ""
    unlocked: bool = False

    def is_active(self, now: int) -> bool:
        return not self.unlocked and self.unlock_time > now


@dataclass
class LiquidityInfo:
    pair_address: str | None = None
    paired_token: str | None = None
    lp_total_supply: int = 0
    burned_balance: int = 0  # dead + zero address LP balance
    burned_pct: float = 0.0
    locked_pct: float = 0.0
    unlock_time: int | None = None
    has_active_lock: bool = False
    risk: LiquidityRisk = LiquidityRisk.CRITICAL
    lp_top_holders: list[HolderRecord] = field(default_factory=list)
    error: str | None = None


@dataclass
class TaxInfo:
    buy_tax: float | None = None  # None = no readable accessor
    sell_tax: float | None = None
    max_tx_pct: float = 100.0  # 100 = no limit found
    max_wallet_pct: float = 100.0

    @property
    def found(self) -> bool:
        return self.buy_tax is not None or self.sell_tax is not None

    @property
    def max_tax(self) -> float:
        return max(self.buy_tax or 0.0, self.sell_tax or 0.0)

    @property
    def has_limits(self) -> bool:
        return self.max_tx_pct < 100.0 or self.max_wallet_pct < 100.0


@dataclass
class OwnershipInfo:
    owner: str | None = None  # address, RENOUNCED, or None when unreadable
    risk: OwnershipRisk = OwnershipRisk.UNKNOWN

    @property
    def renounced(self) -> bool:
        return self.owner == RENOUNCED


@dataclass
class SecurityFeatures:
    mintable: bool = False
    blacklist_capable: bool = False
    pausable: bool = False
    ownership_renounceable: bool = False
    score: int = 10  # 0-10, higher = safer
    bytecode_size: int = 0
    selector_count: int = 0
    high_complexity: bool = False
    analyzed: bool = False

    @property
    def dangerous(self) -> bool:
        return self.mintable or self.blacklist_capable or self.pausable


@dataclass(frozen=True)
class ProbeResult:
    name: str  # "transfer_zero", "transfer_one", "approve", "buy", "sell"
    path: str  # "transfer", "approve", "buy", "sell"
    outcome: ProbeOutcome
    reason: str = ""
    warning: bool = False


@dataclass
class SimulationResult:
    probes: list[ProbeResult] = field(default_factory=list)
    risk: HoneypotRisk = HoneypotRisk.UNKNOWN

    def outcome(self, path: str) -> ProbeOutcome:
        """Worst outcome recorded for one operation path."""
        order = [
            ProbeOutcome.CRITICAL_FAILURE,
            ProbeOutcome.INCONCLUSIVE,
            ProbeOutcome.EXPECTED_FAILURE,
            ProbeOutcome.PASSED,
        ]
        seen = {p.outcome for p in self.probes if p.path == path}
        for candidate in order:
            if candidate in seen:
                return candidate
        return ProbeOutcome.INCONCLUSIVE

    @property
    def critical_failures(self) -> list[ProbeResult]:
        return [p for p in self.probes if p.outcome == ProbeOutcome.CRITICAL_FAILURE]

    @property
    def warnings(self) -> list[ProbeResult]:
        return [p for p in self.probes if p.warning]


@dataclass
class TradingActivity:
    transfer_count: int = 0
    unique_addresses: int = 0
    estimated_buys: int = 0
    estimated_sells: int = 0
    low_activity: bool = False
    analyzed: bool = False


@dataclass
class DevActivity:
    dev_address: str | None = None
    sell_count: int = 0
    buy_count: int = 0
    sell_volume: int = 0
    buy_volume: int = 0
    suspicious: bool = False


@dataclass(frozen=True)
class RiskFactor:
    category: str  # "liquidity", "tax", "ownership", ...
    description: str
    penalty: int


@dataclass
class RiskAssessment:
    score: int
    percentage: int
    tier: RiskTier
    factors: list[RiskFactor] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)
    liquidity_override: bool = False

    @property
    def factor_descriptions(self) -> list[str]:
        return [f.description for f in self.factors]


@dataclass
class TokenReport:
    """Everything the formatter needs for one analysed token."""

    token: TokenInfo
    holders: HolderDistribution
    liquidity: LiquidityInfo
    taxes: TaxInfo
    ownership: OwnershipInfo
    security: SecurityFeatures
    simulation: SimulationResult
    activity: TradingActivity
    dev: DevActivity
    assessment: RiskAssessment
