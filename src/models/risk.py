"""Value types shared by the collectors, the risk engine and the API."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class RiskFlag(str, Enum):
    """Per-token findings. ``render()`` produces the human-readable flag line."""

    UNVERIFIED_CONTRACT = "unverified_contract"
    NO_LIQUIDITY_DATA = "no_liquidity_data"
    CRITICALLY_LOW_LIQUIDITY = "critically_low_liquidity"
    LOW_LIQUIDITY = "low_liquidity"
    NO_LIQUIDITY_LOCK = "no_liquidity_lock"
    HIGH_VOLATILITY = "high_volatility"
    EXTREME_CONCENTRATION = "extreme_concentration"
    HIGH_CONCENTRATION = "high_concentration"

    def render(self, value: float | None = None) -> str:
        template = _FLAG_TEMPLATES[self]
        if value is None:
            return template
        return template.format(value=to_fixed(value, _FLAG_DECIMALS.get(self, 0)))


def to_fixed(value: float, places: int) -> str:
    """Fixed-point text with ties rounded away from zero (``12.25`` -> ``12.3``).

    Uses the exact binary value of the float, so ``2500.5`` -> ``2501`` but
    ``1.005`` -> ``1.00``. ``format(x, ".1f")`` would round ties to even.
    """
    exponent = Decimal(1).scaleb(-places)
    return str(Decimal(value).quantize(exponent, rounding=ROUND_HALF_UP))


_FLAG_TEMPLATES: dict[RiskFlag, str] = {
    RiskFlag.UNVERIFIED_CONTRACT: "⚠️ Contract source not verified on Etherscan",
    RiskFlag.NO_LIQUIDITY_DATA: (
        "⚠️ No DEX liquidity data found — token may be unlisted or illiquid"
    ),
    RiskFlag.CRITICALLY_LOW_LIQUIDITY: "🚨 Critically low liquidity: ${value}",
    RiskFlag.LOW_LIQUIDITY: "⚠️ Low liquidity: ${value}",
    RiskFlag.NO_LIQUIDITY_LOCK: "⚠️ Liquidity lock not detected — rug pull risk elevated",
    RiskFlag.HIGH_VOLATILITY: "📉 High 24h price change: {value}%",
    RiskFlag.EXTREME_CONCENTRATION: "🚨 Extreme concentration: {value}% of portfolio",
    RiskFlag.HIGH_CONCENTRATION: "⚠️ High concentration: {value}% of portfolio",
}

# Decimal places per flag value; liquidity flags use whole dollars
_FLAG_DECIMALS: dict[RiskFlag, int] = {
    RiskFlag.HIGH_VOLATILITY: 1,
    RiskFlag.EXTREME_CONCENTRATION: 1,
    RiskFlag.HIGH_CONCENTRATION: 1,
}


@dataclass(frozen=True)
class TokenHolding:
    """One ERC-20 balance held by the analysed wallet."""

    contract_address: str  # lowercase
    name: str
    symbol: str
    balance: str  # raw integer units, decimal string
    decimals: int
    usd_value: float | None = None

    @property
    def quantity(self) -> Decimal:
        """Balance scaled by ``decimals`` (exact, no float truncation)."""
        try:
            raw = Decimal(self.balance or "0")
        except InvalidOperation:
            return Decimal(0)
        return raw.scaleb(-self.decimals)


@dataclass(frozen=True)
class MarketData:
    """Best-liquidity DEX pair for a token on the target chain."""

    symbol: str
    price_usd: float
    liquidity_usd: float
    market_cap_usd: float
    volume_24h: float
    price_change_24h: float  # percent
    has_liquidity_lock: bool  # heuristic: liquidity size, not a locker lookup
    dex_url: str = ""


@dataclass(frozen=True)
class TokenRisk:
    symbol: str
    contract_address: str
    portfolio_percentage: float
    liquidity_usd: float
    is_contract_verified: bool
    has_liquidity_lock: bool
    risk_score: int
    flags: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "contractAddress": self.contract_address,
            "portfolioPercentage": self.portfolio_percentage,
            "liquidityUsd": self.liquidity_usd,
            "isContractVerified": self.is_contract_verified,
            "hasLiquidityLock": self.has_liquidity_lock,
            "riskScore": self.risk_score,
            "flags": list(self.flags),
        }


@dataclass(frozen=True)
class RiskFlags:
    """Portfolio-level flags, each an OR across tokens."""

    concentration_risk: bool = False
    rug_pull_risk: bool = False
    low_liquidity_risk: bool = False
    high_volatility_risk: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "concentrationRisk": self.concentration_risk,
            "rugPullRisk": self.rug_pull_risk,
            "lowLiquidityRisk": self.low_liquidity_risk,
            "highVolatilityRisk": self.high_volatility_risk,
        }


@dataclass(frozen=True)
class RiskReport:
    wallet_address: str
    analyzed_at: str  # ISO-8601 UTC
    chain_id: int
    chain_name: str
    total_tokens_found: int
    estimated_portfolio_usd: float
    overall_risk_score: int
    risk_level: RiskLevel
    token_risks: tuple[TokenRisk, ...]
    flags: RiskFlags
    summary: str
    recommendations: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        """JSON wire shape (camelCase keys)."""
        return {
            "walletAddress": self.wallet_address,
            "analyzedAt": self.analyzed_at,
            "chainId": self.chain_id,
            "chainName": self.chain_name,
            "totalTokensFound": self.total_tokens_found,
            "estimatedPortfolioUsd": self.estimated_portfolio_usd,
            "overallRiskScore": self.overall_risk_score,
            "riskLevel": self.risk_level.value,
            "tokenRisks": [t.to_dict() for t in self.token_risks],
            "flags": self.flags.to_dict(),
            "summary": self.summary,
            "recommendations": list(self.recommendations),
        }
