"""Wallet portfolio risk engine.

Turns already-fetched per-token facts into a RiskReport. Pure and
deterministic: no I/O, no shared state. Collectors live in
``src.parsers.etherscan`` / ``src.parsers.dexscreener``; orchestration in
``src.parsers.analyzer``.

Per-token score is an additive penalty model clamped to 0-100:
- Unverified contract: +30
- No DEX data: +25 (skips liquidity, lock and volatility checks)
- Liquidity tiers: <$10k +35, <$50k +20, <$500k +5
- No liquidity lock: +15
- |24h price change| > 30%: +10
- Concentration: >70% +20, >50% +10

Portfolio score = round(mean * 0.6 + max * 0.4).
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime

from src.models.risk import (
    MarketData,
    RiskFlag,
    RiskFlags,
    RiskLevel,
    RiskReport,
    TokenHolding,
    TokenRisk,
)

CRITICAL_LIQUIDITY_USD = 10_000
LOW_LIQUIDITY_USD = 50_000
MODERATE_LIQUIDITY_USD = 500_000
HIGH_VOLATILITY_PCT = 30
EXTREME_CONCENTRATION_PCT = 70
HIGH_CONCENTRATION_PCT = 50

HIGH_RISK_TOKEN_SCORE = 70
VOLATILE_POSITION_PCT = 30
VOLATILE_POSITION_SCORE = 50

AVERAGE_WEIGHT = 0.6
MAX_WEIGHT = 0.4

ATTRIBUTION = "Analysis powered by Crypto Risk Analyzer Agent on Virtuals ACP."


def portfolio_percentage(holding: TokenHolding, total_usd: float, holdings_count: int) -> float:
    """Share of portfolio USD value; equal weight when unpriced."""
    if total_usd > 0 and holding.usd_value:
        return holding.usd_value / total_usd * 100
    if holdings_count <= 0:
        return 0.0
    return 100 / holdings_count


def score_token_risk(
    holding: TokenHolding,
    portfolio_pct: float,
    market: MarketData | None,
    is_verified: bool,
) -> TokenRisk:
    """Score one token (0 = safe, 100 = extremely risky)."""
    score = 0
    flags: list[str] = []

    if not is_verified:
        score += 30
        flags.append(RiskFlag.UNVERIFIED_CONTRACT.render())

    if market is None:
        score += 25
        flags.append(RiskFlag.NO_LIQUIDITY_DATA.render())
    else:
        liquidity = market.liquidity_usd
        if liquidity < CRITICAL_LIQUIDITY_USD:
            score += 35
            flags.append(RiskFlag.CRITICALLY_LOW_LIQUIDITY.render(liquidity))
        elif liquidity < LOW_LIQUIDITY_USD:
            score += 20
            flags.append(RiskFlag.LOW_LIQUIDITY.render(liquidity))
        elif liquidity < MODERATE_LIQUIDITY_USD:
            score += 5

        if not market.has_liquidity_lock:
            score += 15
            flags.append(RiskFlag.NO_LIQUIDITY_LOCK.render())

        if abs(market.price_change_24h) > HIGH_VOLATILITY_PCT:
            score += 10
            flags.append(RiskFlag.HIGH_VOLATILITY.render(market.price_change_24h))

    if portfolio_pct > EXTREME_CONCENTRATION_PCT:
        score += 20
        flags.append(RiskFlag.EXTREME_CONCENTRATION.render(portfolio_pct))
    elif portfolio_pct > HIGH_CONCENTRATION_PCT:
        score += 10
        flags.append(RiskFlag.HIGH_CONCENTRATION.render(portfolio_pct))

    return TokenRisk(
        symbol=holding.symbol,
        contract_address=holding.contract_address,
        portfolio_percentage=portfolio_pct,
        liquidity_usd=market.liquidity_usd if market is not None else 0,
        is_contract_verified=is_verified,
        has_liquidity_lock=market.has_liquidity_lock if market is not None else False,
        risk_score=max(0, min(100, score)),
        flags=tuple(flags),
    )


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def risk_level_for(score: int) -> RiskLevel:
    if score >= 70:
        return RiskLevel.CRITICAL
    if score >= 50:
        return RiskLevel.HIGH
    if score >= 30:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def overall_risk_score(sorted_risks: Sequence[TokenRisk]) -> int:
    """Blend of mean and worst token score. Expects descending order."""
    if not sorted_risks:
        return 0
    average = sum(t.risk_score for t in sorted_risks) / len(sorted_risks)
    worst = sorted_risks[0].risk_score
    return _round_half_up(average * AVERAGE_WEIGHT + worst * MAX_WEIGHT)


def portfolio_flags(token_risks: Sequence[TokenRisk]) -> RiskFlags:
    return RiskFlags(
        concentration_risk=any(
            t.portfolio_percentage > HIGH_CONCENTRATION_PCT for t in token_risks
        ),
        rug_pull_risk=any(
            not t.is_contract_verified and not t.has_liquidity_lock for t in token_risks
        ),
        low_liquidity_risk=any(
            0 < t.liquidity_usd < LOW_LIQUIDITY_USD for t in token_risks
        ),
        high_volatility_risk=any(
            t.portfolio_percentage > VOLATILE_POSITION_PCT
            and t.risk_score > VOLATILE_POSITION_SCORE
            for t in token_risks
        ),
    )


def aggregate(
    token_risks: Sequence[TokenRisk],
) -> tuple[list[TokenRisk], int, RiskLevel, RiskFlags]:
    """Sort per-token risks and derive the portfolio score, level and flags.

    ``sorted()`` is stable, so equal scores keep holding-discovery order.
    """
    ordered = sorted(token_risks, key=lambda t: t.risk_score, reverse=True)
    score = overall_risk_score(ordered)
    return ordered, score, risk_level_for(score), portfolio_flags(ordered)


def _symbols(risks: Sequence[TokenRisk]) -> str:
    return ", ".join(t.symbol for t in risks)


def build_recommendations(sorted_risks: Sequence[TokenRisk], overall_score: int) -> list[str]:
    recs: list[str] = []

    high_risk = [t for t in sorted_risks if t.risk_score >= HIGH_RISK_TOKEN_SCORE]
    unverified = [t for t in sorted_risks if not t.is_contract_verified]
    low_liquidity = [t for t in sorted_risks if 0 < t.liquidity_usd < LOW_LIQUIDITY_USD]
    concentrated = [
        t for t in sorted_risks if t.portfolio_percentage > HIGH_CONCENTRATION_PCT
    ]

    if high_risk:
        recs.append(
            f"Consider reducing or exiting high-risk positions: {_symbols(high_risk)}"
        )

    if unverified:
        recs.append(
            f"{len(unverified)} token(s) have unverified contracts — research "
            f"thoroughly before holding: {_symbols(unverified)}"
        )

    if low_liquidity:
        recs.append(
            f"Low liquidity tokens may be hard to exit quickly: {_symbols(low_liquidity)}"
        )

    if concentrated:
        top = concentrated[0]
        recs.append(
            f"Portfolio is highly concentrated in {top.symbol} "
            f"({_round_half_up(top.portfolio_percentage)}%) — consider diversifying"
        )

    if overall_score < 30:
        recs.append(
            "Portfolio looks relatively safe. Continue monitoring liquidity and market conditions."
        )

    return recs


def short_address(wallet_address: str) -> str:
    return f"{wallet_address[:6]}...{wallet_address[-4:]}"


def build_summary(
    wallet_address: str,
    risk_level: RiskLevel,
    overall_score: int,
    sorted_risks: Sequence[TokenRisk],
) -> str:
    text = (
        f"Wallet {short_address(wallet_address)} has a {risk_level.value} risk profile "
        f"(score: {overall_score}/100) across {len(sorted_risks)} token(s). "
    )
    if sorted_risks:
        top = sorted_risks[0]
        text += f"Highest risk token: {top.symbol} ({top.risk_score}/100). "
    return text + ATTRIBUTION


def _now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def empty_report(
    wallet_address: str,
    chain_id: int,
    chain_name: str,
    *,
    analyzed_at: str | None = None,
) -> RiskReport:
    """Canonical report for a wallet with no ERC-20 holdings."""
    return RiskReport(
        wallet_address=wallet_address,
        analyzed_at=analyzed_at or _now_iso(),
        chain_id=chain_id,
        chain_name=chain_name,
        total_tokens_found=0,
        estimated_portfolio_usd=0,
        overall_risk_score=0,
        risk_level=RiskLevel.LOW,
        token_risks=(),
        flags=RiskFlags(),
        summary=f"Wallet {short_address(wallet_address)} has no ERC-20 token holdings.",
        recommendations=(
            "No tokens found. Wallet may only hold native currency (ETH/BNB/MATIC).",
        ),
    )


def build_risk_report(
    wallet_address: str,
    chain_id: int,
    chain_name: str,
    holdings: Sequence[TokenHolding],
    market_data: Mapping[str, MarketData | None],
    verification: Mapping[str, bool],
    total_portfolio_usd: float,
    *,
    analyzed_at: str | None = None,
) -> RiskReport:
    """Score every holding and assemble the portfolio report.

    Holdings missing from ``market_data`` count as unlisted; missing from
    ``verification`` count as unverified.
    """
    count = len(holdings)
    token_risks = []
    for holding in holdings:
        key = holding.contract_address.lower()
        token_risks.append(
            score_token_risk(
                holding,
                portfolio_percentage(holding, total_portfolio_usd, count),
                market_data.get(key),
                verification.get(key, False),
            )
        )

    ordered, score, level, flags = aggregate(token_risks)

    return RiskReport(
        wallet_address=wallet_address,
        analyzed_at=analyzed_at or _now_iso(),
        chain_id=chain_id,
        chain_name=chain_name,
        total_tokens_found=len(ordered),
        estimated_portfolio_usd=total_portfolio_usd,
        overall_risk_score=score,
        risk_level=level,
        token_risks=tuple(ordered),
        flags=flags,
        summary=build_summary(wallet_address, level, score, ordered),
        recommendations=tuple(build_recommendations(ordered, score)),
    )
