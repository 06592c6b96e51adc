"""Wallet analysis pipeline — collectors in, RiskReport out.

1. Validate wallet address and chain (before any network call)
2. Token holdings from Etherscan (empty -> canonical empty report)
3. DexScreener market data and Etherscan verification, concurrently
4. Price holdings from DexScreener and sum the portfolio value
5. Hand everything to the risk engine
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import replace
from decimal import Decimal

from loguru import logger

from src.models.risk import MarketData, RiskReport, TokenHolding
from src.parsers.chains import DEFAULT_CHAIN_ID, get_chain
from src.parsers.dexscreener.client import DexScreenerClient
from src.parsers.etherscan.client import EtherscanClient
from src.parsers.exceptions import InvalidWalletAddressError
from src.parsers.risk_engine import build_risk_report, empty_report

WALLET_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def validate_wallet_address(address: object) -> str:
    if not isinstance(address, str) or not WALLET_ADDRESS_RE.match(address):
        raise InvalidWalletAddressError(address)
    return address


def price_holdings(
    holdings: list[TokenHolding],
    market_data: dict[str, MarketData | None],
) -> tuple[list[TokenHolding], float]:
    """Attach USD values where DexScreener has a positive price.

    Returns new holdings (inputs are frozen) and the estimated portfolio USD.
    """
    priced: list[TokenHolding] = []
    total = 0.0
    for holding in holdings:
        market = market_data.get(holding.contract_address.lower())
        if market is not None and market.price_usd > 0:
            usd_value = float(holding.quantity * Decimal(str(market.price_usd)))
            holding = replace(holding, usd_value=usd_value)
            total += usd_value
        priced.append(holding)
    return priced, total


class WalletAnalyzer:
    """Runs the collector fan-out for one wallet and scores the result."""

    def __init__(
        self,
        etherscan: EtherscanClient,
        dexscreener: DexScreenerClient,
        *,
        max_concurrent: int = 5,
    ) -> None:
        self._etherscan = etherscan
        self._dexscreener = dexscreener
        self._max_concurrent = max_concurrent

    async def analyze_wallet(
        self, wallet_address: str, chain_id: int = DEFAULT_CHAIN_ID
    ) -> RiskReport:
        """Build a RiskReport for ``wallet_address`` on ``chain_id``.

        Raises InvalidWalletAddressError / UnsupportedChainError before any
        collector is called.
        """
        wallet_address = validate_wallet_address(wallet_address)
        chain = get_chain(chain_id)

        logger.info(f"[ANALYZER] Analyzing {wallet_address} on {chain.name}")

        holdings = await self._etherscan.get_token_holdings(wallet_address, chain.chain_id)
        logger.info(f"[ANALYZER] Found {len(holdings)} token(s) for {wallet_address[:12]}")

        if not holdings:
            return empty_report(wallet_address, chain.chain_id, chain.name)

        contracts = [h.contract_address for h in holdings]

        market_data, verification = await asyncio.gather(
            self._dexscreener.get_market_data_batch(
                contracts, chain.chain_id, max_concurrent=self._max_concurrent
            ),
            self._etherscan.verify_contracts_batch(contracts, chain.chain_id),
        )

        listed = sum(1 for m in market_data.values() if m is not None)
        verified = sum(1 for v in verification.values() if v)
        logger.debug(
            f"[ANALYZER] {wallet_address[:12]}: {listed}/{len(contracts)} listed, "
            f"{verified}/{len(contracts)} verified"
        )

        holdings, portfolio_usd = price_holdings(holdings, market_data)

        report = build_risk_report(
            wallet_address,
            chain.chain_id,
            chain.name,
            holdings,
            market_data,
            verification,
            portfolio_usd,
        )

        logger.info(
            f"[ANALYZER] {wallet_address[:12]} done — {report.risk_level.value} "
            f"({report.overall_risk_score}/100), portfolio ${portfolio_usd:,.0f}"
        )
        return report
