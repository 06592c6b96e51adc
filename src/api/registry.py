"""Singleton registry for runtime objects shared by the API endpoints.

Populated once in the app lifespan. Endpoints read these references directly;
safe because everything runs in a single asyncio event loop.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.parsers.analyzer import WalletAnalyzer
    from src.parsers.dexscreener.client import DexScreenerClient
    from src.parsers.etherscan.client import EtherscanClient


class ServiceRegistry:
    """Holds the collector clients, the analyzer and simple job counters."""

    etherscan: EtherscanClient | None = None
    dexscreener: DexScreenerClient | None = None
    analyzer: WalletAnalyzer | None = None
    started_at: float = 0.0
    analyses_completed: int = 0
    analyses_failed: int = 0

    def uptime_sec(self) -> int:
        return int(time.monotonic() - self.started_at) if self.started_at else 0


registry = ServiceRegistry()
