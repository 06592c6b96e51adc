import asyncio

import httpx
from loguru import logger
from pydantic import ValidationError

from src.models.risk import MarketData
from src.parsers.chains import dexscreener_slug
from src.parsers.dexscreener.models import DexScreenerPair
from src.parsers.rate_limiter import RateLimiter

BASE_URL = "https://api.dexscreener.com"
MAX_RETRIES = 3
RETRY_DELAYS = [1.0, 2.0, 4.0]

# Lock detection would need team.finance / unicrypt lookups; liquidity that
# large is taken as a proxy for "locked or at least not trivially pullable".
LIQUIDITY_LOCK_THRESHOLD_USD = 100_000


class DexScreenerClient:
    """Async REST client for DexScreener public API (no auth required)."""

    def __init__(self, rate_limiter: RateLimiter | None = None, max_rps: float = 4.0) -> None:
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            timeout=8.0,
            headers={"Accept": "application/json"},
        )
        self._rate_limiter = rate_limiter or RateLimiter(max_rps)

    async def _request_with_retry(self, path: str) -> httpx.Response:
        """Execute GET with retry on 429/timeout."""
        for attempt in range(MAX_RETRIES):
            await self._rate_limiter.acquire()
            try:
                response = await self._client.get(path)
                if response.status_code == 429:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    retry_after = response.headers.get("Retry-After")
                    if retry_after:
                        delay = max(float(retry_after), delay)
                    logger.debug(f"[DEXSCREENER] 429 rate limited, retrying in {delay}s")
                    await asyncio.sleep(delay)
                    continue
                response.raise_for_status()
                return response
            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES - 1:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[DEXSCREENER] {type(e).__name__}, retrying in {delay}s")
                    await asyncio.sleep(delay)
                else:
                    raise
        # Final attempt, no retry
        await self._rate_limiter.acquire()
        response = await self._client.get(path)
        response.raise_for_status()
        return response

    async def get_token_pairs(self, token_address: str) -> list[DexScreenerPair]:
        """All pairs for a token across every chain DexScreener indexes."""
        response = await self._request_with_retry(f"/latest/dex/tokens/{token_address}")
        data = response.json()
        pairs = data.get("pairs") if isinstance(data, dict) else data
        if not isinstance(pairs, list):
            return []
        return [DexScreenerPair.model_validate(p) for p in pairs]

    async def get_market_data(self, contract_address: str, chain_id: int = 1) -> MarketData | None:
        """Best-liquidity pair on ``chain_id`` mapped to MarketData.

        Returns None when the token has no pair on the chain or the lookup fails.
        """
        try:
            pairs = await self.get_token_pairs(contract_address)
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.debug(f"[DEXSCREENER] Lookup failed for {contract_address[:12]}: {e}")
            return None

        chain = dexscreener_slug(chain_id)
        relevant = [p for p in pairs if p.chainId == chain]
        if not relevant:
            return None

        best = max(relevant, key=lambda p: p.liquidity_usd)
        return pair_to_market_data(best)

    async def get_market_data_batch(
        self,
        contract_addresses: list[str],
        chain_id: int = 1,
        *,
        max_concurrent: int = 5,
    ) -> dict[str, MarketData | None]:
        """Market data keyed by lowercase address. Failed lookups map to None."""
        semaphore = asyncio.Semaphore(max_concurrent)

        async def _fetch_one(addr: str) -> MarketData | None:
            async with semaphore:
                return await self.get_market_data(addr, chain_id)

        results = await asyncio.gather(
            *[_fetch_one(a) for a in contract_addresses],
            return_exceptions=True,
        )

        out: dict[str, MarketData | None] = {}
        for addr, result in zip(contract_addresses, results):
            if isinstance(result, BaseException):
                logger.warning(f"[DEXSCREENER] {addr[:12]} lookup raised: {result}")
                result = None
            out[addr.lower()] = result
        return out

    async def close(self) -> None:
        await self._client.aclose()


def _as_float(value: object) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0


def pair_to_market_data(pair: DexScreenerPair) -> MarketData:
    liquidity = pair.liquidity_usd
    return MarketData(
        symbol=(pair.baseToken.symbol if pair.baseToken else None) or "",
        price_usd=_as_float(pair.priceUsd),
        liquidity_usd=liquidity,
        market_cap_usd=_as_float(pair.marketCap),
        volume_24h=_as_float(pair.volume.h24 if pair.volume else None),
        price_change_24h=_as_float(pair.priceChange.h24 if pair.priceChange else None),
        has_liquidity_lock=liquidity > LIQUIDITY_LOCK_THRESHOLD_USD,
        dex_url=pair.url or "",
    )
