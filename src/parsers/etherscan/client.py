"""Etherscan V2 multichain API client — holdings, balances, source verification."""

import asyncio

import httpx
from loguru import logger
from pydantic import ValidationError

from src.models.risk import TokenHolding
from src.parsers.etherscan.models import (
    EtherscanResponse,
    EtherscanSourceCode,
    EtherscanTokenTransfer,
)
from src.parsers.rate_limiter import RateLimiter

BASE_URL = "https://api.etherscan.io/v2/api"
MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]


class EtherscanClient:
    """Async HTTP client for the Etherscan V2 API (one key, any chainid).

    Every public method is best-effort: failures are logged and mapped to an
    absence value ([], "0", False) instead of raising.
    """

    def __init__(
        self,
        api_key: str = "",
        *,
        rate_limiter: RateLimiter | None = None,
        max_rps: float = 4.0,
        max_tokens: int = 20,
        max_concurrent: int = 5,
    ) -> None:
        self._api_key = api_key
        self._rate_limiter = rate_limiter or RateLimiter(max_rps)
        self._client = httpx.AsyncClient(timeout=10.0)
        self._max_tokens = max_tokens
        self._max_concurrent = max_concurrent

    async def close(self) -> None:
        await self._client.aclose()

    async def _call(self, params: dict, *, timeout: float | None = None) -> EtherscanResponse | None:
        """GET with retry on 429/timeout/"Max rate limit reached"."""
        query = {**params, "apikey": self._api_key}
        label = f"{params.get('module')}/{params.get('action')}"

        for attempt in range(MAX_RETRIES + 1):
            delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
            try:
                await self._rate_limiter.acquire()
                kwargs = {"params": query}
                if timeout is not None:
                    kwargs["timeout"] = timeout
                resp = await self._client.get(BASE_URL, **kwargs)

                if resp.status_code == 429:
                    logger.debug(f"[ETHERSCAN] {label} rate limited, waiting {delay}s")
                    await asyncio.sleep(delay)
                    continue

                if resp.status_code != 200:
                    logger.debug(f"[ETHERSCAN] {label} HTTP {resp.status_code}")
                    return None

                body = EtherscanResponse.model_validate(resp.json())
                if body.rate_limited and attempt < MAX_RETRIES:
                    logger.debug(f"[ETHERSCAN] {label} API rate limit, waiting {delay}s")
                    await asyncio.sleep(delay)
                    continue
                return body

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    logger.debug(f"[ETHERSCAN] {label} {type(e).__name__}, retry in {delay}s")
                    await asyncio.sleep(delay)
                else:
                    logger.warning(f"[ETHERSCAN] {label} failed after retries: {e}")
                    return None
            except (httpx.HTTPError, ValueError, ValidationError) as e:
                logger.warning(f"[ETHERSCAN] {label} bad response: {e}")
                return None

        return None

    async def get_token_holdings(self, wallet_address: str, chain_id: int = 1) -> list[TokenHolding]:
        """Distinct ERC-20 contracts seen in the wallet's transfer history with a
        non-zero current balance, most recently active first."""
        body = await self._call(
            {
                "chainid": chain_id,
                "module": "account",
                "action": "tokentx",
                "address": wallet_address,
                "startblock": 0,
                "endblock": 99999999,
                "sort": "desc",
            }
        )
        if body is None or not body.ok or not isinstance(body.result, list):
            logger.info(
                f"[ETHERSCAN] No token transfers for {wallet_address[:12]}: "
                f"{body.message if body else 'request failed'}"
            )
            return []

        tokens: dict[str, TokenHolding] = {}
        for row in body.result:
            try:
                tx = EtherscanTokenTransfer.model_validate(row)
            except ValidationError:
                continue
            addr = tx.contract_address.lower()
            if addr not in tokens:
                tokens[addr] = TokenHolding(
                    contract_address=addr,
                    name=tx.token_name,
                    symbol=tx.token_symbol,
                    balance="0",
                    decimals=tx.decimals,
                )

        candidates = list(tokens.values())[: self._max_tokens]
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def _balance(token: TokenHolding) -> str:
            async with semaphore:
                return await self.get_token_balance(
                    wallet_address, token.contract_address, chain_id
                )

        balances = await asyncio.gather(
            *[_balance(t) for t in candidates],
            return_exceptions=True,
        )

        holdings: list[TokenHolding] = []
        for token, balance in zip(candidates, balances):
            if isinstance(balance, BaseException) or balance in ("", "0"):
                continue
            holdings.append(
                TokenHolding(
                    contract_address=token.contract_address,
                    name=token.name,
                    symbol=token.symbol,
                    balance=balance,
                    decimals=token.decimals,
                )
            )

        logger.debug(
            f"[ETHERSCAN] {wallet_address[:12]}: {len(tokens)} contracts seen, "
            f"{len(holdings)} with balance"
        )
        return holdings

    async def get_token_balance(
        self, wallet_address: str, contract_address: str, chain_id: int = 1
    ) -> str:
        """Raw balance in token units as a decimal string ("0" on failure)."""
        body = await self._call(
            {
                "chainid": chain_id,
                "module": "account",
                "action": "tokenbalance",
                "contractaddress": contract_address,
                "address": wallet_address,
                "tag": "latest",
            },
            timeout=5.0,
        )
        return _raw_amount(body)

    async def is_contract_verified(self, contract_address: str, chain_id: int = 1) -> bool:
        """True iff the explorer has published source. Unknown counts as unverified."""
        body = await self._call(
            {
                "chainid": chain_id,
                "module": "contract",
                "action": "getsourcecode",
                "address": contract_address,
            },
            timeout=5.0,
        )
        if body is None or not isinstance(body.result, list) or not body.result:
            return False
        try:
            source = EtherscanSourceCode.model_validate(body.result[0])
        except ValidationError:
            return False
        return len(source.source_code) > 0

    async def verify_contracts_batch(
        self, contract_addresses: list[str], chain_id: int = 1
    ) -> dict[str, bool]:
        """Verification flags keyed by lowercase address. Failures map to False."""
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def _verify_one(addr: str) -> bool:
            async with semaphore:
                return await self.is_contract_verified(addr, chain_id)

        results = await asyncio.gather(
            *[_verify_one(a) for a in contract_addresses],
            return_exceptions=True,
        )

        out: dict[str, bool] = {}
        for addr, result in zip(contract_addresses, results):
            if isinstance(result, BaseException):
                logger.warning(f"[ETHERSCAN] verify {addr[:12]} raised: {result}")
                result = False
            out[addr.lower()] = result
        return out


def _raw_amount(body: EtherscanResponse | None) -> str:
    if body is None or not isinstance(body.result, str) or not body.result.isdigit():
        return "0"
    return body.result
