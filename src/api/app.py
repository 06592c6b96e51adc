"""FastAPI application factory for the wallet risk analyzer."""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.cors import CORSMiddleware

from config.settings import settings
from src.api.middleware import SecurityHeadersMiddleware
from src.api.registry import registry
from src.parsers.exceptions import InvalidWalletAddressError

# Rate limiter (shared instance)
limiter = Limiter(key_func=get_remote_address)

SERVICE_NAME = "Crypto Portfolio Risk Analyzer"
SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build collector clients once and close them on shutdown."""
    from src.parsers.analyzer import WalletAnalyzer
    from src.parsers.dexscreener.client import DexScreenerClient
    from src.parsers.etherscan.client import EtherscanClient

    if not settings.etherscan_api_key:
        logger.warning("[API] ETHERSCAN_API_KEY is not set — explorer calls will be throttled")

    etherscan = EtherscanClient(
        settings.etherscan_api_key,
        max_rps=settings.etherscan_max_rps,
        max_tokens=settings.max_tokens_per_wallet,
        max_concurrent=settings.max_concurrent_lookups,
    )
    dexscreener = DexScreenerClient(max_rps=settings.dexscreener_max_rps)

    registry.etherscan = etherscan
    registry.dexscreener = dexscreener
    registry.analyzer = WalletAnalyzer(
        etherscan, dexscreener, max_concurrent=settings.max_concurrent_lookups
    )
    registry.started_at = time.monotonic()
    logger.info("[API] Collectors ready")

    try:
        yield
    finally:
        await etherscan.close()
        await dexscreener.close()
        registry.analyzer = None
        registry.etherscan = None
        registry.dexscreener = None
        logger.info("[API] Collectors closed")


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Bodies that are not JSON objects get the same answer as a missing address."""
    message = str(InvalidWalletAddressError(None))
    logger.info(f"[API] {request.url.path} rejected malformed body: {exc.errors()}")
    if request.url.path == "/job":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"job_id": None, "status": "failed", "error": message},
        )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app = FastAPI(
        title=SERVICE_NAME,
        version=SERVICE_VERSION,
        docs_url="/docs" if settings.api_debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.api_debug else None,
        lifespan=lifespan,
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    # Security headers
    app.add_middleware(SecurityHeadersMiddleware)

    # CORS: callers are other agents, any origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    from src.api.routers.analyze import router as analyze_router
    from src.api.routers.health import router as health_router

    app.include_router(health_router)
    app.include_router(analyze_router)

    return app
