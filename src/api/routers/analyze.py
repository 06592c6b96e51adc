"""Analysis endpoints — direct analyze call and ACP job callback.

No ``from __future__ import annotations`` here: slowapi wraps the endpoints
and FastAPI resolves their annotations against the wrapper's globals.
"""

import time
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from config.settings import settings
from src.api.app import limiter
from src.api.dependencies import get_analyzer, get_registry
from src.api.registry import ServiceRegistry
from src.parsers.analyzer import WalletAnalyzer
from src.parsers.chains import DEFAULT_CHAIN_ID
from src.parsers.exceptions import AnalyzerError

router = APIRouter(tags=["analyze"])


class AnalyzeRequest(BaseModel):
    """Fields stay untyped so malformed values reach the analyzer's own checks
    (400 / failed job) instead of FastAPI's 422."""

    walletAddress: Any = None
    chainId: Any = DEFAULT_CHAIN_ID


class JobRequest(BaseModel):
    job_id: Any = None
    payload: Any = None

    def params(self) -> AnalyzeRequest:
        """Job payload as analyze parameters; a non-object payload counts as empty."""
        return AnalyzeRequest.model_validate(self.payload if isinstance(self.payload, dict) else {})


@router.post("/analyze")
@limiter.limit(settings.api_rate_limit)
async def analyze(
    request: Request,
    body: AnalyzeRequest,
    analyzer: WalletAnalyzer = Depends(get_analyzer),
    reg: ServiceRegistry = Depends(get_registry),
) -> Any:
    """Analyze a wallet and return the RiskReport."""
    started = time.perf_counter()
    try:
        report = await analyzer.analyze_wallet(body.walletAddress, body.chainId)
    except AnalyzerError as e:
        logger.info(f"[API] /analyze rejected: {e}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(e)})
    except Exception as e:
        reg.analyses_failed += 1
        logger.exception(f"[API] /analyze failed for {body.walletAddress}: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Analysis failed", "message": str(e)},
        )

    reg.analyses_completed += 1
    elapsed = round(time.perf_counter() - started, 2)
    return {"success": True, "elapsed_seconds": elapsed, "report": report.to_dict()}


@router.post("/job")
@limiter.limit(settings.api_rate_limit)
async def run_job(
    request: Request,
    body: JobRequest,
    analyzer: WalletAnalyzer = Depends(get_analyzer),
    reg: ServiceRegistry = Depends(get_registry),
) -> Any:
    """ACP job callback: payload carries the same fields as /analyze."""
    params = body.params()
    try:
        report = await analyzer.analyze_wallet(params.walletAddress, params.chainId)
    except Exception as e:
        if not isinstance(e, AnalyzerError):
            reg.analyses_failed += 1
            logger.exception(f"[API] job {body.job_id} failed: {e}")
        else:
            logger.info(f"[API] job {body.job_id} rejected: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"job_id": body.job_id, "status": "failed", "error": str(e)},
        )

    reg.analyses_completed += 1
    logger.info(f"[API] job {body.job_id} completed: {report.risk_level.value}")
    return {"job_id": body.job_id, "status": "completed", "result": report.to_dict()}
