"""Health and service info — no rate limit."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.app import SERVICE_NAME, SERVICE_VERSION
from src.api.dependencies import get_registry
from src.api.registry import ServiceRegistry
from src.parsers.chains import CHAINS

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    agent: str
    version: str
    uptime_sec: int
    analyses_completed: int
    analyses_failed: int


@router.get("/health", response_model=HealthResponse)
async def health_check(reg: ServiceRegistry = Depends(get_registry)) -> HealthResponse:
    return HealthResponse(
        status="ok" if reg.analyzer is not None else "starting",
        agent=SERVICE_NAME,
        version=SERVICE_VERSION,
        uptime_sec=reg.uptime_sec(),
        analyses_completed=reg.analyses_completed,
        analyses_failed=reg.analyses_failed,
    )


@router.get("/")
async def service_info() -> dict:
    """Service name, endpoints and supported chains."""
    return {
        "name": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "endpoints": {"analyze": "POST /analyze", "job": "POST /job", "health": "GET /health"},
        "supported_chains": {str(c.chain_id): c.name for c in CHAINS.values()},
    }
