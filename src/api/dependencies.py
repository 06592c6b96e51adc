"""FastAPI dependency injection — analyzer and registry."""

from __future__ import annotations

from fastapi import HTTPException, status

from src.api.registry import ServiceRegistry, registry
from src.parsers.analyzer import WalletAnalyzer


def get_registry() -> ServiceRegistry:
    """Return the global service registry."""
    return registry


def get_analyzer() -> WalletAnalyzer:
    """Return the analyzer built at startup (503 until the lifespan has run)."""
    if registry.analyzer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analyzer not initialised",
        )
    return registry.analyzer
