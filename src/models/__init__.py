from src.models.risk import (
    MarketData,
    RiskFlag,
    RiskFlags,
    RiskLevel,
    RiskReport,
    TokenHolding,
    TokenRisk,
)

__all__ = [
    "TokenHolding",
    "MarketData",
    "TokenRisk",
    "RiskFlag",
    "RiskFlags",
    "RiskLevel",
    "RiskReport",
]
