"""Portfolio risk: parametric VaR/CVaR, ratios, beta/alpha, correlation matrix."""

from quant_engine.risk.models import (
    AssetRiskMetrics,
    CorrelationMatrix,
    PortfolioRiskMetrics,
    RiskAnalytics,
)
from quant_engine.risk.portfolio import compute_risk_analytics, concentration_alerts

__all__ = [
    "AssetRiskMetrics",
    "CorrelationMatrix",
    "PortfolioRiskMetrics",
    "RiskAnalytics",
    "compute_risk_analytics",
    "concentration_alerts",
]
