"""
Forecasting module for campaign KPI estimation.

Provides the adjustment trace shared by every stage and the benchmark-driven
KPI estimator.
"""

from prepilot.forecasting.trace import Adjustment, AdjustmentTrace, TraceBuilder
from prepilot.forecasting.kpi_estimator import (
    KpiEstimator,
    KpiEstimate,
    KpiTotals,
    PlatformKpis,
    compute_break_even_roas,
    compute_platform_kpis,
    compute_totals,
)

__all__ = [
    "Adjustment",
    "AdjustmentTrace",
    "TraceBuilder",
    "KpiEstimator",
    "KpiEstimate",
    "KpiTotals",
    "PlatformKpis",
    "compute_break_even_roas",
    "compute_platform_kpis",
    "compute_totals",
]
