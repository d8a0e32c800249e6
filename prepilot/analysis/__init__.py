"""Analysis of allocations and KPI estimates."""

from .sanity import SanityChecker, SanityReport, SanityWarning
from .confidence import ConfidenceReport, ConfidenceScorer
from .explainability import ExplainabilityGenerator, ExplanationFormatter, DEFAULT_TEMPLATES
from .recommendations import (
    RecommendationContext,
    RecommendationEngine,
    RecommendationRule,
    DEFAULT_RULES,
)
from .formatting import (
    ReportLabels,
    format_count,
    format_currency,
    format_percentage,
    format_ratio,
)

__all__ = [
    "SanityChecker",
    "SanityReport",
    "SanityWarning",
    "ConfidenceReport",
    "ConfidenceScorer",
    "ExplainabilityGenerator",
    "ExplanationFormatter",
    "DEFAULT_TEMPLATES",
    "RecommendationContext",
    "RecommendationEngine",
    "RecommendationRule",
    "DEFAULT_RULES",
    "ReportLabels",
    "format_count",
    "format_currency",
    "format_percentage",
    "format_ratio",
]
