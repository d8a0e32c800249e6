"""
Confidence scoring for KPI estimates.

Scores derive from the confidence tiers of the benchmark metrics behind each
estimated field, penalized when a sanity check flagged the field or the
default benchmark stood in for a missing one.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional
import numpy as np
import pandas as pd
import logging

from prepilot.config.schema import EngineConfig
from prepilot.forecasting.kpi_estimator import KpiEstimate
from prepilot.registries.registry import Registries

logger = logging.getLogger(__name__)

# Estimated field -> benchmark metrics it depends on (score is the weakest)
FIELD_DEPENDENCIES: dict[str, tuple[str, ...]] = {
    "impressions": ("cpm",),
    "cpm": ("cpm",),
    "clicks": ("cpm", "ctr"),
    "ctr": ("cpm", "ctr"),
    "cpc": ("cpc",),
    "conversions": ("cpm", "ctr", "cvr"),
    "cvr": ("cpm", "ctr", "cvr"),
    "roas": ("roas",),
    "cac": ("cac",),
}

SCORED_FIELDS = tuple(FIELD_DEPENDENCIES)


@dataclass(frozen=True)
class ConfidenceReport:
    """Per-platform and budget-weighted total confidence scores in [0, 1] (read-only)."""
    platforms: Mapping[str, Mapping[str, float]]
    totals: Mapping[str, float]

    def __post_init__(self):
        platforms = {p: MappingProxyType(dict(scores)) for p, scores in self.platforms.items()}
        object.__setattr__(self, "platforms", MappingProxyType(platforms))
        object.__setattr__(self, "totals", MappingProxyType(dict(self.totals)))

    @property
    def overall(self) -> float:
        """Mean of the total field scores."""
        if not self.totals:
            return 0.0
        return float(np.mean(list(self.totals.values())))

    def to_dataframe(self) -> pd.DataFrame:
        """One row per platform plus a ``total`` row, one column per field."""
        rows = {p: dict(scores) for p, scores in self.platforms.items()}
        rows["total"] = dict(self.totals)
        df = pd.DataFrame.from_dict(rows, orient="index", columns=list(SCORED_FIELDS))
        df.index.name = "platform"
        return df.reset_index()

    def get_summary_dict(self) -> dict[str, Any]:
        return {
            "platforms": {p: dict(s) for p, s in self.platforms.items()},
            "totals": dict(self.totals),
            "overall": round(self.overall, 4),
        }


class ConfidenceScorer:
    """Score every estimated field of a KPI estimate."""

    def __init__(self, registries: Registries, config: Optional[EngineConfig] = None):
        self.registries = registries
        self.config = config or EngineConfig()

    def score(
        self,
        estimate: KpiEstimate,
        flagged: frozenset[tuple[str, str]] = frozenset(),
    ) -> ConfidenceReport:
        """
        Score an estimate.

        Parameters
        ----------
        estimate : KpiEstimate
            Post-policy KPI estimate.
        flagged : frozenset[tuple[str, str]]
            (platform, field) pairs flagged by the sanity checker.

        Returns
        -------
        ConfidenceReport
        """
        settings = self.config.confidence
        platforms: dict[str, dict[str, float]] = {}

        for kpis in estimate.platforms:
            benchmark, fallback = self.registries.benchmark_for(kpis.platform)
            scores = {}
            for field_name, metrics in FIELD_DEPENDENCIES.items():
                if field_name == "cac" and not kpis.cac_defined:
                    scores[field_name] = 0.0
                    continue
                score = min(settings.score_for(benchmark.metric(m).confidence.value) for m in metrics)
                if (kpis.platform, field_name) in flagged:
                    score *= settings.sanity_penalty
                if fallback:
                    score *= settings.fallback_penalty
                scores[field_name] = float(np.clip(score, 0.0, 1.0))
            platforms[kpis.platform] = scores

        totals = self._weighted_totals(estimate, platforms)
        logger.debug(f"Confidence totals: {totals}")
        return ConfidenceReport(platforms=platforms, totals=totals)

    def _weighted_totals(self, estimate: KpiEstimate, platforms: dict) -> dict[str, float]:
        if not platforms:
            return {f: 0.0 for f in SCORED_FIELDS}

        budgets = np.array([k.budget for k in estimate.platforms], dtype=float)
        matrix = np.array([[platforms[k.platform][f] for f in SCORED_FIELDS] for k in estimate.platforms])
        if budgets.sum() > 0:
            totals = np.average(matrix, axis=0, weights=budgets)
        else:
            totals = matrix.mean(axis=0)
        totals = np.clip(totals, 0.0, 1.0)
        return {f: float(v) for f, v in zip(SCORED_FIELDS, totals)}
