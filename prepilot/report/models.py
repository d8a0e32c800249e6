"""
Report and outcome models returned by ``ForecastEngine.forecast``.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional
import pandas as pd

from prepilot.allocation.results import AllocationFailure, AllocationResult, EngineErrorKind
from prepilot.analysis.confidence import ConfidenceReport
from prepilot.analysis.sanity import SanityWarning
from prepilot.config.schema import CampaignInput
from prepilot.core.validation import ValidationResult
from prepilot.forecasting.kpi_estimator import KpiEstimate
from prepilot.forecasting.trace import AdjustmentTrace


class ForecastError(Exception):
    """Raised by ``ForecastOutcome.raise_for_error`` when no report was produced."""

    def __init__(self, kind: EngineErrorKind, errors: list[str]):
        self.kind = kind
        self.errors = errors
        super().__init__(f"{kind.value}: " + "; ".join(errors))


@dataclass(frozen=True)
class CampaignReport:
    """
    Complete forecast for a campaign.

    ``kpis`` is the estimate after the sanity policy was applied.
    ``warnings`` lists validation, allocation, KPI and sanity warnings in
    that order, without duplicates. The report is never mutated after
    construction; ``explanations`` is a read-only view.
    """

    input: CampaignInput
    allocation: AllocationResult
    kpis: KpiEstimate
    confidence: ConfidenceReport
    warnings: tuple[str, ...]
    explanations: Mapping[str, str]
    recommendations: tuple[str, ...]
    trace: AdjustmentTrace
    sanity_warnings: tuple[SanityWarning, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "explanations", MappingProxyType(dict(self.explanations)))

    def to_dataframe(self) -> pd.DataFrame:
        """
        Per-platform table joining allocation, KPIs and confidence.

        Returns:
            One row per platform in allocation order. Values are copied
            unchanged; ``pct_of_total``, ``ctr_pct`` and ``cvr_pct`` are added.
        """
        allocation_df = self.allocation.to_dataframe()
        kpi_df = self.kpis.to_dataframe().drop(columns=["budget"])
        confidence_df = (
            self.confidence.to_dataframe()
            .query("platform != 'total'")
            .add_prefix("confidence_")
            .rename(columns={"confidence_platform": "platform"})
        )
        df = allocation_df.merge(kpi_df, on="platform", how="left")
        df = df.merge(confidence_df, on="platform", how="left")
        return df

    def get_summary_dict(self) -> dict[str, Any]:
        """Get a JSON-serializable summary of the report."""
        return {
            "input": self.input.model_dump(mode="json"),
            "allocation": self.allocation.get_summary_dict(),
            "kpis": self.kpis.get_summary_dict(),
            "confidence": self.confidence.get_summary_dict(),
            "warnings": list(self.warnings),
            "explanations": dict(self.explanations),
            "recommendations": list(self.recommendations),
            "trace": self.trace.to_records(),
        }


@dataclass(frozen=True)
class ForecastOutcome:
    """Either a report, or the validation result / allocation failure that stopped the pipeline."""

    report: Optional[CampaignReport] = None
    validation: Optional[ValidationResult] = None
    failure: Optional[AllocationFailure] = None

    @property
    def success(self) -> bool:
        return self.report is not None

    @property
    def error_kind(self) -> Optional[EngineErrorKind]:
        if self.success:
            return None
        if self.failure is not None:
            return self.failure.kind
        return EngineErrorKind.VALIDATION

    @property
    def errors(self) -> list[str]:
        if self.failure is not None:
            return [self.failure.message]
        if self.validation is not None:
            return list(self.validation.errors)
        return []

    def raise_for_error(self) -> CampaignReport:
        """Return the report, or raise ``ForecastError`` if there is none."""
        if self.report is None:
            raise ForecastError(self.error_kind, self.errors)
        return self.report
