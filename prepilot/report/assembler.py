"""
Forecast pipeline: validation, allocation, estimation and analysis.

``ForecastEngine.forecast`` never raises for bad input; problems come back
in the ``ForecastOutcome``. The pipeline uses no clocks, randomness or
counters, so the same input always yields the same report.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional
import logging

from prepilot.allocation.engine import AllocationEngine
from prepilot.allocation.results import AllocationFailure
from prepilot.analysis.confidence import ConfidenceScorer
from prepilot.analysis.explainability import ExplainabilityGenerator, ExplanationFormatter
from prepilot.analysis.recommendations import RecommendationEngine
from prepilot.analysis.sanity import SanityChecker
from prepilot.config.schema import CampaignInput, EngineConfig, SanityPolicy
from prepilot.core.validation import CampaignValidator
from prepilot.forecasting.kpi_estimator import KpiEstimator
from prepilot.registries.data import build_default_registries
from prepilot.registries.registry import Registries
from prepilot.report.models import CampaignReport, ForecastOutcome

logger = logging.getLogger(__name__)


class ForecastEngine:
    """
    End-to-end campaign forecaster.

    Parameters
    ----------
    registries : Registries, optional
        Reference tables; the production tables when omitted.
    config : EngineConfig, optional
        Engine configuration.
    formatter : ExplanationFormatter, optional
        Explanation templates; Arabic by default.

    Examples
    --------
    >>> engine = ForecastEngine()
    >>> outcome = engine.forecast(CampaignInput(industry="تجارة إلكترونية", budget=100000, goals=["Sales"]))
    >>> outcome.report.allocation.amounts
    """

    def __init__(
        self,
        registries: Optional[Registries] = None,
        config: Optional[EngineConfig] = None,
        formatter: Optional[ExplanationFormatter] = None,
    ):
        self.registries = registries or build_default_registries()
        self.config = config or EngineConfig()

        self.validator = CampaignValidator(self.registries, self.config)
        self.allocator = AllocationEngine(self.registries, self.config)
        self.estimator = KpiEstimator(self.registries, self.config)
        self.sanity = SanityChecker(self.registries, self.config)
        self.explainer = ExplainabilityGenerator(self.registries, formatter)
        self.recommender = RecommendationEngine(self.registries)
        self.scorer = ConfidenceScorer(self.registries, self.config)

    def forecast(self, campaign: CampaignInput) -> ForecastOutcome:
        """
        Forecast a campaign.

        Parameters
        ----------
        campaign : CampaignInput
            The request; display names and aliases are accepted.

        Returns
        -------
        ForecastOutcome
            The report, or the validation result / allocation failure.
        """
        campaign = self.registries.canonicalize(campaign)
        logger.info(
            f"Forecasting campaign: industry={campaign.industry}, budget={campaign.budget:,.0f}, "
            f"goals={list(campaign.goals)}"
        )

        validation = self.validator.validate(campaign)
        if not validation.valid:
            return ForecastOutcome(validation=validation)

        allocation = self.allocator.allocate(campaign)
        if isinstance(allocation, AllocationFailure):
            logger.warning(f"Allocation failed: {allocation.message}")
            return ForecastOutcome(validation=validation, failure=allocation)

        estimate = self.estimator.estimate(campaign, allocation.amounts)

        # Explanations must describe the post-policy numbers, so under the
        # clamp policy they wait for the sanity check
        clamp = self.config.sanity.policy == SanityPolicy.CLAMP
        if self.config.parallel:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                sanity_future = pool.submit(self.sanity.check, campaign, estimate)
                recommend_future = pool.submit(self.recommender.recommend, campaign, allocation)
                explain_future = None
                if not clamp:
                    explain_future = pool.submit(self.explainer.explain, campaign, allocation, estimate)
                sanity = sanity_future.result()
                recommendations = recommend_future.result()
                if explain_future is not None:
                    explanations = explain_future.result()
                else:
                    explanations = self.explainer.explain(campaign, allocation, sanity.estimate)
        else:
            sanity = self.sanity.check(campaign, estimate)
            explanations = self.explainer.explain(campaign, allocation, sanity.estimate)
            recommendations = self.recommender.recommend(campaign, allocation)

        kpis = sanity.estimate
        confidence = self.scorer.score(kpis, sanity.flagged)

        warnings = [
            *validation.warnings,
            *allocation.warnings,
            *kpis.warnings,
            *sanity.messages,
        ]

        report = CampaignReport(
            input=campaign,
            allocation=allocation,
            kpis=kpis,
            confidence=confidence,
            warnings=tuple(dict.fromkeys(warnings)),
            explanations=explanations,
            recommendations=tuple(recommendations),
            trace=allocation.trace + kpis.trace,
            sanity_warnings=sanity.warnings,
        )
        logger.info(
            f"Forecast complete: {allocation.num_platforms} platforms, "
            f"{kpis.totals.conversions:,} conversions, ROAS {kpis.totals.roas:.2f}, "
            f"{len(report.warnings)} warnings"
        )
        return ForecastOutcome(report=report, validation=validation)

    def validate(self, campaign: CampaignInput):
        """Validate a campaign without forecasting it."""
        return self.validator.validate(self.registries.canonicalize(campaign))
